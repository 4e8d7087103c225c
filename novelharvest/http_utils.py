from __future__ import annotations

import random
import threading
from typing import Callable, Mapping, Optional, Protocol, Sequence

import cloudscraper
import cloudscraper.exceptions
import requests

from .errors import TransportError

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en-US;q=0.8,en;q=0.7",
}


class Transport(Protocol):
    def __call__(self, url: str, headers: Mapping[str, str]) -> str: ...


def pick_user_agent(pool: Sequence[str], rng: random.Random) -> str:
    if not pool:
        raise ValueError("User-agent pool must not be empty.")
    return rng.choice(pool)


def create_scraper() -> cloudscraper.CloudScraper:
    scraper = cloudscraper.create_scraper(
        browser={"browser": "chrome", "platform": "windows", "mobile": False},
    )
    scraper.headers.update(DEFAULT_HEADERS)
    return scraper


def perform_request(
    scraper,
    url: str,
    *,
    timeout: float,
    headers: Mapping[str, str] | None = None,
) -> requests.Response:
    """Issue one GET. Any requests or cloudscraper failure, or a bad status, becomes a TransportError."""
    try:
        response = scraper.request(
            method="GET",
            url=url,
            headers=dict(headers) if headers else None,
            timeout=timeout,
        )
        response.raise_for_status()
    except (
        requests.RequestException,
        cloudscraper.exceptions.CloudflareException,
        cloudscraper.exceptions.CaptchaException,
    ) as exc:
        message = str(exc).strip() or exc.__class__.__name__
        raise TransportError(f"GET {url} failed ({message})") from exc
    return response


class ScraperTransport:
    """Fetch capability backed by one cloudscraper session per worker thread."""

    def __init__(
        self,
        timeout: float = 60.0,
        scraper_factory: Callable[[], cloudscraper.CloudScraper] = create_scraper,
    ) -> None:
        self.timeout = timeout
        self._scraper_factory = scraper_factory
        self._local = threading.local()

    @property
    def scraper(self) -> cloudscraper.CloudScraper:
        scraper = getattr(self._local, "scraper", None)
        if scraper is None:
            scraper = self._scraper_factory()
            self._local.scraper = scraper
        return scraper

    def __call__(self, url: str, headers: Mapping[str, str]) -> str:
        response = perform_request(self.scraper, url, timeout=self.timeout, headers=headers)
        # Sites serving GBK often omit the charset header.
        if response.encoding is None or response.encoding.lower() == "iso-8859-1":
            response.encoding = response.apparent_encoding
        return response.text
