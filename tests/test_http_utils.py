import random
import threading

import pytest
import requests
from cloudscraper.exceptions import CaptchaServiceUnavailable, CloudflareChallengeError

from novelharvest.errors import TransportError
from novelharvest.http_utils import ScraperTransport, pick_user_agent


class FakeResponse:
    def __init__(self, text, status=200, encoding="utf-8"):
        self.text = text
        self.status_code = status
        self.encoding = encoding
        self.apparent_encoding = "GB2312"

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeScraper:
    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []

    def request(self, **kwargs):
        self.requests.append(kwargs)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def test_pick_user_agent_uses_injected_rng():
    pool = ("a", "b", "c", "d")
    first = [pick_user_agent(pool, random.Random(42)) for _ in range(3)]
    assert len(set(first)) == 1
    assert first[0] in pool


def test_pick_user_agent_requires_pool():
    with pytest.raises(ValueError):
        pick_user_agent((), random.Random())


def test_transport_returns_body_and_passes_headers():
    scraper = FakeScraper(FakeResponse("<html></html>"))
    transport = ScraperTransport(timeout=5.0, scraper_factory=lambda: scraper)
    assert transport("https://h/c1", {"User-Agent": "ua"}) == "<html></html>"
    sent = scraper.requests[0]
    assert sent["method"] == "GET"
    assert sent["headers"] == {"User-Agent": "ua"}
    assert sent["timeout"] == 5.0


def test_transport_guesses_missing_charset():
    response = FakeResponse("body", encoding="ISO-8859-1")
    ScraperTransport(scraper_factory=lambda: FakeScraper(response))("https://h/c1", {})
    assert response.encoding == "GB2312"


@pytest.mark.parametrize(
    "outcome",
    [
        requests.ConnectionError("refused"),
        requests.Timeout(),
        FakeResponse("", status=503),
        CloudflareChallengeError("challenge"),
        CaptchaServiceUnavailable("no solver"),
    ],
)
def test_transport_errors_are_wrapped(outcome):
    transport = ScraperTransport(scraper_factory=lambda: FakeScraper(outcome))
    with pytest.raises(TransportError, match="GET https://h/c1 failed"):
        transport("https://h/c1", {})


def test_each_thread_gets_its_own_scraper():
    created = []

    def factory():
        scraper = FakeScraper(FakeResponse("ok"))
        created.append(scraper)
        return scraper

    transport = ScraperTransport(scraper_factory=factory)
    seen = {}

    def fetch(name):
        transport("https://h/c1", {})
        transport("https://h/c2", {})
        seen[name] = transport.scraper

    threads = [threading.Thread(target=fetch, args=(name,)) for name in ("a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(1.0)

    assert len(created) == 2
    assert seen["a"] is not seen["b"]
    assert len(seen["a"].requests) == 2
    assert len(seen["b"].requests) == 2
