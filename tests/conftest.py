from __future__ import annotations

import threading
import time
from typing import Mapping, Optional

import pytest

from novelharvest.errors import TransportError


def chapter_page(title: Optional[str], paragraphs: list[str], next_href: Optional[str] = None) -> str:
    title_html = f'<h1 class="j_chapterName">{title}</h1>' if title is not None else ""
    body = "".join(f"<p>{text}</p>" for text in paragraphs)
    nav = f'<a id="j_chapterNext" href="{next_href}">next</a>' if next_href else ""
    return f'<html><body>{title_html}<div class="read-content">{body}</div>{nav}</body></html>'


def catalog_page(hrefs: list[str]) -> str:
    items = "".join(f'<li><a href="{href}">ch</a></li>' for href in hrefs)
    return f'<html><body><ul class="mulu_list">{items}</ul></body></html>'


class FakeTransport:
    """Serves canned pages, records calls and tracks how many fetches overlap."""

    def __init__(self, pages: Mapping[str, str], delays: Optional[Mapping[str, float]] = None) -> None:
        self.pages = dict(pages)
        self.delays = dict(delays or {})
        self.calls: list[tuple[str, dict[str, str]]] = []
        self._lock = threading.Lock()
        self._active = 0
        self.max_active = 0

    def __call__(self, url: str, headers: Mapping[str, str]) -> str:
        with self._lock:
            self.calls.append((url, dict(headers)))
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        try:
            time.sleep(self.delays.get(url, 0.0))
            if url not in self.pages:
                raise TransportError(f"GET {url} failed (404 Not Found)")
            return self.pages[url]
        finally:
            with self._lock:
                self._active -= 1


@pytest.fixture
def make_transport():
    return FakeTransport
