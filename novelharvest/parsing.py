from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .errors import CatalogError, ExtractionError, TransportError
from .http_utils import Transport, pick_user_agent
from .models import ChapterLocator

Markup = Union[str, BeautifulSoup]


@dataclass(frozen=True)
class Match:
    text: str
    attributes: dict[str, str] = field(default_factory=dict)


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def extract(document: Markup, selector: str) -> list[Match]:
    """Return every element matching ``selector`` in document order."""
    soup = document if isinstance(document, BeautifulSoup) else parse_document(document)
    matches: list[Match] = []
    for node in soup.select(selector):
        attributes = {
            key: " ".join(value) if isinstance(value, list) else value
            for key, value in node.attrs.items()
        }
        matches.append(Match(text=node.get_text(), attributes=attributes))
    return matches


def normalize_url(href: str, base_url: str) -> str:
    href = href.strip()
    if urlparse(href).scheme:
        return href
    if href.startswith("//"):
        scheme = urlparse(base_url).scheme or "https"
        return f"{scheme}:{href}"
    relative = href[1:] if href.startswith("/") else href
    prefix = base_url if base_url.endswith("/") else base_url + "/"
    return prefix + relative


def resolve_catalog(
    catalog_url: str,
    link_selector: str,
    base_url: str,
    *,
    transport: Transport,
    user_agents: Sequence[str],
    rng: random.Random,
) -> list[ChapterLocator]:
    headers = {"User-Agent": pick_user_agent(user_agents, rng)}
    try:
        html = transport(catalog_url, headers)
    except TransportError as exc:
        raise CatalogError(f"Catalog page request failed: {exc}") from exc

    hrefs = [
        match.attributes["href"]
        for match in extract(html, link_selector)
        if match.attributes.get("href", "").strip()
    ]
    if not hrefs:
        raise CatalogError(
            f"No chapter links matched {link_selector!r} on {catalog_url}."
        )
    return [
        ChapterLocator(index=index, url=normalize_url(href, base_url))
        for index, href in enumerate(hrefs)
    ]


def clean_paragraphs(raw: Sequence[str]) -> tuple[str, ...]:
    """Drop blank paragraphs; kept text keeps its indentation on a single line."""
    return tuple(
        " ".join(line for line in text.splitlines() if line.strip())
        for text in raw
        if text.strip()
    )


def parse_chapter(
    html: Markup, title_selector: str, content_selector: str
) -> tuple[str, tuple[str, ...]]:
    soup = html if isinstance(html, BeautifulSoup) else parse_document(html)
    titles = [match.text.strip() for match in extract(soup, title_selector)]
    if not titles:
        raise ExtractionError("title not found")
    if not titles[0]:
        raise ExtractionError("title is empty")

    paragraphs = clean_paragraphs([match.text for match in extract(soup, content_selector)])
    if not paragraphs:
        raise ExtractionError("content not found")
    return titles[0], paragraphs


def find_next_url(html: Markup, next_link_selector: str, base_url: str) -> Optional[str]:
    matches = extract(html, next_link_selector)
    if not matches:
        return None
    href = matches[0].attributes.get("href", "").strip()
    if not href or href.lower().startswith("javascript:"):
        return None
    return normalize_url(href, base_url)
