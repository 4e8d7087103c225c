from __future__ import annotations

import random
import time
from typing import Sequence

from .errors import ExtractionError, TransportError
from .http_utils import Transport, pick_user_agent
from .models import ChapterLocator, ChapterResult
from .parsing import parse_chapter
from .pool import PermitPool


def fetch_chapter(
    locator: ChapterLocator,
    *,
    transport: Transport,
    permits: PermitPool,
    title_selector: str,
    content_selector: str,
    user_agents: Sequence[str],
    rng: random.Random,
) -> ChapterResult:
    """Fetch and parse one chapter while holding a permit.

    Every outcome is returned as a ChapterResult; nothing is raised to the caller.
    """
    permits.acquire()
    started = time.perf_counter()
    try:
        headers = {"User-Agent": pick_user_agent(user_agents, rng)}
        try:
            html = transport(locator.url, headers)
        except TransportError as exc:
            return ChapterResult.failed(
                locator, f"transport error: {exc}", time.perf_counter() - started
            )
        try:
            title, paragraphs = parse_chapter(html, title_selector, content_selector)
        except ExtractionError as exc:
            return ChapterResult.failed(locator, str(exc), time.perf_counter() - started)
        return ChapterResult.ok(locator, title, paragraphs, time.perf_counter() - started)
    except Exception as exc:
        message = str(exc).strip() or exc.__class__.__name__
        return ChapterResult.failed(
            locator, f"unexpected error: {message}", time.perf_counter() - started
        )
    finally:
        permits.release()
