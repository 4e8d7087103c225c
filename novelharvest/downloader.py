from __future__ import annotations

import functools
import random
import time
from pathlib import Path
from typing import Optional

from .collector import ResultChannel, StallPolicy, collect
from .config import CrawlConfig
from .errors import ExtractionError, TransportError
from .http_utils import ScraperTransport, Transport, pick_user_agent
from .models import ChapterLocator, ChapterResult, RunSummary
from .parsing import find_next_url, parse_chapter, parse_document, resolve_catalog
from .pool import PermitPool, dispatch
from .ui import ConsoleUI
from .worker import fetch_chapter
from .writer import reassemble_and_write


def crawl_chain(
    config: CrawlConfig,
    *,
    transport: Transport,
    rng: random.Random,
    ui: Optional[ConsoleUI] = None,
) -> list[ChapterResult]:
    """Follow next-chapter links from ``start_url`` one page at a time."""
    results: list[ChapterResult] = []
    visited: set[str] = set()
    url: Optional[str] = config.start_url

    while url:
        if url in visited:
            if ui:
                ui.log_event(f"Next link points back to {url}; stopping.", level="warning")
            break
        visited.add(url)
        locator = ChapterLocator(index=len(results), url=url)
        if ui:
            ui.update_status(f"Fetching chapter {locator.index}: {url}", level="info")
        started = time.perf_counter()
        headers = {"User-Agent": pick_user_agent(config.user_agents, rng)}
        try:
            soup = parse_document(transport(url, headers))
            title, paragraphs = parse_chapter(soup, config.title_selector, config.content_selector)
        except (TransportError, ExtractionError) as exc:
            prefix = "transport error: " if isinstance(exc, TransportError) else ""
            result = ChapterResult.failed(locator, f"{prefix}{exc}", time.perf_counter() - started)
            results.append(result)
            if ui:
                ui.log_event(
                    f"Chapter {locator.index} failed: {result.error}. Stopping chain.",
                    level="error",
                )
            break

        result = ChapterResult.ok(locator, title, paragraphs, time.perf_counter() - started)
        results.append(result)
        if ui:
            ui.log_event(
                f"Chapter {result.index}: {result.title} ({result.duration:.2f}s)",
                level="success",
            )
        url = find_next_url(soup, config.next_link_selector, config.base_url)

    return results


def download_novel(
    config: CrawlConfig,
    *,
    ui: Optional[ConsoleUI] = None,
    transport: Optional[Transport] = None,
    rng: Optional[random.Random] = None,
    mode: str = "catalog",
) -> RunSummary:
    internal_ui = ui or ConsoleUI()
    should_finalize = ui is None
    transport = transport or ScraperTransport(timeout=config.request_timeout)
    rng = rng or random.Random()
    output_path = Path(config.output_path)
    start = time.perf_counter()

    try:
        if mode == "chain":
            internal_ui.update_status("Following chapter links...", level="info")
            results = crawl_chain(config, transport=transport, rng=rng, ui=internal_ui)
            dispatched = len(results)
            complete, reason = True, "complete"
        else:
            internal_ui.update_status("Resolving chapter catalog...", level="info")
            locators = resolve_catalog(
                config.catalog_url,
                config.chapter_link_selector,
                config.base_url,
                transport=transport,
                user_agents=config.user_agents,
                rng=rng,
            )
            dispatched = len(locators)
            internal_ui.log_event(f"Found {dispatched} chapters to download.", level="success")
            internal_ui.update_status(
                f"Downloading {dispatched} chapters ({config.concurrency_limit} at a time)...",
                level="info",
            )

            permits = PermitPool(config.concurrency_limit)
            channel = ResultChannel(producers=dispatched)
            work = functools.partial(
                fetch_chapter,
                transport=transport,
                permits=permits,
                title_selector=config.title_selector,
                content_selector=config.content_selector,
                user_agents=config.user_agents,
                rng=rng,
            )
            dispatch(locators, work, channel)
            outcome = collect(
                channel,
                dispatched,
                StallPolicy(config.receive_timeout, config.stall_ceiling),
                ui=internal_ui,
            )
            results = outcome.results
            complete, reason = outcome.complete, outcome.reason

        internal_ui.update_status(f"Writing {output_path}...", level="info")
        written = reassemble_and_write(results, output_path, ui=internal_ui)

        durations = [result.duration for result in results if result.success]
        summary = RunSummary(
            dispatched=dispatched,
            succeeded=written.success_count,
            failed=written.failure_count,
            missing=dispatched - len(results),
            complete=complete,
            reason=reason,
            elapsed=time.perf_counter() - start,
            average=sum(durations) / len(durations) if durations else 0.0,
            output_path=output_path,
        )
        internal_ui.update_status(None)
        internal_ui.update_progress(None)
        internal_ui.log_summary(summary)
        return summary
    finally:
        if should_finalize:
            internal_ui.finalize()
