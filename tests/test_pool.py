import functools
import random
import threading

import pytest

from novelharvest.collector import ResultChannel, StallPolicy, collect
from novelharvest.models import ChapterLocator
from novelharvest.pool import PermitPool, dispatch
from novelharvest.worker import fetch_chapter

from conftest import FakeTransport, chapter_page


def test_permit_pool_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        PermitPool(0)


def test_permit_pool_held_releases_on_error():
    permits = PermitPool(1)
    with pytest.raises(RuntimeError):
        with permits.held():
            assert permits.in_use == 1
            raise RuntimeError("boom")
    assert permits.in_use == 0
    assert permits._semaphore.acquire(blocking=False)


def test_permit_pool_blocks_when_saturated():
    permits = PermitPool(1)
    permits.acquire()
    acquired = threading.Event()

    def waiter():
        permits.acquire()
        acquired.set()
        permits.release()

    thread = threading.Thread(target=waiter, daemon=True)
    thread.start()
    assert not acquired.wait(0.05)
    permits.release()
    assert acquired.wait(1.0)
    thread.join(1.0)
    assert permits.peak == 1


@pytest.mark.parametrize("limit", [1, 3, 8])
def test_dispatch_never_exceeds_concurrency_limit(limit):
    count = 24
    locators = [ChapterLocator(index=n, url=f"https://h/c{n}") for n in range(count)]
    pages = {locator.url: chapter_page(f"Chapter {locator.index}", ["text"]) for locator in locators}
    # Every third chapter fails at the transport layer.
    for locator in locators[::3]:
        del pages[locator.url]
    transport = FakeTransport(pages, delays={locator.url: 0.01 for locator in locators})
    permits = PermitPool(limit)
    channel = ResultChannel(producers=count)
    work = functools.partial(
        fetch_chapter,
        transport=transport,
        permits=permits,
        title_selector=".j_chapterName",
        content_selector=".read-content p",
        user_agents=("ua",),
        rng=random.Random(),
    )

    threads = dispatch(locators, work, channel)
    outcome = collect(channel, count, StallPolicy(receive_timeout=1.0, stall_ceiling=10.0))
    for thread in threads:
        thread.join(1.0)

    assert outcome.complete
    assert sorted(result.index for result in outcome.results) == list(range(count))
    assert permits.peak <= limit
    assert transport.max_active <= limit
    assert permits.in_use == 0
    assert sum(not result.success for result in outcome.results) == len(locators[::3])


def test_dispatch_closes_channel_when_work_raises():
    locators = [ChapterLocator(index=0, url="https://h/c0")]
    channel = ResultChannel(producers=1)

    def broken(locator):
        raise RuntimeError("worker bug")

    original_hook = threading.excepthook
    threading.excepthook = lambda args: None
    try:
        threads = dispatch(locators, broken, channel)
        for thread in threads:
            thread.join(1.0)
    finally:
        threading.excepthook = original_hook

    outcome = collect(channel, 1, StallPolicy(receive_timeout=0.5, stall_ceiling=2.0))
    assert not outcome.complete
    assert outcome.reason == "closed"
    assert outcome.results == []
