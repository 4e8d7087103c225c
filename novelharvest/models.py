from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class ChapterLocator:
    index: int
    url: str


@dataclass(frozen=True)
class ChapterResult:
    index: int
    url: str
    title: str
    paragraphs: tuple[str, ...]
    success: bool
    error: Optional[str] = None
    duration: float = 0.0
    completed_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def ok(
        cls,
        locator: ChapterLocator,
        title: str,
        paragraphs: tuple[str, ...],
        duration: float,
    ) -> "ChapterResult":
        return cls(
            index=locator.index,
            url=locator.url,
            title=title,
            paragraphs=tuple(paragraphs),
            success=True,
            duration=duration,
        )

    @classmethod
    def failed(cls, locator: ChapterLocator, error: str, duration: float) -> "ChapterResult":
        return cls(
            index=locator.index,
            url=locator.url,
            title="",
            paragraphs=(),
            success=False,
            error=error or "unknown error",
            duration=duration,
        )


@dataclass(frozen=True)
class CollectionOutcome:
    results: list[ChapterResult]
    complete: bool
    reason: str


@dataclass(frozen=True)
class WriteSummary:
    success_count: int
    failure_count: int


@dataclass(frozen=True)
class RunSummary:
    dispatched: int
    succeeded: int
    failed: int
    missing: int
    complete: bool
    reason: str
    elapsed: float
    average: float
    output_path: Path
