from __future__ import annotations

from pathlib import Path
from typing import IO, TYPE_CHECKING, Iterable, Optional

from .models import ChapterResult, WriteSummary

if TYPE_CHECKING:
    from .ui import ConsoleUI


def format_chapter(result: ChapterResult) -> str:
    lines = [result.title, *result.paragraphs]
    return "".join(f"{line}\n" for line in lines)


def write_chapter(handle: IO[str], result: ChapterResult) -> None:
    handle.write(format_chapter(result))
    handle.flush()


def order_results(results: Iterable[ChapterResult]) -> list[ChapterResult]:
    """Place results in slots by index, then read the slots back in order."""
    buffered = list(results)
    if not buffered:
        return []
    slots: list[Optional[ChapterResult]] = [None] * (max(result.index for result in buffered) + 1)
    for result in buffered:
        if slots[result.index] is not None:
            raise ValueError(f"Duplicate result for chapter {result.index}.")
        slots[result.index] = result
    return [result for result in slots if result is not None]


def reassemble_and_write(
    results: Iterable[ChapterResult],
    output_path: Path,
    *,
    ui: Optional["ConsoleUI"] = None,
) -> WriteSummary:
    ordered = order_results(results)
    success_count = 0
    failure_count = 0

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="\n") as handle:
        for result in ordered:
            if not result.success:
                failure_count += 1
                continue
            try:
                write_chapter(handle, result)
            except OSError as exc:
                failure_count += 1
                if ui:
                    ui.log_event(
                        f"Could not write chapter {result.index} ({result.title}): {exc}",
                        level="error",
                    )
                continue
            success_count += 1

    return WriteSummary(success_count=success_count, failure_count=failure_count)
