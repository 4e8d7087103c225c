from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING, Optional, TextIO

if TYPE_CHECKING:
    from .models import RunSummary


class ConsoleUI:
    """Event log plus a redrawn status box (plain single line without ANSI)."""

    _COLORS = {
        "info": "36",      # cyan
        "success": "32",   # green
        "warning": "33",   # yellow
        "error": "31",     # red
        "muted": "90",     # grey
    }
    _LABELS = {
        "info": "INFO",
        "success": "DONE",
        "warning": "WARN",
        "error": "ERR",
        "muted": "...",
    }

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream or sys.stdout
        self._supports_ansi = self._stream.isatty() and os.getenv("TERM") != "dumb"
        self._status_line: Optional[str] = None
        self._status_level = "info"
        self._progress_line: Optional[str] = None
        self._rendered_lines = 0
        self._last_fallback_length = 0

        if os.name == "nt" and self._supports_ansi:
            try:
                import colorama
            except ImportError:
                self._supports_ansi = False
            else:
                colorama.just_fix_windows_console()

    def _write(self, text: str) -> None:
        self._stream.write(text)
        self._stream.flush()

    def _format_plain(self, message: str, level: str) -> str:
        if level == "muted":
            return f"  {message}"
        label = self._LABELS.get(level, level.upper())
        return f"[{label}] {message}"

    def _colorize(self, text: str, level: str) -> str:
        code = self._COLORS.get(level)
        if not self._supports_ansi or not code:
            return text
        return f"\x1b[{code}m{text}\x1b[0m"

    def _box_lines(self) -> list[str]:
        content = [line for line in (self._status_line, self._progress_line) if line]
        if not content:
            return []
        label = self._LABELS.get(self._status_level, self._status_level.upper())
        header = f"CRAWL :: {label}"
        width = max(len(header), *(len(line) for line in content))
        rule = "+" + "-" * (width + 2) + "+"
        lines = [rule, f"| {self._colorize(header.center(width), self._status_level)} |", rule]
        lines.extend(f"| {line.ljust(width)} |" for line in content)
        lines.append(rule)
        return lines

    def _clear(self) -> None:
        if self._supports_ansi:
            if not self._rendered_lines:
                return
            erase = "\x1b[2K\x1b[1A" * (self._rendered_lines - 1) + "\x1b[2K"
            self._write("\r" + erase + "\r")
            self._rendered_lines = 0
        elif self._last_fallback_length:
            self._write("\r" + " " * self._last_fallback_length + "\r")
            self._last_fallback_length = 0

    def _render(self) -> None:
        self._clear()
        if self._supports_ansi:
            lines = self._box_lines()
            if lines:
                self._write("\n".join(lines))
                self._rendered_lines = len(lines)
            return
        parts = []
        if self._status_line:
            parts.append(self._format_plain(self._status_line, self._status_level))
        if self._progress_line:
            parts.append(self._progress_line)
        if parts:
            combined = " | ".join(parts)
            self._write("\r" + combined)
            self._last_fallback_length = len(combined)

    def update_status(self, message: Optional[str], *, level: str = "info") -> None:
        self._status_line = message
        self._status_level = level
        self._render()

    def update_progress(self, message: Optional[str]) -> None:
        self._progress_line = message
        self._render()

    def log_event(self, message: str, *, level: str = "info") -> None:
        self._clear()
        if self._supports_ansi:
            self._write(self._colorize(message, level) + "\n")
        else:
            self._write(self._format_plain(message, level) + "\n")
        self._render()

    def log_summary(self, summary: "RunSummary") -> None:
        level = "success" if summary.complete and not summary.failed else "warning"
        state = "complete" if summary.complete else f"incomplete ({summary.reason})"
        self.log_event(f"Collection {state}.", level=level)
        self.log_event(
            f"Dispatched {summary.dispatched} | succeeded {summary.succeeded} | "
            f"failed {summary.failed} | missing {summary.missing}",
            level=level,
        )
        self.log_event(
            f"Total {summary.elapsed:,.1f}s | average {summary.average:.2f}s per chapter",
            level="info",
        )
        self.log_event(f"Output written to {summary.output_path}", level="info")

    def finalize(self) -> None:
        self._status_line = None
        self._progress_line = None
        self._clear()
