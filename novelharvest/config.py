from __future__ import annotations

import sys
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Iterable, Optional

CONFIG_FILENAME = "novelharvest.toml"

DEFAULT_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/118.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/117.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36 Edg/119.0.0.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)


@dataclass(frozen=True)
class CrawlConfig:
    """Settings for one run. Read-only once orchestration starts."""

    concurrency_limit: int = 15
    base_url: str = "https://www.alicesw.com"
    catalog_url: str = "https://www.alicesw.com/other/chapters/id/49017.html"
    title_selector: str = ".j_chapterName"
    content_selector: str = ".read-content p"
    chapter_link_selector: str = ".mulu_list li a"
    output_path: str = "output.txt"
    start_url: str = "https://www.alicesw.com/book/49017/b914f17bebada.html"
    next_link_selector: str = "#j_chapterNext"
    request_timeout: float = 60.0
    receive_timeout: float = 30.0
    stall_ceiling: float = 300.0
    user_agents: tuple[str, ...] = DEFAULT_USER_AGENTS

    def with_overrides(self, **overrides: Any) -> "CrawlConfig":
        present = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **present)


def default_search_paths() -> list[Path]:
    script_dir = Path(sys.argv[0]).resolve().parent if sys.argv and sys.argv[0] else Path.cwd()
    return [Path.cwd() / CONFIG_FILENAME, script_dir / CONFIG_FILENAME]


def find_config_file(search_paths: Optional[Iterable[Path]] = None) -> Optional[Path]:
    for candidate in search_paths if search_paths is not None else default_search_paths():
        if candidate.is_file():
            return candidate
    return None


def _coerce(name: str, expected: Any, value: Any) -> Any:
    if expected is tuple:
        if not isinstance(value, list) or not value or not all(isinstance(item, str) for item in value):
            raise ValueError(f"{name} must be a non-empty list of strings")
        return tuple(value)
    if expected is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{name} must be a number")
        return float(value)
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{name} must be an integer")
        return value
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    return value


def config_from_mapping(data: dict[str, Any]) -> CrawlConfig:
    """Build a config from parsed TOML, raising ValueError on bad values."""
    defaults = CrawlConfig()
    values: dict[str, Any] = {}
    for item in fields(CrawlConfig):
        if item.name not in data:
            continue
        expected = type(getattr(defaults, item.name))
        values[item.name] = _coerce(item.name, expected, data[item.name])
    config = replace(defaults, **values)
    if config.concurrency_limit <= 0:
        raise ValueError("concurrency_limit must be positive")
    if config.receive_timeout <= 0 or config.stall_ceiling <= 0 or config.request_timeout <= 0:
        raise ValueError("timeouts must be positive")
    return config


def load_config(path: Optional[Path] = None, search_paths: Optional[Iterable[Path]] = None) -> CrawlConfig:
    """Load the first config file found, or defaults if none is usable."""
    config_path = path if path is not None else find_config_file(search_paths)
    if config_path is None:
        return CrawlConfig()
    try:
        with config_path.open("rb") as handle:
            data = tomllib.load(handle)
        return config_from_mapping(data)
    except (OSError, tomllib.TOMLDecodeError, ValueError):
        return CrawlConfig()
