from .config import CrawlConfig, load_config
from .downloader import download_novel
from .cli import apply_overrides, parse_args, validate_args

__all__ = [
    "CrawlConfig",
    "apply_overrides",
    "download_novel",
    "load_config",
    "parse_args",
    "validate_args",
]
