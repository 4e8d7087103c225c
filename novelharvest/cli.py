from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Sequence

from .config import CrawlConfig


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download every chapter of a web novel concurrently and join them into one text file.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="TOML config file (default: novelharvest.toml in the working directory, then next to this script). "
        "A missing or unreadable file falls back to the built-in defaults.",
    )
    parser.add_argument(
        "--mode",
        choices=("catalog", "chain"),
        default="catalog",
        help="Resolve chapters from the catalog page, or follow next-chapter links one by one (default: catalog).",
    )
    parser.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=None,
        help="Maximum number of chapters fetched at once (default: 15).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Destination text file (default: output.txt).",
    )
    parser.add_argument("--catalog-url", default=None, help="Catalog page listing every chapter.")
    parser.add_argument("--start-url", default=None, help="First chapter page for chain mode.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds for each request (default: 60).",
    )
    parser.add_argument(
        "--receive-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the next finished chapter before logging progress (default: 30).",
    )
    parser.add_argument(
        "--stall-ceiling",
        type=float,
        default=None,
        help="Total seconds of waiting without results before giving up on stragglers (default: 300).",
    )
    return parser.parse_args(argv)


def validate_args(args: argparse.Namespace) -> None:
    if args.concurrency is not None and args.concurrency <= 0:
        raise SystemExit("Concurrency must be a positive integer.")
    if args.timeout is not None and args.timeout <= 0:
        raise SystemExit("Timeout must be a positive number.")
    if args.receive_timeout is not None and args.receive_timeout <= 0:
        raise SystemExit("Receive timeout must be a positive number.")
    if args.stall_ceiling is not None and args.stall_ceiling <= 0:
        raise SystemExit("Stall ceiling must be a positive number.")
    if args.output is not None and Path(args.output).is_dir():
        raise SystemExit(f"Output path is a directory: {args.output}")


def apply_overrides(config: CrawlConfig, args: argparse.Namespace) -> CrawlConfig:
    return config.with_overrides(
        concurrency_limit=args.concurrency,
        output_path=args.output,
        catalog_url=args.catalog_url,
        start_url=args.start_url,
        request_timeout=args.timeout,
        receive_timeout=args.receive_timeout,
        stall_ceiling=args.stall_ceiling,
    )
