"""
Generate posts.json from blog files.

Usage:
  python scripts/generate_posts.py [--out path] [--paths dir1,dir2] [--since date]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quasimatt.posts_index import (
    DEFAULT_OUT,
    DEFAULT_PATHS,
    DEFAULT_SINCE,
    IndexConfig,
    generate,
    parse_date,
)

logger = logging.getLogger(__name__)


def _split_paths(value: str) -> tuple[str, ...]:
    return tuple(p.strip() for p in value.split(",") if p.strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate posts.json from blog files")
    parser.add_argument(
        "--out",
        default=DEFAULT_OUT,
        help=f"Output file path, relative to --root (default: {DEFAULT_OUT})",
    )
    parser.add_argument(
        "--paths",
        type=_split_paths,
        default=DEFAULT_PATHS,
        help="Comma-separated directories to scan (default: %s)"
        % ",".join(DEFAULT_PATHS),
    )
    parser.add_argument(
        "--since",
        default=DEFAULT_SINCE,
        help=f"Keep posts on or after this ISO date (default: {DEFAULT_SINCE})",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=Path.cwd(),
        help="Site root that --paths and --out are relative to (default: cwd)",
    )
    parser.add_argument(
        "--require-handles",
        action="store_true",
        help="Drop posts that mention no @handles",
    )
    parser.add_argument(
        "--keep-at-sign",
        action="store_true",
        help="Emit extracted handles as @name instead of name",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    if parse_date(args.since) is None:
        logger.error("Invalid --since date: %s", args.since)
        return 2

    config = IndexConfig(
        root=args.root,
        paths=args.paths,
        since=args.since,
        out=args.out,
        require_handles=args.require_handles,
        keep_at_sign=args.keep_at_sign,
    )
    logger.info(
        "Generating %s from %s since %s",
        config.out,
        ", ".join(config.paths),
        config.since,
    )
    generate(config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
