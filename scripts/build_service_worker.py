"""
Write the PWA service worker to disk for static hosting.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quasimatt.config import DEFAULT_CACHE_NAME, DEFAULT_PRECACHE
from quasimatt.service_worker import (
    STRATEGIES,
    ServiceWorkerConfig,
    render_service_worker,
)

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render the PWA service worker")
    parser.add_argument(
        "--out",
        type=Path,
        default=Path("service-worker.js"),
        help="Where to write the worker (default: service-worker.js)",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default=STRATEGIES[0],
        help="Fetch caching strategy",
    )
    parser.add_argument("--cache-name", default=DEFAULT_CACHE_NAME)
    parser.add_argument(
        "--precache",
        default=",".join(DEFAULT_PRECACHE),
        help="Comma-separated URLs cached on install",
    )
    parser.add_argument(
        "--no-push",
        action="store_true",
        help="Omit push and notification click handlers",
    )
    parser.add_argument(
        "--no-cleanup",
        action="store_true",
        help="Keep caches from older versions on activate",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )

    config = ServiceWorkerConfig(
        strategy=args.strategy,
        cache_name=args.cache_name,
        precache=tuple(u.strip() for u in args.precache.split(",") if u.strip()),
        cleanup_old_caches=not args.no_cleanup,
        enable_push=not args.no_push,
    )
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(render_service_worker(config), encoding="utf-8")
    logger.info("Wrote %s service worker to %s", config.strategy, args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
