"""
Renders the PWA service worker from configuration.

One template covers every caching variant the site has used: the fetch
handler is picked by ``strategy`` and the activate/push handlers are
switched on or off by flags. With both flags off and the cache-first
strategy the output is the stripped-down cache-only worker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from quasimatt.config import DEFAULT_CACHE_NAME, DEFAULT_PRECACHE, Settings

CACHE_FIRST = "cache-first"
NETWORK_FIRST = "network-first"
STRATEGIES = (CACHE_FIRST, NETWORK_FIRST)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
TEMPLATE_NAME = "service-worker.js"

NOTIFICATION_DEFAULTS = {
    "title": "New Notification",
    "body": "You have a new message!",
    "icon": "/icon.svg",
    "url": "/",
}

# Plain JavaScript output, so no HTML autoescaping.
_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class ServiceWorkerConfig:
    strategy: str = CACHE_FIRST
    cache_name: str = DEFAULT_CACHE_NAME
    precache: Sequence[str] = field(default_factory=lambda: DEFAULT_PRECACHE)
    cleanup_old_caches: bool = True
    enable_push: bool = True

    def __post_init__(self):
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown caching strategy {self.strategy!r}; "
                f"expected one of {', '.join(STRATEGIES)}"
            )
        if not self.cache_name:
            raise ValueError("cache_name must not be empty")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceWorkerConfig":
        return cls(
            strategy=settings.sw_strategy,
            cache_name=settings.sw_cache_name,
            precache=tuple(settings.sw_precache),
            cleanup_old_caches=settings.sw_cleanup_old_caches,
            enable_push=settings.sw_enable_push,
        )


def render_service_worker(config: ServiceWorkerConfig | None = None) -> str:
    """Return the JavaScript source of the worker described by ``config``."""
    config = config or ServiceWorkerConfig()
    template = _env.get_template(TEMPLATE_NAME)
    return template.render(
        strategy=config.strategy,
        cache_name=config.cache_name,
        precache=list(config.precache),
        cleanup_old_caches=config.cleanup_old_caches,
        enable_push=config.enable_push,
        notification=NOTIFICATION_DEFAULTS,
    )
