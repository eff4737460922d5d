"""
Builds the posts manifest for the static site.

Walks content directories for Markdown/HTML files, reads their frontmatter,
and emits ``{id, path, date, title, handles}`` entries newer than a cutoff.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = (".md", ".mdx", ".markdown")
HTML_EXTENSIONS = (".html",)
EXTENSIONS = MARKDOWN_EXTENSIONS + HTML_EXTENSIONS

DEFAULT_OUT = "social/posts.json"
DEFAULT_PATHS = ("blog", "social", "about")
DEFAULT_SINCE = "2025-09-22"

HANDLE_PATTERN = re.compile(r"@(\w+)")
MARKDOWN_FRONTMATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.S)
HTML_FRONTMATTER = re.compile(r"<!--\s*\n([\s\S]*?)\n-->")


@dataclass
class IndexConfig:
    root: Path = field(default_factory=Path.cwd)
    paths: tuple[str, ...] = DEFAULT_PATHS
    since: str = DEFAULT_SINCE
    out: str = DEFAULT_OUT
    require_handles: bool = False
    keep_at_sign: bool = False


def extract_handles(content: str, *, keep_at_sign: bool = False) -> list[str]:
    """Unique ``@word`` tokens in order of first appearance."""
    handles: dict[str, None] = {}
    for match in HANDLE_PATTERN.finditer(content):
        handle = match.group(0) if keep_at_sign else match.group(1)
        handles.setdefault(handle, None)
    return list(handles)


def file_mtime_date(path: Path) -> Optional[str]:
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return None
    return datetime.fromtimestamp(mtime, tz=timezone.utc).date().isoformat()


def _load_yaml_mapping(block: str) -> dict:
    data = yaml.safe_load(block)
    return data if isinstance(data, dict) else {}


def parse_frontmatter(content: str, ext: str) -> tuple[dict, str]:
    """
    Split ``content`` into (frontmatter, body).

    Markdown frontmatter sits between ``---`` fences at the top of the file
    and a malformed block is an error. HTML files may carry the same YAML in
    a leading comment; a malformed comment is ignored and the whole file is
    kept as body.
    """
    if ext in MARKDOWN_EXTENSIONS:
        match = MARKDOWN_FRONTMATTER.match(content)
        if not match:
            return {}, content
        return _load_yaml_mapping(match.group(1)), content[match.end():]

    match = HTML_FRONTMATTER.search(content)
    if not match:
        return {}, content
    try:
        return _load_yaml_mapping(match.group(1)), content
    except (yaml.YAMLError, ValueError):
        # PyYAML raises ValueError for out-of-range timestamps.
        return {}, content


def _normalize_date(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date or datetime into a naive UTC datetime."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def process_file(
    path: Path, root: Path, *, keep_at_sign: bool = False
) -> Optional[dict]:
    """Build one manifest entry, or None if the file cannot be read or parsed."""
    try:
        content = path.read_text(encoding="utf-8")
        ext = path.suffix
        frontmatter, body = parse_frontmatter(content, ext)

        entry_date = _normalize_date(frontmatter.get("date")) or file_mtime_date(path)
        title = frontmatter.get("title") or path.stem
        handles = frontmatter.get("handles")
        # A declared empty list is kept; other empty values fall back to the body.
        if handles is None or (not handles and not isinstance(handles, list)):
            handles = extract_handles(body, keep_at_sign=keep_at_sign)

        relative = path.relative_to(root)
        relative_path = relative.as_posix()
        entry_id = str(relative.with_suffix("")).replace(os.sep, "-").replace("/", "-")

        return {
            "id": entry_id,
            "path": relative_path,
            "date": entry_date,
            "title": str(title),
            "handles": list(handles) if isinstance(handles, list) else [],
        }
    except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
        logger.error("Error processing file %s: %s", path, exc)
        return None


def scan_directory(
    directory: Path, root: Path, *, keep_at_sign: bool = False
) -> list[dict]:
    """Recursively collect entries for every recognized file under ``directory``."""
    posts: list[dict] = []
    try:
        children = sorted(directory.iterdir())
    except OSError as exc:
        logger.error("Error scanning directory %s: %s", directory, exc)
        return posts

    for child in children:
        if child.is_symlink():
            continue
        if child.is_dir():
            posts.extend(scan_directory(child, root, keep_at_sign=keep_at_sign))
        elif child.is_file() and child.suffix in EXTENSIONS:
            post = process_file(child, root, keep_at_sign=keep_at_sign)
            if post:
                posts.append(post)
    return posts


def filter_and_sort(
    posts: Iterable[dict], since: datetime, *, require_handles: bool = False
) -> list[dict]:
    kept: list[tuple[datetime, dict]] = []
    for post in posts:
        post_date = parse_date(post.get("date"))
        if post_date is None or post_date < since:
            continue
        if require_handles and not post.get("handles"):
            continue
        kept.append((post_date, post))
    kept.sort(key=lambda item: item[0], reverse=True)
    return [post for _, post in kept]


def build_index(config: IndexConfig) -> list[dict]:
    since = parse_date(config.since)
    if since is None:
        raise ValueError(f"Invalid --since date: {config.since!r}")

    root = Path(config.root).resolve()
    all_posts: list[dict] = []
    for name in config.paths:
        directory = root / name
        if not directory.is_dir():
            logger.warning("Directory not found: %s", name)
            continue
        logger.info("Scanning: %s", name)
        all_posts.extend(
            scan_directory(directory, root, keep_at_sign=config.keep_at_sign)
        )

    return filter_and_sort(all_posts, since, require_handles=config.require_handles)


def write_index(posts: list[dict], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        json.dumps(posts, indent=2, ensure_ascii=False), encoding="utf-8"
    )


def generate(config: IndexConfig) -> list[dict]:
    """Build the manifest and write it to ``config.out`` under the root."""
    posts = build_index(config)
    out_path = Path(config.root) / config.out
    write_index(posts, out_path)
    logger.info("Generated %d posts to %s", len(posts), config.out)
    return posts
