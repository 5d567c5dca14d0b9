"""Page materializer: one content entry in, one immutable Page out."""

import logging
import posixpath
import re
from collections.abc import Collection, Iterable
from datetime import date, datetime, timezone
from typing import Any
from urllib.parse import unquote

from bramble.config import Settings
from bramble.core.entries import read_entry
from bramble.core.errors import FrontMatterError, MaterializationError
from bramble.core.models import ContentEntry, Page
from bramble.core.parser import (
    extract_links,
    extract_title,
    render_markdown,
    split_front_matter,
)

logger = logging.getLogger(__name__)

INDEX_NAME = "index"
PAGE_EXTS = (".md", ".markdown", ".html", ".htm")

# Suffixes that mark a link as a file rather than a page. Any other suffix
# is part of a page name, as in ``v1.2.md``.
FILE_EXTS = frozenset(
    {
        ".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".ico", ".pdf",
        ".webm", ".mp4", ".mp3", ".css", ".js", ".json", ".xml", ".txt",
        ".csv", ".zip", ".woff", ".woff2", ".ttf",
    }
)

URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


def page_path(rel_path: str) -> str:
    """Canonical page path for a content file.

    ``index.md`` -> ``/``, ``a/index.md`` -> ``/a``, ``a/b.md`` -> ``/a/b``.
    """
    stem, _ = posixpath.splitext(rel_path.replace("\\", "/"))
    parts = [p for p in stem.split("/") if p]
    if parts and parts[-1] == INDEX_NAME:
        parts = parts[:-1]
    return "/" + "/".join(parts)


def page_route(path: str) -> str:
    """Directory-style public URL for a page path."""
    return "/" if path == "/" else f"{path}/"


def page_slug(path: str) -> str:
    """Last segment of a page path, empty for the root."""
    return path.rsplit("/", 1)[-1]


def parent_path(path: str) -> str | None:
    """Path of the directory index a page belongs to, None for the root."""
    if path == "/":
        return None
    return posixpath.dirname(path)


def normalize_path(path: str, file_exts: Collection[str] = FILE_EXTS) -> str | None:
    """Normalize an absolute reference to a canonical page path.

    Trailing slashes, a trailing ``index`` and page extensions are dropped.
    Returns None for references to files with a suffix in ``file_exts``
    (images, PDFs, ...). A reference ending in a slash is always a page.
    """
    is_dir = path.endswith("/")
    path = posixpath.normpath("/" + path.lstrip("/"))
    stem, ext = posixpath.splitext(path)
    if ext and not is_dir:
        if ext.lower() in PAGE_EXTS:
            path = stem
        elif ext.lower() in file_exts:
            return None
    if posixpath.basename(path) == INDEX_NAME:
        path = posixpath.dirname(path)
    return path.rstrip("/") or "/"


def _slug_key(name: str) -> str:
    return name.strip().lower().replace(" ", "-")


class EntryIndex:
    """Lookup tables over the full list of content entries of a build."""

    def __init__(self, entries: Iterable[ContentEntry]):
        self.entries = list(entries)
        self.paths: set[str] = set()
        self._by_slug: dict[str, list[str]] = {}
        for entry in self.entries:
            path = page_path(entry.rel_path)
            self.paths.add(path)
            self._by_slug.setdefault(_slug_key(page_slug(path)), []).append(path)

    def __contains__(self, path: str) -> bool:
        return path in self.paths

    def find_by_slug(self, name: str) -> str | None:
        """Return the only page path whose slug matches ``name``."""
        matches = self._by_slug.get(_slug_key(name), [])
        if len(matches) == 1:
            return matches[0]
        return None


def resolve_link(
    target: str,
    base_dir: str,
    index: EntryIndex | None = None,
    file_exts: Collection[str] = FILE_EXTS,
) -> str | None:
    """Resolve a raw link target to a canonical page path.

    Args:
        target: Link target as written in the source.
        base_dir: Page path of the directory holding the current file.
        index: Known entries, used to resolve bare names like ``[[Some Page]]``.
        file_exts: Suffixes of non-page files.

    Returns:
        The page path, or None for external, fragment-only and non-page links.
    """
    target = target.strip()
    if not target or target.startswith(("#", "//")) or URL_SCHEME_PATTERN.match(target):
        return None
    target = unquote(target.split("#", 1)[0].split("?", 1)[0])
    if not target:
        return None

    if target.startswith("/"):
        return normalize_path(target, file_exts)

    resolved = normalize_path(posixpath.join(base_dir, target), file_exts)
    if resolved is None or index is None or resolved in index:
        return resolved

    if "/" not in target.rstrip("/"):
        by_slug = index.find_by_slug(target.rstrip("/"))
        if by_slug is not None:
            return by_slug
    return resolved


def _coerce_datetime(value: Any) -> datetime | None:
    """Turn a front matter date into a naive UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return _coerce_datetime(datetime.fromisoformat(value.strip()))
        except ValueError:
            logger.debug("Ignoring unparseable date %r", value)
    return None


def _first_date(attrs: dict[str, Any], *keys: str) -> datetime | None:
    for key in keys:
        if key in attrs:
            return _coerce_datetime(attrs[key])
    return None


def _tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        raw = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        raw = [str(v) for v in value]
    else:
        raw = [str(value)]
    tags: list[str] = []
    for tag in raw:
        tag = tag.strip().lstrip("#")
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def _fallback_title(slug: str, root_name: str) -> str:
    if not slug:
        return root_name
    return slug.replace("-", " ").replace("_", " ")


async def materialize_page(
    entry: ContentEntry,
    index: EntryIndex,
    settings: Settings,
    root_name: str = INDEX_NAME,
) -> Page:
    """Build a page from one content entry.

    Args:
        entry: The content file.
        index: Every content entry of this build, for link resolution.
        settings: Build settings (ignore keys).
        root_name: Title used for the site root when it has none.

    Returns:
        The materialized page.

    Raises:
        MaterializationError: If the file can't be read or its front
            matter can't be parsed.
    """
    try:
        text = await read_entry(entry)
    except (OSError, UnicodeDecodeError) as e:
        raise MaterializationError(entry.rel_path, f"unreadable file: {e}") from e

    try:
        attrs, body = split_front_matter(text)
    except FrontMatterError as e:
        raise MaterializationError(entry.rel_path, str(e)) from e

    path = page_path(entry.rel_path)
    slug = page_slug(path)
    base_dir = "/" + posixpath.dirname(entry.rel_path)
    file_exts = FILE_EXTS | {f".{ext.lower().lstrip('.')}" for ext in settings.static_exts}

    def resolve_route(target: str) -> str | None:
        resolved = resolve_link(target, base_dir, index, file_exts)
        return page_route(resolved) if resolved is not None else None

    def exists(target: str) -> bool:
        return resolve_link(target, base_dir, index, file_exts) in index

    links: list[str] = []
    for target in extract_links(body):
        resolved = resolve_link(target, base_dir, index, file_exts)
        if resolved is not None and resolved not in links:
            links.append(resolved)

    html, toc_html = render_markdown(body, resolve_route=resolve_route, page_exists=exists)

    title = attrs.get("title")
    description = attrs.get("description")

    return Page(
        path=path,
        route=page_route(path),
        slug=slug,
        source=entry.rel_path,
        title=str(title) if title else (extract_title(body) or _fallback_title(slug, root_name)),
        description=str(description) if description else None,
        attrs=attrs,
        date_published=_first_date(attrs, "date_published", "date"),
        date_updated=_first_date(attrs, "date_updated", "updated"),
        tags=_tags(attrs.get("tags")),
        links=tuple(links),
        is_index=posixpath.splitext(entry.name)[0] == INDEX_NAME,
        pinned="pinned" in attrs,
        draft=any(key in attrs for key in settings.ignore_keys),
        html=html,
        toc_html=toc_html,
    )


async def materialize_pages(
    entries: list[ContentEntry],
    settings: Settings,
    root_name: str = INDEX_NAME,
) -> list[Page]:
    """Materialize every entry, one at a time, in entry order.

    Entries that fail are logged and dropped, as are entries resolving to
    a path that an earlier entry already claimed. Drafts are dropped unless
    ``settings.render_drafts`` is set.
    """
    index = EntryIndex(entries)
    pages: list[Page] = []
    seen: set[str] = set()

    for entry in entries:
        try:
            page = await materialize_page(entry, index, settings, root_name)
            if page.path in seen:
                raise MaterializationError(entry.rel_path, f"duplicate page path {page.path}")
        except MaterializationError as e:
            logger.warning("%s", e)
            continue
        seen.add(page.path)
        pages.append(page)

    if not settings.render_drafts:
        drafts = [p for p in pages if p.draft]
        if drafts:
            logger.info("Skipping %d draft page(s)", len(drafts))
        pages = [p for p in pages if not p.draft]

    return pages
