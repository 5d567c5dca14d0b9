"""Content entry source: the files a build reads from disk.

Enumeration is sorted so that the page order, and with it dead-link
reports and output order, never depends on the filesystem.
"""

import logging
from collections.abc import Iterable
from pathlib import Path, PurePath

from bramble.core.models import ContentEntry

logger = logging.getLogger(__name__)

CONTENT_EXTS = (".md", ".markdown")

# Path segments starting with these are never part of the site
HIDDEN_PREFIXES = (".", "_")


def is_hidden_or_underscored(rel_path: PurePath) -> bool:
    """Check whether any segment of a relative path is hidden or underscored."""
    return any(part.startswith(HIDDEN_PREFIXES) for part in rel_path.parts)


def is_within(path: Path, parent: Path) -> bool:
    """Check whether ``path`` is ``parent`` or lies below it."""
    try:
        path.resolve().relative_to(parent.resolve())
    except ValueError:
        return False
    return True


def _walk(root: Path, exclude: Iterable[Path] = ()) -> list[ContentEntry]:
    """List visible files under ``root`` as sorted entries."""
    if not root.is_dir():
        return []

    excluded = [p for p in exclude if p.exists()]
    entries = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(root)
        if is_hidden_or_underscored(rel):
            continue
        if any(is_within(path, ex) for ex in excluded):
            continue
        entries.append(ContentEntry(rel_path=rel.as_posix(), source=path.resolve()))
    return entries


async def get_content_entries(input_dir: Path, output_dir: Path) -> list[ContentEntry]:
    """List Markdown content files under the input directory."""
    entries = [
        e for e in _walk(input_dir, exclude=[output_dir])
        if e.rel_path.lower().endswith(CONTENT_EXTS)
    ]
    logger.debug("Found %d content entries in %s", len(entries), input_dir)
    return entries


async def get_static_entries(
    input_dir: Path,
    output_dir: Path,
    static_exts: Iterable[str],
) -> list[ContentEntry]:
    """List static files (images, media, ...) under the input directory."""
    suffixes = tuple(f".{ext.lower().lstrip('.')}" for ext in static_exts)
    if not suffixes:
        return []
    entries = [
        e for e in _walk(input_dir, exclude=[output_dir])
        if e.rel_path.lower().endswith(suffixes)
    ]
    logger.debug("Found %d static entries in %s", len(entries), input_dir)
    return entries


async def get_asset_entries(assets_dir: Path) -> list[ContentEntry]:
    """List site assets (stylesheets, scripts, icons) in the assets directory."""
    entries = _walk(assets_dir)
    logger.debug("Found %d asset entries in %s", len(entries), assets_dir)
    return entries


async def read_entry(entry: ContentEntry) -> str:
    """Read an entry's raw text."""
    return entry.source.read_text(encoding="utf-8")
