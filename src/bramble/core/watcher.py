"""File watcher: triggers a full rebuild when the site's sources change.

Watches the input tree plus the views and assets directories. Changes to
hidden or underscored paths and to the output directory are ignored, so a
build writing its own output never triggers another build.
"""

import asyncio
import logging
from pathlib import Path
from typing import Literal

from watchfiles import Change, awatch

from bramble.config import Settings
from bramble.core.entries import is_hidden_or_underscored, is_within
from bramble.core.ws_manager import DevSession

logger = logging.getLogger(__name__)

# Mapping from watchfiles Change enum to log-friendly kinds.
_CHANGE_KIND_MAP: dict[Change, Literal["created", "modified", "deleted"]] = {
    Change.added: "created",
    Change.modified: "modified",
    Change.deleted: "deleted",
}


def is_relevant_change(path: Path, settings: Settings) -> bool:
    """Decide whether a changed path should trigger a rebuild."""
    for source in (settings.views_dir, settings.assets_dir):
        if is_within(path, source):
            return True
    for source_file in (settings.site_config, settings.style_file):
        if source_file is not None and path.resolve() == source_file.resolve():
            return True

    if is_within(path, settings.output_dir):
        return False
    try:
        rel = path.resolve().relative_to(settings.input_dir.resolve())
    except ValueError:
        return False
    return not is_hidden_or_underscored(rel)


def watch_roots(settings: Settings) -> list[Path]:
    """Existing directories to watch, without nested duplicates."""
    candidates = [settings.input_dir, settings.views_dir, settings.assets_dir]
    if settings.style_file is not None:
        candidates.append(settings.style_file.parent)
    candidates.append(settings.site_config.parent)

    roots: list[Path] = []
    for path in (p.resolve() for p in candidates if p.is_dir()):
        if any(is_within(path, root) for root in roots):
            continue
        roots = [root for root in roots if not is_within(root, path)]
        roots.append(path)
    return roots


async def watch(
    settings: Settings,
    session: DevSession,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Rebuild through ``session`` whenever relevant files change.

    Runs until ``stop_event`` is set or the task is cancelled.
    """
    roots = watch_roots(settings)
    logger.info("Watching %s", ", ".join(str(r) for r in roots))

    async for changes in awatch(*roots, stop_event=stop_event, debounce=300, step=100):
        relevant = sorted(
            (Path(path_str), change)
            for change, path_str in changes
            if is_relevant_change(Path(path_str), settings)
        )
        if not relevant:
            continue

        for path, change in relevant:
            logger.info("[%s]\t%s", _CHANGE_KIND_MAP.get(change, "modified"), path)
        await session.rebuild()
