"""Build orchestrator: content tree in, static site out.

Pipeline order:
    1. Check the required views
    2. List content, static and asset entries
    3. Materialize pages and build the content graph
    4. Render content pages, tag pages and the feed in memory
    5. Clear the output directory and write everything

Nothing on disk is touched before step 5, so a fatal error while loading
or rendering leaves the previous build in place.
"""

import asyncio
import logging
import shutil
import time
from pathlib import Path
from typing import Any

from bramble.config import Settings, SiteConfig, load_site_config
from bramble.core.entries import (
    get_asset_entries,
    get_content_entries,
    get_static_entries,
    is_within,
)
from bramble.core.errors import BuildError, RenderError
from bramble.core.graph import ContentGraph
from bramble.core.models import BuildResult, ContentEntry, OutputFile, Page, TagPage
from bramble.core.ordering import (
    breadcrumbs,
    sort_newest_first,
    sort_pages,
    tag_breadcrumbs,
)
from bramble.core.pages import materialize_pages
from bramble.core.render import Renderer

logger = logging.getLogger(__name__)

FEED_FILENAME = "feed.xml"


def content_output_path(output_dir: Path, page: Page) -> Path:
    """``<output>/<dir>/<slug>/index.html`` for a page, ``<output>/index.html`` for the root."""
    rel = page.path.strip("/")
    if not rel:
        return output_dir / "index.html"
    return output_dir / rel / "index.html"


def tag_output_path(output_dir: Path, tag_page: TagPage) -> Path:
    return output_dir / tag_page.route.strip("/") / "index.html"


class Builder:
    """Runs one full build of a site.

    Args:
        settings: Build settings.
        include_refresh: Whether views should include the live-reload script.
        renderer: View renderer; defaults to one over ``settings.views_dir``.
    """

    def __init__(
        self,
        settings: Settings,
        include_refresh: bool = False,
        renderer: Renderer | None = None,
    ) -> None:
        self.settings = settings
        self.include_refresh = include_refresh
        self.renderer = renderer or Renderer(settings.views_dir, tag_dir=settings.tag_dir)
        self.site: SiteConfig = SiteConfig()
        self.style: str = ""

    async def build(self) -> BuildResult:
        """Run the whole pipeline and return the result.

        Raises:
            BuildError: If a view is missing or the output can't be written.
            ConfigError: If the site config is invalid.
        """
        start = time.perf_counter()
        settings = self.settings
        output_dir = settings.output_dir

        if is_within(settings.input_dir, output_dir):
            raise BuildError(
                f"Output directory {output_dir} contains the input directory"
            )

        self.renderer.require(settings.page_view, settings.feed_view)
        self.site = load_site_config(settings.site_config)
        self.style = self._read_style()

        content_entries, static_entries, asset_entries = await asyncio.gather(
            get_content_entries(settings.input_dir, output_dir),
            get_static_entries(settings.input_dir, output_dir, settings.static_exts),
            get_asset_entries(settings.assets_dir),
        )

        pages = await materialize_pages(content_entries, settings, self.site.root_name)
        graph = ContentGraph(pages)
        self.renderer.use_tag_slugs(graph.tag_slugs)

        content_files, tag_files, feed_files = await asyncio.gather(
            self.render_content_pages(graph),
            self.render_tag_pages(graph),
            self.render_feed(graph),
        )

        files = [
            *content_files,
            *tag_files,
            *feed_files,
            *self._copies(static_entries, "static"),
            *self._copies(asset_entries, "asset"),
        ]
        write_output(output_dir, files)

        result = BuildResult(
            output_dir=output_dir,
            files=files,
            dead_links=graph.dead_links,
            duration=time.perf_counter() - start,
        )
        log_summary(result)
        return result

    def _read_style(self) -> str:
        style_file = self.settings.style_file
        if style_file is None:
            return ""
        try:
            return style_file.read_text(encoding="utf-8")
        except OSError as e:
            raise BuildError(f"Can't read stylesheet {style_file}: {e}") from e

    def page_bag(self, page: Page, graph: ContentGraph) -> dict[str, Any]:
        """Data bag handed to the page view."""
        return {
            "page": page,
            "indexLayout": "log" if page.attrs.get("log") is True else "default",
            "toc": page.attrs.get("toc") is True,
            "breadcrumbs": breadcrumbs(page.route, self.site.root_name),
            "childPages": sort_pages(graph.children(page)) if page.is_index else [],
            "backlinkPages": sort_pages(graph.backlinks(page)),
            "pagesByTag": graph.tags_for(page),
            "childTags": graph.child_tags(page) if page.is_index else [],
            "site": self.site,
            "style": self.style,
            "includeRefresh": self.include_refresh,
        }

    def tag_bag(self, tag_page: TagPage) -> dict[str, Any]:
        """Data bag handed to the page view for a tag page."""
        tag = tag_page.name
        return {
            "page": {
                "title": f"#{tag}",
                "description": f"Pages tagged #{tag}",
            },
            "tagName": tag,
            "breadcrumbs": tag_breadcrumbs(tag, self.site.root_name),
            "childPages": list(tag_page.pages),
            "site": self.site,
            "style": self.style,
            "includeRefresh": self.include_refresh,
        }

    async def render_content_pages(self, graph: ContentGraph) -> list[OutputFile]:
        """Render every page, one at a time, skipping pages that fail."""
        files: list[OutputFile] = []
        for page in graph:
            try:
                html = self.renderer.render(self.settings.page_view, self.page_bag(page, graph))
            except RenderError as e:
                logger.error("Can't render page %s: %s", page.path, e)
                continue
            files.append(
                OutputFile(
                    input_path=page.source,
                    output_path=content_output_path(self.settings.output_dir, page),
                    kind="content",
                    content=html,
                )
            )
        return files

    async def render_tag_pages(self, graph: ContentGraph) -> list[OutputFile]:
        """Render one page per distinct tag."""
        files: list[OutputFile] = []
        for tag_page in graph.tag_pages(self.settings.tag_dir):
            tag = tag_page.name
            try:
                html = self.renderer.render(self.settings.page_view, self.tag_bag(tag_page))
            except RenderError as e:
                logger.error("Can't render tag page #%s: %s", tag, e)
                continue
            files.append(
                OutputFile(
                    input_path=f"#{tag}",
                    output_path=tag_output_path(self.settings.output_dir, tag_page),
                    kind="tag",
                    content=html,
                )
            )
        return files

    async def render_feed(self, graph: ContentGraph) -> list[OutputFile]:
        """Render the feed document from the full page set."""
        bag = {"pages": sort_newest_first(graph), "site": self.site}
        try:
            xml = self.renderer.render(self.settings.feed_view, bag)
        except RenderError as e:
            logger.error("Can't render feed: %s", e)
            return []
        return [
            OutputFile(
                input_path=self.settings.feed_view,
                output_path=self.settings.output_dir / FEED_FILENAME,
                kind="feed",
                content=xml,
            )
        ]

    def _copies(self, entries: list[ContentEntry], kind: str) -> list[OutputFile]:
        return [
            OutputFile(
                input_path=entry.rel_path,
                output_path=self.settings.output_dir / entry.rel_path,
                kind=kind,
                copy_from=entry.source,
            )
            for entry in entries
        ]


def clear_output(output_dir: Path) -> None:
    """Empty the output directory, creating it if needed."""
    if not output_dir.exists():
        output_dir.mkdir(parents=True)
        return
    for child in output_dir.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()


def write_output(output_dir: Path, files: list[OutputFile]) -> None:
    """Replace the contents of the output directory with ``files``.

    Raises:
        BuildError: If clearing or writing fails.
    """
    try:
        clear_output(output_dir)
        for file in files:
            file.output_path.parent.mkdir(parents=True, exist_ok=True)
            if file.content is not None:
                file.output_path.write_bytes(file.content.encode("utf-8"))
            elif file.copy_from is not None:
                shutil.copyfile(file.copy_from, file.output_path)
            logger.debug(
                "  %s\t-> %s", file.input_path, file.output_path.relative_to(output_dir)
            )
    except OSError as e:
        raise BuildError(f"Can't write output to {output_dir}: {e}") from e


def log_summary(result: BuildResult) -> None:
    """Log page/static/asset counts, elapsed time and dead links."""
    logger.info(
        "Built %d pages and %d tag pages, copied %d static files and %d site assets in %.2fs",
        result.page_count,
        result.tag_count,
        result.static_count,
        result.asset_count,
        result.duration,
    )
    if result.dead_links:
        logger.warning("Found %d dead link(s):", len(result.dead_links))
        for link in result.dead_links:
            logger.warning("  [%s] links to [%s] (dead)", link.source, link.target)


async def build(
    settings: Settings,
    *,
    include_refresh: bool = False,
    renderer: Renderer | None = None,
) -> BuildResult:
    """Build the site described by ``settings``."""
    return await Builder(settings, include_refresh=include_refresh, renderer=renderer).build()
