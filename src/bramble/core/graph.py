"""Content graph: derived relations over an immutable page snapshot.

Children, backlinks and tag memberships are computed from index maps
built once per build. No page ever stores its incoming edges.
"""

import logging
from collections.abc import Iterable, Iterator

from bramble.core.models import DeadLink, Page, TagPage
from bramble.core.ordering import sort_pages, tag_route, unique_tag_slugs
from bramble.core.pages import parent_path

logger = logging.getLogger(__name__)


class ContentGraph:
    """Parent/child, backlink, tag and dead-link relations of a page set.

    Args:
        pages: The materialized pages of one build, in build order.
    """

    def __init__(self, pages: Iterable[Page]) -> None:
        self._pages: tuple[Page, ...] = tuple(pages)
        self._by_path: dict[str, Page] = {}
        self._by_parent: dict[str, list[Page]] = {}
        self._linked_from: dict[str, list[Page]] = {}
        self._tag_index: dict[str, list[Page]] = {}

        for page in self._pages:
            self._by_path.setdefault(page.path, page)

        for page in self._pages:
            parent = parent_path(page.path)
            if parent is not None:
                self._by_parent.setdefault(parent, []).append(page)
            for target in page.links:
                if target != page.path:
                    self._linked_from.setdefault(target, []).append(page)
            for tag in page.tags:
                self._tag_index.setdefault(tag, []).append(page)

        self._tag_slugs = unique_tag_slugs(self._tag_index)

        self._dead_links = [
            DeadLink(source=page.path, target=target)
            for page in self._pages
            for target in page.links
            if target not in self._by_path
        ]

        logger.debug(
            "Content graph: %d pages, %d tags, %d dead links",
            len(self._pages),
            len(self._tag_index),
            len(self._dead_links),
        )

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __contains__(self, path: object) -> bool:
        return path in self._by_path

    @property
    def pages(self) -> tuple[Page, ...]:
        return self._pages

    def get(self, path: str) -> Page | None:
        """Look up a page by its canonical path."""
        return self._by_path.get(path)

    def children(self, page: Page) -> list[Page]:
        """Pages whose parent directory is this page's path."""
        return [q for q in self._by_parent.get(page.path, []) if q.path != page.path]

    def backlinks(self, page: Page) -> list[Page]:
        """Pages whose links contain this page's path."""
        return list(self._linked_from.get(page.path, []))

    @property
    def tag_index(self) -> dict[str, list[Page]]:
        """Every tag mapped to the pages carrying it."""
        return {tag: list(pages) for tag, pages in self._tag_index.items()}

    def tag_members(self, tag: str) -> list[Page]:
        """Pages carrying a tag, in build order."""
        return list(self._tag_index.get(tag, []))

    @property
    def tag_slugs(self) -> dict[str, str]:
        """Every tag mapped to its URL slug, unique across the build."""
        return dict(self._tag_slugs)

    def tag_pages(self, tag_dir: str = "tags") -> list[TagPage]:
        """One synthetic page per tag, members sorted for display."""
        return [
            TagPage(
                name=tag,
                slug=self._tag_slugs[tag],
                route=tag_route(tag, tag_dir, self._tag_slugs[tag]),
                pages=tuple(sort_pages(members)),
            )
            for tag, members in self._tag_index.items()
        ]

    def tags_for(self, page: Page) -> dict[str, list[Page]]:
        """Sorted members of each of the page's tags, excluding the page.

        Tags left with no other member are omitted.
        """
        listing: dict[str, list[Page]] = {}
        for tag in page.tags:
            members = [q for q in self._tag_index.get(tag, []) if q.path != page.path]
            if members:
                listing[tag] = sort_pages(members)
        return listing

    def child_tags(self, page: Page) -> list[str]:
        """Distinct tags carried by the page's children, first seen first."""
        tags: list[str] = []
        for child in self.children(page):
            for tag in child.tags:
                if tag not in tags:
                    tags.append(tag)
        return tags

    @property
    def dead_links(self) -> list[DeadLink]:
        """Links whose target matches no page, in page-then-link order."""
        return list(self._dead_links)
