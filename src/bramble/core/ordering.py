"""Page ordering and breadcrumb derivation."""

import re
from collections.abc import Iterable
from itertools import groupby

from bramble.core.models import Breadcrumb, Page

_TAG_SLUG_PATTERN = re.compile(r"[^\w-]+")


def _rank(page: Page) -> int:
    """Pinned pages first, then index pages, then everything else."""
    if page.pinned:
        return 0
    if page.is_index:
        return 1
    return 2


def _newest_first(pages: list[Page]) -> list[Page]:
    """Order dated pages newest first, leaving undated pages where they are.

    Dated pages are sorted among the slots dated pages occupied, so undated
    pages keep their position relative to everything around them.
    """
    slots = [i for i, page in enumerate(pages) if page.date_published is not None]
    dated = sorted(
        (pages[i] for i in slots),
        key=lambda page: page.date_published,
        reverse=True,
    )
    ordered = list(pages)
    for slot, page in zip(slots, dated):
        ordered[slot] = page
    return ordered


def sort_pages(pages: Iterable[Page]) -> list[Page]:
    """Sort pages for display: pinned, then index pages, then newest first.

    Ties keep their input order. Sorting an already sorted list returns
    it unchanged.
    """
    result: list[Page] = []
    for _, group in groupby(sorted(pages, key=_rank), key=_rank):
        result.extend(_newest_first(list(group)))
    return result


def sort_newest_first(pages: Iterable[Page]) -> list[Page]:
    """Order pages by publication date, newest first, undated pages last."""
    pages = list(pages)
    dated = [p for p in pages if p.date_published is not None]
    undated = [p for p in pages if p.date_published is None]
    dated.sort(key=lambda page: page.date_published, reverse=True)
    return dated + undated


def breadcrumbs(route: str, root_name: str = "index") -> list[Breadcrumb]:
    """Navigation trail for a page route.

    ``/blog/2024/post/`` yields home, ``blog``, ``2024`` and a final
    current crumb for ``post``. The site root yields a single current crumb.
    """
    segments = [s for s in route.split("/") if s]
    if not segments:
        return [Breadcrumb(slug=root_name, url="", current=True)]

    crumbs = [Breadcrumb(slug=root_name, url="/")]
    for i, segment in enumerate(segments[:-1]):
        crumbs.append(Breadcrumb(slug=segment, url="/" + "/".join(segments[: i + 1])))
    crumbs.append(Breadcrumb(slug=segments[-1], url="", current=True))
    return crumbs


def tag_breadcrumbs(tag: str, root_name: str = "index") -> list[Breadcrumb]:
    """Two-step trail for a tag page: home, then the tag itself."""
    return [
        Breadcrumb(slug=root_name, url="/"),
        Breadcrumb(slug=f"#{tag}", url="", current=True, is_tag=True),
    ]


def tag_slug(tag: str) -> str:
    """URL-safe form of a tag name."""
    slug = _TAG_SLUG_PATTERN.sub("-", tag.strip().lower()).strip("-")
    return slug or "tag"


def unique_tag_slugs(tags: Iterable[str]) -> dict[str, str]:
    """Map each tag to a slug no earlier tag has taken.

    Colliding tags get ``-2``, ``-3`` and so on in first-seen order, so
    ``C`` and ``C++`` become ``c`` and ``c-2``.
    """
    slugs: dict[str, str] = {}
    taken: set[str] = set()
    for tag in tags:
        if tag in slugs:
            continue
        base = slug = tag_slug(tag)
        n = 2
        while slug in taken:
            slug = f"{base}-{n}"
            n += 1
        slugs[tag] = slug
        taken.add(slug)
    return slugs


def tag_route(tag: str, tag_dir: str = "tags", slug: str | None = None) -> str:
    """Public URL of a tag page, using ``slug`` when given."""
    return f"/{tag_dir.strip('/')}/{slug or tag_slug(tag)}/"
