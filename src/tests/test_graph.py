"""Tests for the content graph: children, backlinks, tags and dead links."""

from datetime import datetime

from bramble.core.graph import ContentGraph
from bramble.core.models import DeadLink, Page


def _page(
    path: str,
    *,
    links: tuple[str, ...] = (),
    tags: tuple[str, ...] = (),
    is_index: bool = False,
    date: datetime | None = None,
) -> Page:
    return Page(
        path=path,
        route="/" if path == "/" else f"{path}/",
        slug=path.rsplit("/", 1)[-1],
        source=f"{path.strip('/') or 'index'}.md",
        title=path,
        links=links,
        tags=tags,
        is_index=is_index,
        date_published=date,
    )


def _paths(pages) -> list[str]:
    return [p.path for p in pages]


# ============================================================
# Children
# ============================================================


class TestChildren:
    def test_children_of_directory_index(self):
        root = _page("/", is_index=True)
        blog = _page("/blog", is_index=True)
        post = _page("/blog/post")
        about = _page("/about")
        graph = ContentGraph([root, blog, post, about])

        assert _paths(graph.children(root)) == ["/blog", "/about"]
        assert _paths(graph.children(blog)) == ["/blog/post"]
        assert graph.children(post) == []

    def test_children_match_parent_definition(self):
        pages = [
            _page("/", is_index=True),
            _page("/a", is_index=True),
            _page("/a/b"),
            _page("/a/c", is_index=True),
            _page("/a/c/d"),
            _page("/e"),
        ]
        graph = ContentGraph(pages)
        for p in pages:
            for q in pages:
                parent = None if q.path == "/" else q.path.rsplit("/", 1)[0] or "/"
                expected = parent == p.path and q.path != p.path
                assert (q in graph.children(p)) is expected


# ============================================================
# Backlinks
# ============================================================


class TestBacklinks:
    def test_backlinks(self):
        a = _page("/a", links=("/b", "/c"))
        b = _page("/b", links=("/c",))
        c = _page("/c")
        graph = ContentGraph([a, b, c])

        assert _paths(graph.backlinks(c)) == ["/a", "/b"]
        assert _paths(graph.backlinks(b)) == ["/a"]
        assert graph.backlinks(a) == []

    def test_self_link_is_not_a_backlink(self):
        a = _page("/a", links=("/a",))
        graph = ContentGraph([a])
        assert graph.backlinks(a) == []


# ============================================================
# Tags
# ============================================================


class TestTags:
    def test_tag_index_lists_all_members(self):
        a = _page("/a", tags=("t",))
        b = _page("/b", tags=("t", "u"))
        graph = ContentGraph([a, b])

        assert _paths(graph.tag_index["t"]) == ["/a", "/b"]
        assert _paths(graph.tag_members("u")) == ["/b"]
        assert graph.tag_members("nope") == []

    def test_tags_for_excludes_the_page_itself(self):
        a = _page("/a", tags=("t",))
        b = _page("/b", tags=("t",))
        graph = ContentGraph([a, b])

        assert {tag: _paths(pages) for tag, pages in graph.tags_for(a).items()} == {"t": ["/b"]}
        assert _paths(graph.tag_members("t")) == ["/a", "/b"]

    def test_tags_for_omits_tags_without_other_members(self):
        a = _page("/a", tags=("solo", "shared"))
        b = _page("/b", tags=("shared",))
        graph = ContentGraph([a, b])
        assert list(graph.tags_for(a)) == ["shared"]

    def test_tags_for_sorts_members(self):
        a = _page("/a", tags=("t",))
        old = _page("/old", tags=("t",), date=datetime(2020, 1, 1))
        new = _page("/new", tags=("t",), date=datetime(2024, 1, 1))
        graph = ContentGraph([a, old, new])
        assert _paths(graph.tags_for(a)["t"]) == ["/new", "/old"]

    def test_tag_pages(self):
        a = _page("/a", tags=("Deep Work",))
        old = _page("/old", tags=("Deep Work",), date=datetime(2020, 1, 1))
        new = _page("/new", tags=("Deep Work",), date=datetime(2024, 1, 1))
        (tag_page,) = ContentGraph([a, old, new]).tag_pages()
        assert tag_page.name == "Deep Work"
        assert tag_page.slug == "deep-work"
        assert tag_page.route == "/tags/deep-work/"
        assert _paths(tag_page.pages) == ["/a", "/new", "/old"]

    def test_tags_sharing_a_slug_get_distinct_routes(self):
        a = _page("/a", tags=("C++",))
        b = _page("/b", tags=("C",))
        graph = ContentGraph([a, b])

        assert graph.tag_slugs == {"C++": "c", "C": "c-2"}
        routes = {t.name: t.route for t in graph.tag_pages()}
        assert routes == {"C++": "/tags/c/", "C": "/tags/c-2/"}

    def test_child_tags(self):
        root = _page("/", is_index=True)
        a = _page("/a", tags=("x", "y"))
        b = _page("/b", tags=("y", "z"))
        graph = ContentGraph([root, a, b])
        assert graph.child_tags(root) == ["x", "y", "z"]


# ============================================================
# Dead links
# ============================================================


class TestDeadLinks:
    def test_missing_target_is_dead(self):
        graph = ContentGraph([_page("/a", links=("/b",))])
        assert graph.dead_links == [DeadLink(source="/a", target="/b")]

    def test_adding_target_removes_dead_link(self):
        graph = ContentGraph([_page("/a", links=("/b",)), _page("/b")])
        assert graph.dead_links == []

    def test_lookup(self):
        a = _page("/a")
        graph = ContentGraph([a])
        assert "/a" in graph
        assert graph.get("/a") is a
        assert graph.get("/missing") is None
        assert len(graph) == 1
