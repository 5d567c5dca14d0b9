"""Unit tests for front matter splitting and the Markdown parser."""

import pytest

from bramble.core.errors import FrontMatterError
from bramble.core.parser import (
    create_parser,
    extract_links,
    extract_title,
    render_markdown,
    split_front_matter,
)


def _routes(target: str) -> str | None:
    """Resolve ``other.md`` and ``Other`` to ``/other/``; leave the rest alone."""
    if target in ("other.md", "Other"):
        return "/other/"
    return None


# ============================================================
# Front matter
# ============================================================


class TestSplitFrontMatter:
    def test_no_front_matter(self):
        attrs, body = split_front_matter("# Hello\n")
        assert attrs == {}
        assert body == "# Hello\n"

    def test_basic_front_matter(self):
        attrs, body = split_front_matter("---\ntitle: Hello\ntags: [a, b]\n---\nBody\n")
        assert attrs == {"title": "Hello", "tags": ["a", "b"]}
        assert body == "Body\n"

    def test_empty_front_matter(self):
        attrs, body = split_front_matter("---\n---\nBody")
        assert attrs == {}
        assert body == "Body"

    def test_crlf_line_endings(self):
        attrs, body = split_front_matter("---\r\ntitle: Hi\r\n---\r\nBody")
        assert attrs == {"title": "Hi"}
        assert body == "Body"

    def test_horizontal_rule_later_is_body(self):
        text = "Intro\n\n---\n\nMore"
        attrs, body = split_front_matter(text)
        assert attrs == {}
        assert body == text

    def test_invalid_yaml_raises(self):
        with pytest.raises(FrontMatterError):
            split_front_matter("---\ntitle: [unclosed\n---\nBody")

    def test_non_mapping_raises(self):
        with pytest.raises(FrontMatterError):
            split_front_matter("---\n- a\n- b\n---\nBody")

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            split_front_matter("---\njust a string\n---\n")


# ============================================================
# Link extraction
# ============================================================


class TestExtractLinks:
    def test_inline_links_in_order(self):
        assert extract_links("[a](one.md) then [b](/two/)") == ["one.md", "/two/"]

    def test_wiki_links_mixed_with_inline(self):
        links = extract_links("[[First]] and [x](second.md) and [[Third|label]]")
        assert links == ["First", "second.md", "Third"]

    def test_reference_definitions(self):
        links = extract_links("See [ref][r].\n\n[r]: target.md\n")
        assert links == ["target.md"]

    def test_images_are_skipped(self):
        assert extract_links("![alt](pic.png) [doc](doc.md)") == ["doc.md"]

    def test_links_in_code_are_skipped(self):
        md = "`[a](inline.md)`\n\n```\n[b](fenced.md)\n[[Wiki]]\n```\n\n[c](real.md)"
        assert extract_links(md) == ["real.md"]

    def test_link_with_title(self):
        assert extract_links('[a](page.md "Title")') == ["page.md"]

    def test_no_links(self):
        assert extract_links("Just text.") == []


class TestExtractTitle:
    def test_first_h1(self):
        assert extract_title("Intro\n\n# The Title\n\n# Second") == "The Title"

    def test_ignores_h2(self):
        assert extract_title("## Not this") is None

    def test_ignores_heading_in_code(self):
        assert extract_title("```\n# comment\n```\n") is None


# ============================================================
# Rendering
# ============================================================


class TestWikiLinks:
    def test_existing_page_link(self):
        html, _ = render_markdown("See [[Other]]", resolve_route=_routes, page_exists=lambda t: True)
        assert 'class="wiki-link"' in html
        assert 'href="/other/"' in html
        assert ">Other</a>" in html

    def test_missing_page_link(self):
        html, _ = render_markdown("See [[Missing]]", page_exists=lambda t: False)
        assert "wiki-link-missing" in html

    def test_display_text(self):
        html, _ = render_markdown("[[Other|Click Here]]", resolve_route=_routes)
        assert ">Click Here</a>" in html
        assert 'href="/other/"' in html

    def test_default_page_exists(self):
        """Without a page_exists callback, links default to existing style."""
        html, _ = render_markdown("[[SomePage]]")
        assert "wiki-link-missing" not in html
        assert "wiki-link" in html


class TestInternalLinks:
    def test_relative_link_rewritten_to_route(self):
        html, _ = render_markdown("[go](other.md)", resolve_route=_routes)
        assert 'href="/other/"' in html

    def test_fragment_is_kept(self):
        html, _ = render_markdown("[go](other.md#part)", resolve_route=_routes)
        assert 'href="/other/#part"' in html

    def test_external_link_untouched(self):
        html, _ = render_markdown("[go](https://example.com/x.md)", resolve_route=_routes)
        assert 'href="https://example.com/x.md"' in html

    def test_fragment_only_untouched(self):
        html, _ = render_markdown("[go](#top)", resolve_route=_routes)
        assert 'href="#top"' in html


class TestRenderMarkdown:
    def test_strikethrough(self):
        html, _ = render_markdown("~~deleted~~")
        assert "<del>deleted</del>" in html

    def test_task_list(self):
        html, _ = render_markdown("- [ ] todo\n- [x] done")
        assert 'type="checkbox"' in html

    def test_table(self):
        html, _ = render_markdown("| A | B |\n|---|---|\n| 1 | 2 |")
        assert "<table>" in html
        assert "<td>1</td>" in html

    def test_toc_contains_headings(self):
        _, toc = render_markdown("# One\n\n## Two\n")
        assert "One" in toc
        assert "Two" in toc

    def test_create_parser_returns_markdown(self):
        from markdown import Markdown

        assert isinstance(create_parser(), Markdown)
