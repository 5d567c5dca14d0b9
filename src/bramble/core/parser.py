"""Front matter and Markdown parsing with internal link support."""

import re
from typing import Any, Callable
from xml.etree.ElementTree import Element

import yaml
from markdown import Markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from markdown.treeprocessors import Treeprocessor

from bramble.core.errors import FrontMatterError

FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)??---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)

# Pattern for wiki links: [[target]] or [[target|Display Text]]
WIKI_LINK_PATTERN = r"\[\[([^\]|]+)(?:\|([^\]]+))?\]\]"

# Inline links, not images: [text](target "title")
MARKDOWN_LINK_PATTERN = re.compile(r"(?<!!)\[[^\]]*\]\(\s*<?([^)\s>]+)>?[^)]*\)")

# Reference definitions: [id]: target
REFERENCE_LINK_PATTERN = re.compile(r"^ {0,3}\[[^\]]+\]:[ \t]*<?([^\s>]+)>?", re.MULTILINE)

HEADING_PATTERN = re.compile(r"^#[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)

_CODE_PATTERN = re.compile(r"(```.*?```|~~~.*?~~~|`[^`\n]*`)", re.DOTALL)


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split raw file text into front matter attributes and body.

    Args:
        text: Raw file content, optionally starting with a ``---`` block.

    Returns:
        Tuple of (attrs, body). Text without front matter yields ``{}``.

    Raises:
        FrontMatterError: If the block isn't valid YAML or isn't a mapping.
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return {}, text

    try:
        attrs = yaml.safe_load(match.group(1) or "") or {}
    except yaml.YAMLError as e:
        raise FrontMatterError(f"invalid front matter: {e}") from e
    if not isinstance(attrs, dict):
        raise FrontMatterError("front matter must be a mapping")

    return {str(k): v for k, v in attrs.items()}, text[match.end() :]


def _strip_code(content: str) -> str:
    """Blank out fenced and inline code, keeping offsets stable."""
    return _CODE_PATTERN.sub(lambda m: " " * len(m.group(0)), content)


def extract_links(content: str) -> list[str]:
    """Extract raw link targets from Markdown content.

    Collects inline links, reference definitions and wiki links, in order
    of appearance. Images and anything inside code are skipped.

    Args:
        content: Markdown body.

    Returns:
        List of raw targets as written in the source.
    """
    text = _strip_code(content)
    found: list[tuple[int, str]] = []
    for m in MARKDOWN_LINK_PATTERN.finditer(text):
        found.append((m.start(), m.group(1)))
    for m in REFERENCE_LINK_PATTERN.finditer(text):
        found.append((m.start(), m.group(1)))
    for m in re.finditer(WIKI_LINK_PATTERN, text):
        found.append((m.start(), m.group(1).strip()))
    found.sort(key=lambda item: item[0])
    return [target for _, target in found]


def extract_title(content: str) -> str | None:
    """Return the text of the first level-one heading, if any."""
    match = HEADING_PATTERN.search(_strip_code(content))
    if match:
        return match.group(1).strip()
    return None


class WikiLinkInlineProcessor(InlineProcessor):
    """Inline processor for wiki links."""

    def __init__(
        self,
        pattern: str,
        md: Markdown,
        resolve_route: Callable[[str], str | None],
        page_exists: Callable[[str], bool],
    ):
        super().__init__(pattern, md)
        self.resolve_route = resolve_route
        self.page_exists = page_exists

    def handleMatch(self, m: re.Match, data: str) -> tuple[Element | None, int, int]:
        """Convert wiki link match to HTML anchor element."""
        target = m.group(1).strip()
        display_text = m.group(2)
        if display_text:
            display_text = display_text.strip()
        else:
            display_text = target

        el = Element("a")
        el.text = display_text
        el.set("href", self.resolve_route(target) or target)

        if self.page_exists(target):
            el.set("class", "wiki-link")
        else:
            el.set("class", "wiki-link wiki-link-missing")

        return el, m.start(0), m.end(0)


class InternalLinkTreeprocessor(Treeprocessor):
    """Rewrite internal ``href`` values to the routes they resolve to."""

    def __init__(self, md: Markdown, resolve_route: Callable[[str], str | None]):
        super().__init__(md)
        self.resolve_route = resolve_route

    def run(self, root: Element) -> None:
        for el in root.iter("a"):
            href = el.get("href")
            if not href or "wiki-link" in (el.get("class") or ""):
                continue
            target, _, fragment = href.partition("#")
            if not target:
                continue
            route = self.resolve_route(target)
            if route is None:
                continue
            el.set("href", f"{route}#{fragment}" if fragment else route)


class InternalLinkExtension(Extension):
    """Markdown extension for wiki links and internal href rewriting."""

    def __init__(
        self,
        resolve_route: Callable[[str], str | None] | None = None,
        page_exists: Callable[[str], bool] | None = None,
        **kwargs,
    ):
        self.resolve_route = resolve_route or (lambda x: None)
        self.page_exists = page_exists or (lambda x: True)
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:
        """Add the wiki link pattern and the href rewriter."""
        md.inlinePatterns.register(
            WikiLinkInlineProcessor(
                WIKI_LINK_PATTERN,
                md,
                self.resolve_route,
                self.page_exists,
            ),
            "wiki_link",
            75,
        )
        md.treeprocessors.register(
            InternalLinkTreeprocessor(md, self.resolve_route),
            "internal_links",
            12,
        )


def create_parser(
    resolve_route: Callable[[str], str | None] | None = None,
    page_exists: Callable[[str], bool] | None = None,
) -> Markdown:
    """Create a Markdown parser with internal link support.

    Args:
        resolve_route: Callback mapping a raw link target to a site route,
                    or None for links that should be left alone.
        page_exists: Callback to check if a wiki link target exists.
                    Used to style missing page links differently.

    Returns:
        Configured Markdown parser instance.
    """
    return Markdown(
        extensions=[
            "extra",  # Includes: abbreviations, attr_list, def_list, fenced_code, footnotes, md_in_html, tables
            "sane_lists",
            "smarty",
            "toc",
            "pymdownx.tasklist",
            "pymdownx.tilde",  # ~~strikethrough~~
            InternalLinkExtension(resolve_route=resolve_route, page_exists=page_exists),
        ]
    )


def render_markdown(
    content: str,
    resolve_route: Callable[[str], str | None] | None = None,
    page_exists: Callable[[str], bool] | None = None,
) -> tuple[str, str]:
    """Render a Markdown body to HTML with its table of contents.

    Args:
        content: Markdown body without front matter.
        resolve_route: See :func:`create_parser`.
        page_exists: See :func:`create_parser`.

    Returns:
        Tuple of (html_content, toc_html).
    """
    parser = create_parser(resolve_route, page_exists)
    html = parser.convert(content)
    toc_html = getattr(parser, "toc", "")
    return html, toc_html
