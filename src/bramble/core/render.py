"""Template rendering through Jinja2 views."""

from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    select_autoescape,
)

from bramble.core.errors import BuildError, RenderError
from bramble.core.ordering import tag_route
from bramble.core.ws_manager import REFRESH_PATH

# Views shipped with the package, used when the site doesn't override them
DEFAULT_VIEWS_PATH = Path(__file__).parent.parent / "views"


def rfc822_filter(dt: datetime | None) -> str:
    """Format a datetime for RSS ``pubDate`` fields."""
    if dt is None:
        return ""
    return dt.strftime("%a, %d %b %Y %H:%M:%S +0000")


def isodate_filter(dt: datetime | None) -> str:
    """Format a datetime as an ISO date (``2024-01-31``)."""
    if dt is None:
        return ""
    return dt.strftime("%Y-%m-%d")


class Renderer:
    """Renders a view identifier plus a data bag to a string.

    Views are looked up in the site's views directory first, then in the
    bundled default views.
    """

    def __init__(self, views_dir: Path | None = None, tag_dir: str = "tags") -> None:
        search_path = [DEFAULT_VIEWS_PATH]
        if views_dir is not None:
            search_path.insert(0, views_dir)
        self.env = Environment(
            loader=ChoiceLoader([FileSystemLoader(str(p)) for p in search_path]),
            autoescape=select_autoescape(["html", "xml"]),
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self.env.filters["rfc822"] = rfc822_filter
        self.env.filters["isodate"] = isodate_filter
        self.tag_dir = tag_dir
        self.use_tag_slugs({})
        self.env.globals["refresh_path"] = REFRESH_PATH

    def use_tag_slugs(self, slugs: Mapping[str, str]) -> None:
        """Point the ``tag_url`` global at the tag pages of one build.

        Tags missing from ``slugs`` fall back to their plain slug.
        """
        tag_dir = self.tag_dir
        self.env.globals["tag_url"] = lambda tag: tag_route(tag, tag_dir, slugs.get(tag))

    def require(self, *views: str) -> None:
        """Check that every view exists.

        Raises:
            BuildError: If a view is missing or fails to compile.
        """
        for view in views:
            try:
                self.env.get_template(view)
            except TemplateNotFound as e:
                raise BuildError(
                    f"Can't find the '{view}' view. Did you forget to run 'bramble init'?"
                ) from e
            except TemplateError as e:
                raise BuildError(f"View '{view}' is invalid: {e}") from e

    def render(self, view: str, data: dict[str, Any]) -> str:
        """Render a view with a data bag.

        Raises:
            RenderError: If the template fails.
        """
        try:
            return self.env.get_template(view).render(**data)
        except Exception as e:
            raise RenderError(f"{view}: {e}") from e
