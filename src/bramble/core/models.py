"""Data models for Bramble."""

from datetime import datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ContentEntry(BaseModel):
    """A file found under one of the source roots."""

    model_config = ConfigDict(frozen=True)

    rel_path: str
    source: Path

    @property
    def name(self) -> str:
        return self.rel_path.rsplit("/", 1)[-1]


class Page(BaseModel):
    """One materialized content unit."""

    model_config = ConfigDict(frozen=True)

    path: str
    route: str
    slug: str
    source: str
    title: str
    description: str | None = None
    attrs: dict[str, Any] = Field(default_factory=dict)
    date_published: datetime | None = None
    date_updated: datetime | None = None
    tags: tuple[str, ...] = ()
    links: tuple[str, ...] = ()
    is_index: bool = False
    pinned: bool = False
    draft: bool = False
    html: str = ""
    toc_html: str = ""

    @property
    def date(self) -> datetime | None:
        """Alias used by views: the publication date."""
        return self.date_published


class Breadcrumb(BaseModel):
    """One step of the navigation trail above a page."""

    model_config = ConfigDict(frozen=True)

    slug: str
    url: str
    current: bool = False
    is_tag: bool = False


class TagPage(BaseModel):
    """Synthetic page grouping every page that carries a tag."""

    model_config = ConfigDict(frozen=True)

    name: str
    slug: str
    route: str
    pages: tuple[Page, ...] = ()


class DeadLink(BaseModel):
    """An outbound link whose target matches no known page."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class OutputFile(BaseModel):
    """A file to be placed in the output directory."""

    input_path: str
    output_path: Path
    kind: Literal["content", "tag", "feed", "static", "asset"]
    content: str | None = None
    copy_from: Path | None = None


class BuildResult(BaseModel):
    """Summary of one full build."""

    output_dir: Path
    files: list[OutputFile] = Field(default_factory=list)
    dead_links: list[DeadLink] = Field(default_factory=list)
    duration: float = 0.0

    def _count(self, kind: str) -> int:
        return sum(1 for f in self.files if f.kind == kind)

    @property
    def page_count(self) -> int:
        return self._count("content")

    @property
    def tag_count(self) -> int:
        return self._count("tag")

    @property
    def static_count(self) -> int:
        return self._count("static")

    @property
    def asset_count(self) -> int:
        return self._count("asset")
