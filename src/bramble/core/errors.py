"""Bramble error hierarchy.

All bramble-specific errors inherit from BrambleError for easy catching.
"""


class BrambleError(Exception):
    """Base error for all bramble operations."""


class ConfigError(BrambleError):
    """Invalid or unreadable site configuration."""


class FrontMatterError(BrambleError, ValueError):
    """Front matter block that isn't a valid YAML mapping."""


class MaterializationError(BrambleError):
    """A content entry couldn't be turned into a page."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Can't generate page {source}: {reason}")
        self.source = source
        self.reason = reason


class RenderError(BrambleError):
    """A view failed to render one page, tag page or feed."""


class BuildError(BrambleError):
    """Fatal build failure: missing views or output I/O errors."""
