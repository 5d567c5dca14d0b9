"""Application configuration."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from bramble.core.errors import ConfigError


class Settings(BaseSettings):
    """Build settings loaded from environment variables and CLI overrides."""

    input_dir: Path = Path(".")
    output_dir: Path = Path("_site")
    views_dir: Path = Path(".bramble/views")
    assets_dir: Path = Path(".bramble/assets")
    site_config: Path = Path(".bramble/config.yml")
    style_file: Path | None = None
    page_view: str = "page.html"
    feed_view: str = "feed.xml"
    tag_dir: str = "tags"
    ignore_keys: list[str] = Field(default_factory=lambda: ["draft"])
    static_exts: list[str] = Field(
        default_factory=lambda: [
            "png", "jpg", "jpeg", "gif", "webp", "pdf", "ico", "webm", "mp4", "svg",
        ]
    )
    render_drafts: bool = False
    quiet: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    refresh_debounce: float = 0.1

    model_config = SettingsConfigDict(
        env_prefix="BRAMBLE_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


class Author(BaseModel):
    """Site author, used by the feed view."""

    name: str = "Your Name Here"
    email: str = "you@example.com"
    url: str = "https://example.com/about/"


class SiteConfig(BaseModel):
    """User-facing site configuration read from the YAML site config."""

    title: str = "Your Site Name"
    description: str = "Notes, links and half-finished thoughts"
    root_name: str = "index"
    url: str = "https://example.com/"
    language: str = "en"
    navigation: dict[str, str] = Field(default_factory=dict)
    author: Author = Field(default_factory=Author)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_site_config(path: Path) -> SiteConfig:
    """Load the site config, merged over the defaults.

    Args:
        path: Path to a YAML file. A missing file yields the defaults.

    Returns:
        The merged site configuration.

    Raises:
        ConfigError: If the file can't be read, isn't a YAML mapping,
            or has values of the wrong type.
    """
    defaults = SiteConfig().model_dump()
    if not path.is_file():
        return SiteConfig()

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Can't read site config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Site config {path} must be a mapping")

    try:
        return SiteConfig(**_deep_merge(defaults, data))
    except ValidationError as e:
        raise ConfigError(f"Invalid site config {path}: {e}") from e


def write_default_site_config(path: Path) -> bool:
    """Write the default site config unless the file already exists.

    Returns:
        True if a file was written.
    """
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    data = SiteConfig().model_dump()
    path.write_text(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return True
