"""Shared fixtures for bramble tests."""

from pathlib import Path

import pytest

from bramble.config import Settings


@pytest.fixture()
def settings(tmp_path):
    """Settings for an empty site under a temp directory.

    Content lives in ``content/``, output goes to ``_site/``; views,
    assets and the site config sit next to them.
    """
    content = tmp_path / "content"
    content.mkdir()
    return Settings(
        input_dir=content,
        output_dir=tmp_path / "_site",
        views_dir=tmp_path / "views",
        assets_dir=tmp_path / "assets",
        site_config=tmp_path / "config.yml",
    )


@pytest.fixture()
def write_file():
    """Write a UTF-8 file, creating parent directories."""

    def _write(root: Path, rel_path: str, text: str) -> Path:
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write
