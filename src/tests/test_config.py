"""Unit tests for build settings and the site config file."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from bramble.config import SiteConfig, Settings, load_site_config, write_default_site_config
from bramble.core.errors import ConfigError


class TestSettings:
    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            s = Settings(_env_file=None)
            assert s.input_dir == Path(".")
            assert s.output_dir == Path("_site")
            assert s.views_dir == Path(".bramble/views")
            assert s.ignore_keys == ["draft"]
            assert "png" in s.static_exts
            assert s.render_drafts is False
            assert s.port == 8000

    def test_from_env(self):
        env = {
            "BRAMBLE_INPUT_DIR": "/tmp/notes",
            "BRAMBLE_OUTPUT_DIR": "/tmp/public",
            "BRAMBLE_RENDER_DRAFTS": "true",
            "BRAMBLE_PORT": "9000",
        }
        with patch.dict("os.environ", env, clear=True):
            s = Settings(_env_file=None)
            assert s.input_dir == Path("/tmp/notes")
            assert s.output_dir == Path("/tmp/public")
            assert s.render_drafts is True
            assert s.port == 9000

    def test_init_overrides_env(self):
        with patch.dict("os.environ", {"BRAMBLE_PORT": "9000"}, clear=True):
            s = Settings(_env_file=None, port=8080)
            assert s.port == 8080


class TestLoadSiteConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_site_config(tmp_path / "nope.yml")
        assert config == SiteConfig()
        assert config.root_name == "index"

    def test_values_merge_over_defaults(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("title: Garden\nauthor:\n  name: Robin\nnavigation:\n  Home: /\n")
        config = load_site_config(path)
        assert config.title == "Garden"
        assert config.author.name == "Robin"
        assert config.author.email == SiteConfig().author.email
        assert config.navigation == {"Home": "/"}
        assert config.description == SiteConfig().description

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert load_site_config(path) == SiteConfig()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("title: [unclosed\n")
        with pytest.raises(ConfigError):
            load_site_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_site_config(path)

    def test_wrong_type(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("navigation: 3\n")
        with pytest.raises(ConfigError):
            load_site_config(path)


class TestWriteDefaultSiteConfig:
    def test_writes_defaults(self, tmp_path):
        path = tmp_path / ".bramble" / "config.yml"
        assert write_default_site_config(path) is True
        data = yaml.safe_load(path.read_text())
        assert data["root_name"] == "index"
        assert load_site_config(path) == SiteConfig()

    def test_keeps_existing_file(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("title: Mine\n")
        assert write_default_site_config(path) is False
        assert path.read_text() == "title: Mine\n"
