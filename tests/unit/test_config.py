"""
Unit tests for renderer configuration loading.
"""

import pytest

from typst_raster.utils.config import RendererConfig, load_renderer_config

ENV_VARS = ["TYPST_RASTER_FONT_PATH", "TYPST_RASTER_CACHE", "TYPST_RASTER_CACHE_SIZE", "LOGS_PATH"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.mark.unit
class TestLoadRendererConfig:
    """Tests for load_renderer_config."""

    def test_defaults(self):
        config = load_renderer_config()

        assert config == RendererConfig()
        assert config.cache is True
        assert config.cache_size == 100
        assert config.font_path is None

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("TYPST_RASTER_FONT_PATH", "/fonts")
        monkeypatch.setenv("TYPST_RASTER_CACHE", "false")
        monkeypatch.setenv("TYPST_RASTER_CACHE_SIZE", "25")
        monkeypatch.setenv("LOGS_PATH", "/tmp/logs")

        config = load_renderer_config()

        assert config.font_path == "/fonts"
        assert config.cache is False
        assert config.cache_size == 25
        assert config.logs_path == "/tmp/logs"

    def test_bad_environment_size(self, monkeypatch):
        monkeypatch.setenv("TYPST_RASTER_CACHE_SIZE", "many")

        with pytest.raises(ValueError, match="TYPST_RASTER_CACHE_SIZE"):
            load_renderer_config()

    def test_yaml_section_overrides_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TYPST_RASTER_CACHE_SIZE", "25")
        config_file = tmp_path / "renderer.yaml"
        config_file.write_text("typst_raster:\n  cache_size: 500\n  font_path: assets/fonts\n")

        config = load_renderer_config(config_file)

        assert config.cache_size == 500
        assert config.font_path == "assets/fonts"

    def test_yaml_top_level_keys(self, tmp_path):
        config_file = tmp_path / "renderer.yaml"
        config_file.write_text("cache: false\n")

        assert load_renderer_config(config_file).cache is False

    def test_unknown_key(self, tmp_path):
        config_file = tmp_path / "renderer.yaml"
        config_file.write_text("cache_sise: 10\n")

        with pytest.raises(ValueError, match="Unknown renderer config keys"):
            load_renderer_config(config_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_renderer_config(tmp_path / "absent.yaml")

    @pytest.mark.parametrize("size", [-1, "10", True])
    def test_invalid_cache_size(self, size):
        with pytest.raises(ValueError, match="cache_size"):
            RendererConfig(cache_size=size)
