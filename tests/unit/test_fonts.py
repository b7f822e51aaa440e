"""Unit tests for font directory resolution."""

import pytest

from typst_raster.contexts.rendering.fonts import resolve_font_paths


@pytest.mark.unit
def test_user_font_path_wins(tmp_path):
    """Test that a caller-supplied directory is used over bundled fonts."""
    bundled = tmp_path / "bundled"
    bundled.mkdir()

    assert resolve_font_paths("/custom/fonts", bundled_font_path=bundled) == ["/custom/fonts"]


@pytest.mark.unit
def test_bundled_fonts_used_when_present(tmp_path):
    """Test fallback to the bundled font directory."""
    assert resolve_font_paths(None, bundled_font_path=tmp_path) == [str(tmp_path)]


@pytest.mark.unit
def test_no_fonts_is_not_an_error(tmp_path):
    """Test that missing fonts resolve to no extra directories."""
    assert resolve_font_paths(None, bundled_font_path=tmp_path / "missing") == []


@pytest.mark.unit
def test_empty_user_path_falls_back(tmp_path):
    """Test that an empty font path behaves like no font path."""
    assert resolve_font_paths("", bundled_font_path=tmp_path) == [str(tmp_path)]
