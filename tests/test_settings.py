from __future__ import annotations

import os
import tempfile

import pytest

from capdir.core.settings import get_settings, load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("CAPDIR_TEMP_DIR", "CAPDIR_TEMP_SUFFIX_LENGTH", "CAPDIR_ENCODING"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults() -> None:
    settings = load_settings()
    assert settings.temp_dir == os.path.abspath(tempfile.gettempdir())
    assert settings.temp_suffix_length == 6
    assert settings.encoding == "utf-8"


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CAPDIR_TEMP_DIR", str(tmp_path / "scratch"))
    monkeypatch.setenv("CAPDIR_TEMP_SUFFIX_LENGTH", "12")
    monkeypatch.setenv("CAPDIR_ENCODING", "latin-1")
    settings = load_settings()
    assert settings.temp_dir == str(tmp_path / "scratch")
    assert settings.temp_suffix_length == 12
    assert settings.encoding == "latin-1"


@pytest.mark.parametrize("value", ["0", "33", "six"])
def test_invalid_suffix_length(monkeypatch, value) -> None:
    monkeypatch.setenv("CAPDIR_TEMP_SUFFIX_LENGTH", value)
    with pytest.raises(ValueError):
        load_settings()


def test_get_settings_is_cached(monkeypatch) -> None:
    first = get_settings()
    monkeypatch.setenv("CAPDIR_TEMP_SUFFIX_LENGTH", "8")
    assert get_settings() is first
    get_settings.cache_clear()
    assert get_settings().temp_suffix_length == 8
