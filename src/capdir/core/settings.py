"""Settings loader for capdir."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache

from dotenv import find_dotenv, load_dotenv


@dataclass(frozen=True)
class Settings:
    temp_dir: str
    temp_suffix_length: int
    encoding: str


def load_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    temp_dir = os.environ.get("CAPDIR_TEMP_DIR") or tempfile.gettempdir()
    temp_suffix_length = _parse_int(
        os.environ.get("CAPDIR_TEMP_SUFFIX_LENGTH", "6"), "CAPDIR_TEMP_SUFFIX_LENGTH"
    )
    if not 1 <= temp_suffix_length <= 32:
        raise ValueError("CAPDIR_TEMP_SUFFIX_LENGTH must be between 1 and 32")
    encoding = os.environ.get("CAPDIR_ENCODING", "utf-8").strip() or "utf-8"

    return Settings(
        temp_dir=os.path.abspath(os.path.expanduser(temp_dir)),
        temp_suffix_length=temp_suffix_length,
        encoding=encoding,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def _parse_int(value: str, name: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid integer for {name}: {value}") from exc
