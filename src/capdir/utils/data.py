"""Structured data parsing for file contents."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import yaml

from capdir.core.errors import DataFormatError

Parser = Callable[[str], Any]


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    return yaml.safe_load(text)


PARSERS: dict[str, tuple[Parser, ...]] = {
    "json": (_parse_json,),
    "yaml": (_parse_yaml,),
    "yml": (_parse_yaml,),
    "any": (_parse_json, _parse_yaml),
}


def parse(text: str, kind: str = "any", source: str | None = None) -> Any:
    normalized = kind.strip().lower()
    parsers = PARSERS.get(normalized)
    if parsers is None:
        raise DataFormatError(
            f"Unsupported data type '{kind}'. Supported types: json, yaml, any."
        )

    for parser in parsers:
        try:
            return parser(text)
        except (ValueError, yaml.YAMLError):
            continue

    where = f": '{source}'" if source else ""
    if normalized == "any":
        raise DataFormatError(f"Content is neither valid JSON nor valid YAML{where}")
    raise DataFormatError(f"Content is not valid {normalized.upper()}{where}")
