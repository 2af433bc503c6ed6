"""
YAML front-matter codec for markdown documents.

Format:
    ---
    <yaml mapping>
    ---
    <body>

The body is kept byte-for-byte (apart from the single newline that
separates it from the closing fence). YAML dates in legacy files are
turned into ISO strings so callers always see `date` as text.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Tuple

import yaml

_FENCE = "---"


class FrontMatterError(ValueError):
    """Document has a front-matter fence but the YAML is not a mapping."""


def _normalize(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, list):
        return [_normalize(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    return value


def parse(text: str) -> Tuple[Dict[str, Any], str]:
    """Split `text` into (front-matter mapping, body).

    A document without an opening fence has empty front-matter and the whole
    text as body. An unterminated fence is treated the same way.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.split("\n")
    if not lines or lines[0].rstrip("\r") != _FENCE:
        return {}, text
    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r") == _FENCE:
            raw = "\n".join(lines[1:idx])
            body = "\n".join(lines[idx + 1:])
            break
    else:
        return {}, text
    try:
        data = yaml.safe_load(raw) if raw.strip() else {}
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid_front_matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError("invalid_front_matter: not a mapping")
    return _normalize(data), body


def dump(data: Dict[str, Any], body: str) -> str:
    """Render front-matter and body; key order follows `data`."""
    header = yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"{_FENCE}\n{header}{_FENCE}\n{body}"


__all__ = ["parse", "dump", "FrontMatterError"]
