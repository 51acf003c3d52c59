"""Conversion of JSON and free-text values into declared parameter types."""

import json
import math
import re
from typing import Any, Optional, Union

from .schema_generator import ARRAY, BOOLEAN, INTEGER, NUMBER, STRING

_TRUE_WORDS = frozenset({"true", "yes", "y", "1", "on"})
_FALSE_WORDS = frozenset({"false", "no", "n", "0", "off"})

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_THOUSANDS_PATTERN = re.compile(r"^[+-]?\d{1,3}(,\d{3})+(\.\d*)?$")


def prefer_integer(value: Union[int, float]) -> Union[int, float]:
    """Return an int for integral floats, otherwise the value unchanged."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def parse_number(text: str) -> Optional[Union[int, float]]:
    """
    Parse a numeric token with integer preference, or return None.

    Commas grouping digits in threes ("1,000", "12,500.5") are thousands
    separators. A single other comma without a dot is a decimal comma ("3,5").
    """
    candidate = text.strip()
    if _THOUSANDS_PATTERN.match(candidate):
        candidate = candidate.replace(",", "")
    elif candidate.count(",") == 1 and "." not in candidate:
        candidate = candidate.replace(",", ".")
    if not _NUMBER_PATTERN.match(candidate):
        return None
    try:
        if re.fullmatch(r"[+-]?\d+", candidate):
            return int(candidate)
        return prefer_integer(float(candidate))
    except (ValueError, OverflowError):
        return None


def parse_boolean(text: str) -> Optional[bool]:
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return None


def convert_json_value(value: Any, json_type: Optional[str] = None) -> Any:
    """
    Convert a decoded JSON value towards a declared primitive type.

    Values that cannot be converted are returned unchanged so the tool can
    report a meaningful error. Nested arrays and objects are converted
    recursively without a target type.

    Args:
        value: Decoded JSON value
        json_type: Target schema type, or None for untyped conversion

    Returns:
        Converted value
    """
    if value is None:
        return None

    if isinstance(value, dict):
        return {str(k): convert_json_value(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        items = [convert_json_value(v) for v in value]
        if json_type in (None, ARRAY):
            return items
        if json_type == STRING:
            return json.dumps(items, ensure_ascii=False)
        return items

    if isinstance(value, bool):
        if json_type == STRING:
            return "true" if value else "false"
        if json_type == ARRAY:
            return [value]
        return value

    if isinstance(value, (int, float)):
        if json_type == STRING:
            return str(prefer_integer(value))
        if json_type == BOOLEAN and value in (0, 1):
            return bool(value)
        if json_type == ARRAY:
            return [prefer_integer(value)]
        return prefer_integer(value)

    if isinstance(value, str):
        return convert_text_value(value, json_type)

    return value


def convert_text_value(text: str, json_type: Optional[str] = None) -> Any:
    """Convert a text value towards a declared primitive type."""
    if json_type in (INTEGER, NUMBER):
        number = parse_number(text)
        return text if number is None else number

    if json_type == BOOLEAN:
        flag = parse_boolean(text)
        return text if flag is None else flag

    if json_type == ARRAY:
        stripped = text.strip()
        if stripped.startswith("["):
            try:
                decoded = json.loads(stripped)
            except json.JSONDecodeError:
                decoded = None
            if isinstance(decoded, list):
                return [convert_json_value(v) for v in decoded]
        return [part.strip() for part in stripped.split(",") if part.strip()] if stripped else []

    return text
