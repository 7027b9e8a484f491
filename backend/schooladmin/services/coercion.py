"""Conversion between stored setting text and typed values.

Every setting value is persisted as text next to a type tag. ``decode``
turns that text into a Python value for the tag, ``encode`` does the
reverse, and ``decode(encode(v, t), t) == v`` holds for every value ``v``
that ``encode`` accepts.
"""

import json
import math
import re
from typing import Any, Optional

from schooladmin.exceptions import CoercionError, ValidationError
from schooladmin.models.setting import SettingType

_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")

BOOLEAN_TRUE = "true"
BOOLEAN_FALSE = "false"


def _parse_number(raw: str):
    text = raw.strip()
    if not _NUMBER_RE.match(text):
        raise CoercionError(f"{raw!r} is not a base-10 number")
    try:
        number = int(text) if _INTEGER_RE.match(text) else float(text)
    except ValueError as e:
        # int() refuses literals past the interpreter's digit limit.
        raise CoercionError(f"{raw[:32]!r}... is not a usable number: {e}") from e
    if isinstance(number, float) and not math.isfinite(number):
        raise CoercionError(f"{raw!r} is out of range")
    return number


def decode(raw: Optional[str], setting_type: SettingType) -> Any:
    """Parse stored text into the logical value for ``setting_type``."""
    setting_type = SettingType(setting_type)
    if raw is None:
        return None

    if setting_type is SettingType.STRING:
        return raw
    if setting_type is SettingType.NUMBER:
        return _parse_number(raw)
    if setting_type is SettingType.BOOLEAN:
        if raw == BOOLEAN_TRUE:
            return True
        if raw == BOOLEAN_FALSE:
            return False
        raise CoercionError(f"{raw!r} is not a boolean literal (expected 'true' or 'false')")
    try:
        return json.loads(raw)
    except ValueError as e:
        raise CoercionError(f"Malformed JSON: {e}") from e


def encode(value: Any, setting_type: SettingType) -> Optional[str]:
    """Render ``value`` as storable text, rejecting values that do not fit the type."""
    setting_type = SettingType(setting_type)
    if value is None:
        return None

    if setting_type is SettingType.STRING:
        if not isinstance(value, str):
            raise ValidationError(f"Expected a string, got {type(value).__name__}")
        return value

    if setting_type is SettingType.NUMBER:
        if isinstance(value, bool):
            raise ValidationError("Expected a number, got bool")
        if isinstance(value, str):
            try:
                value = _parse_number(value)
            except CoercionError as e:
                raise ValidationError(str(e)) from e
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValidationError("Number must be finite")
            return repr(value)
        raise ValidationError(f"Expected a number, got {type(value).__name__}")

    if setting_type is SettingType.BOOLEAN:
        if isinstance(value, bool):
            return BOOLEAN_TRUE if value else BOOLEAN_FALSE
        if value in (BOOLEAN_TRUE, BOOLEAN_FALSE):
            return value
        raise ValidationError(f"Expected a boolean, got {value!r}")

    try:
        return json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Value is not JSON serializable: {e}") from e
