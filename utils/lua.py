"""Render parsed data as a Lua table literal for wiki data modules."""
import math
from typing import Any

INDENT = '  '


def format_number(value) -> str:
    """
    Format a number the way the wiki expects it.

    Whole floats drop their fraction (2.0 -> 2) so values that came out of
    YAML as floats match the integers the game shows.
    """
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return '0/0'
    if math.isinf(value):
        return 'math.huge' if value > 0 else '-math.huge'
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _convert(value: Any, level: int) -> str:
    indent = INDENT * level

    if isinstance(value, (list, tuple)):
        if not value:
            return '{}'
        rows = [f"{indent}{INDENT}{_convert(item, level + 1)}" for item in value]
        return '{\n' + ',\n'.join(rows) + f"\n{indent}}}"

    if isinstance(value, dict):
        if not value:
            return '{}'
        rows = [
            f'{indent}{INDENT}["{key}"] = {_convert(item, level + 1)}'
            for key, item in value.items()
        ]
        return '{\n' + ',\n'.join(rows) + f"\n{indent}}}"

    if isinstance(value, str):
        # Text is escaped by the parsers before it gets here.
        return f'"{value}"'

    if isinstance(value, (bool, int, float)):
        return format_number(value)

    return 'nil'


def to_lua_table(data: Any) -> str:
    """
    Convert a JSON-like value into a Lua module body.

    Target format:
    return {
      ["Key"] = {
        ["name"] = "Key",
        ["level"] = 4
      }
    }

    Dict keys keep their insertion order, so the same data always renders
    to byte-identical text.
    """
    return f"return {_convert(data, 0)}"
