"""Encoder for TOON (Token-Oriented Object Notation).

TOON is a line-oriented rendering of JSON data that spends fewer tokens than
JSON when read by a language model: objects become indented ``key: value``
lines and arrays of uniform objects become a single header plus one
delimited row per item, e.g.::

    pr:
      number: 42
    comments[2]{path,line,priority}:
      R/utils.R,10,high
      R/zzz.R,null,normal
"""

import math
import re
from typing import Any

_UNQUOTED_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
_NUMERIC_LIKE = re.compile(r"^-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?$|^0\d+$")
_STRUCTURAL = re.compile(r'[:"\\\[\]{}\x00-\x1f]')
_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}

DELIMITERS = {",": "", "\t": "\t", "|": "|"}


def _is_primitive(value: Any) -> bool:  # noqa: ANN401
    return value is None or isinstance(value, (str, int, float, bool))


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def _needs_quotes(value: str, delimiter: str) -> bool:
    return (
        value == ""
        or value != value.strip()
        or value in ("true", "false", "null")
        or bool(_NUMERIC_LIKE.match(value))
        or value.startswith("-")
        or bool(_STRUCTURAL.search(value))
        or delimiter in value
    )


def encode_string(value: str, delimiter: str = ",") -> str:
    """Render a string value, quoting it only where a bare form would be ambiguous."""
    if _needs_quotes(value, delimiter):
        return f'"{_escape(value)}"'
    return value


def encode_key(key: str) -> str:
    """Render an object key."""
    key = str(key)
    if _UNQUOTED_KEY.match(key):
        return key
    return f'"{_escape(key)}"'


def encode_number(value: int | float) -> str:
    """Render a number in canonical decimal form (no exponent, no trailing zeros)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if math.isnan(value) or math.isinf(value):
        return "null"
    if value == 0:
        return "0"
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text:
        text = f"{value:.17f}".rstrip("0").rstrip(".")
    return text


def encode_primitive(value: Any, delimiter: str = ",") -> str:  # noqa: ANN401
    """Render a JSON primitive."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return encode_number(value)
    return encode_string(str(value), delimiter)


class ToonEncoder:
    """Renders JSON-compatible values as TOON text."""

    def __init__(self, delimiter: str = ",", indent: int = 2) -> None:
        """Initialize the encoder.

        Args:
        ----
            delimiter: Separator for inline arrays and table rows: ",", "\\t" or "|"
            indent: Spaces per nesting level

        """
        if delimiter not in DELIMITERS:
            msg = f"Unsupported delimiter: {delimiter!r}"
            raise ValueError(msg)
        self.delimiter = delimiter
        self.indent = indent

    def encode(self, value: Any) -> str:  # noqa: ANN401
        """Encode a value as a TOON document."""
        lines: list[str] = []

        if isinstance(value, dict):
            self._encode_object(value, 0, lines)
        elif isinstance(value, (list, tuple)):
            self._encode_array(None, list(value), 0, lines)
        else:
            lines.append(encode_primitive(value, self.delimiter))

        return "\n".join(lines)

    def _pad(self, depth: int) -> str:
        return " " * (self.indent * depth)

    def _header(self, key: str | None, length: int, fields: list[str] | None = None) -> str:
        prefix = encode_key(key) if key is not None else ""
        header = f"{prefix}[{length}{DELIMITERS[self.delimiter]}]"
        if fields is not None:
            header += "{" + self.delimiter.join(encode_key(field) for field in fields) + "}"
        return header + ":"

    def _join(self, values: list[Any]) -> str:
        return self.delimiter.join(encode_primitive(item, self.delimiter) for item in values)

    @staticmethod
    def _tabular_fields(items: list[Any]) -> list[str] | None:
        """Shared field order when every item is a flat object with the same keys."""
        if not items or not all(isinstance(item, dict) and item for item in items):
            return None

        fields = list(items[0].keys())
        for item in items:
            if set(item.keys()) != set(fields):
                return None
            if not all(_is_primitive(val) for val in item.values()):
                return None
        return fields

    def _encode_object(self, obj: dict, depth: int, lines: list[str]) -> None:
        for key, val in obj.items():
            self._encode_field(key, val, depth, lines)

    def _encode_field(self, key: str, val: Any, depth: int, lines: list[str]) -> None:  # noqa: ANN401
        pad = self._pad(depth)
        if isinstance(val, dict):
            lines.append(f"{pad}{encode_key(key)}:")
            self._encode_object(val, depth + 1, lines)
        elif isinstance(val, (list, tuple)):
            self._encode_array(key, list(val), depth, lines)
        else:
            lines.append(f"{pad}{encode_key(key)}: {encode_primitive(val, self.delimiter)}")

    def _encode_array(self, key: str | None, items: list[Any], depth: int, lines: list[str]) -> None:
        pad = self._pad(depth)

        if not items:
            lines.append(f"{pad}{self._header(key, 0)}")
            return

        if all(_is_primitive(item) for item in items):
            lines.append(f"{pad}{self._header(key, len(items))} {self._join(items)}")
            return

        fields = self._tabular_fields(items)
        if fields is not None:
            lines.append(f"{pad}{self._header(key, len(items), fields)}")
            row_pad = self._pad(depth + 1)
            for item in items:
                lines.append(f"{row_pad}{self._join([item[field] for field in fields])}")
            return

        lines.append(f"{pad}{self._header(key, len(items))}")
        for item in items:
            self._encode_list_item(item, depth + 1, lines)

    def _encode_list_item(self, item: Any, depth: int, lines: list[str]) -> None:  # noqa: ANN401
        pad = self._pad(depth)

        if _is_primitive(item):
            lines.append(f"{pad}- {encode_primitive(item, self.delimiter)}")
        elif isinstance(item, (list, tuple)):
            nested: list[str] = []
            self._encode_array(None, list(item), depth, nested)
            nested[0] = f"{pad}- {nested[0].lstrip()}"
            lines.extend(nested)
        elif not item:
            lines.append(f"{pad}-")
        else:
            # First field shares the hyphen line; the rest align under it
            nested = []
            self._encode_object(item, depth + 1, nested)
            nested[0] = f"{pad}- {nested[0].lstrip()}"
            lines.extend(nested)


def encode(value: Any, delimiter: str = ",", indent: int = 2) -> str:  # noqa: ANN401
    """Encode a JSON-compatible value as TOON."""
    return ToonEncoder(delimiter=delimiter, indent=indent).encode(value)
