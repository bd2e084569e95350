"""JSON string escaping with an optional HTML-safe mode.

The rules follow a strict JSON string encoder:

* ``"`` and ``\\`` get a leading backslash;
* ``\\n``, ``\\r`` and ``\\t`` use their short forms;
* every other byte below ``0x20`` becomes ``\\u00XX`` (lowercase hex);
* U+2028 and U+2029 are always escaped;
* invalid code units become ``\\ufffd``;
* with ``escape_html`` set, ``<``, ``>`` and ``&`` become ``\\u003c``,
  ``\\u003e`` and ``\\u0026``.

Everything else, including DEL and all valid non-ASCII text, is copied
verbatim as UTF-8.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview]

# Lone surrogates are the only invalid scalars a ``str`` can hold; bytes are
# decoded with ``surrogateescape`` so invalid UTF-8 ends up in the same range.
_ESCAPE = re.compile("[\x00-\x1f\"\\\\\u2028\u2029\ud800-\udfff]")
_ESCAPE_HTML = re.compile("[\x00-\x1f\"\\\\<>&\u2028\u2029\ud800-\udfff]")

_REPLACEMENTS: Dict[str, str] = {chr(i): "\\u%04x" % i for i in range(0x20)}
_REPLACEMENTS.update(
    {
        "\n": "\\n",
        "\r": "\\r",
        "\t": "\\t",
        '"': '\\"',
        "\\": "\\\\",
        "<": "\\u003c",
        ">": "\\u003e",
        "&": "\\u0026",
        "\u2028": "\\u2028",
        "\u2029": "\\u2029",
    }
)


def _replace(match: re.Match[str]) -> str:
    return _REPLACEMENTS.get(match.group(0), "\\ufffd")


def escape_string(value: str, escape_html: bool = False) -> str:
    """Return the body of the JSON string literal for ``value``, unquoted."""
    pattern = _ESCAPE_HTML if escape_html else _ESCAPE
    if pattern.search(value) is None:
        return value
    return pattern.sub(_replace, value)


def quote_string(value: str, escape_html: bool = False) -> bytes:
    """Return ``value`` as a quoted JSON string literal.

    Raises:
        TypeError: If ``value`` is not a ``str``.
    """
    return b'"' + escape_string(value, escape_html).encode("utf-8") + b'"'


def quote_bytes(data: Optional[BytesLike], escape_html: bool = False) -> bytes:
    """Return raw text bytes as a quoted JSON string literal.

    ``data`` is read through the buffer protocol without being copied first,
    so the caller must not mutate it until this call returns. Each byte that
    is not part of a valid UTF-8 sequence becomes one ``\\ufffd``. ``None``
    encodes as ``""``.
    """
    if data is None:
        return b'""'
    return quote_string(str(data, "utf-8", "surrogateescape"), escape_html)


def append_string(buf: bytearray, value: str, escape_html: bool = False) -> None:
    """Append ``value`` to ``buf`` as a quoted JSON string literal.

    Args:
        buf: Destination buffer.
        value: Text to encode.
        escape_html: Also escape ``<``, ``>`` and ``&``.
    """
    buf += quote_string(value, escape_html)


def append_bytes(buf: bytearray, data: Optional[BytesLike], escape_html: bool = False) -> None:
    """Append raw text bytes as a quoted JSON string literal; see :func:`quote_bytes`."""
    buf += quote_bytes(data, escape_html)


@lru_cache(maxsize=4096)
def encode_key(key: str, escape_html: bool = False) -> bytes:
    """Return the ``,"key":`` prefix for a field, escaped like any string."""
    return b',"' + escape_string(key, escape_html).encode("utf-8") + b'":'


__all__ = [
    "append_bytes",
    "append_string",
    "encode_key",
    "escape_string",
    "quote_bytes",
    "quote_string",
]
