"""Bencoding module for the daemon control protocol.

This module provides a convenient interface to the ``bencodepy`` codec.
Byte strings that are valid UTF-8 decode to ``str``; anything else (raw
torrent data, binary hashes) stays ``bytes``.
"""

from __future__ import annotations

from typing import Any

import bencodepy

from cctransmission.utils.exceptions import BencodeError

_codec = bencodepy.Bencode(encoding="utf-8", encoding_fallback="all")


def _normalize(value: Any) -> Any:
    """Map Python values onto the bencode value model."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize(item) for key, item in value.items()}
    return value


def encode(value: Any) -> bytes:
    """Encode ``value`` to bencoded bytes.

    Raises:
        BencodeError: if ``value`` contains a type bencode cannot represent

    """
    try:
        return _codec.encode(_normalize(value))
    except (KeyError, TypeError, ValueError) as e:
        msg = f"Cannot bencode value of type {type(value).__name__}"
        raise BencodeError(msg, {"error": str(e)}) from e


def decode(data: bytes) -> Any:
    """Decode one bencoded value from ``data``.

    Raises:
        BencodeError: if ``data`` is not exactly one well-formed value

    """
    if not data:
        msg = "Cannot decode empty payload"
        raise BencodeError(msg)
    try:
        return _codec.decode(data)
    except (
        bencodepy.BencodeDecodeError,
        IndexError,
        KeyError,
        TypeError,
        ValueError,
    ) as e:
        msg = "Malformed bencoded payload"
        raise BencodeError(msg, {"error": str(e), "length": len(data)}) from e


__all__ = ["BencodeError", "decode", "encode"]
