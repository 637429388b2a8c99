"""Byte-order and encoding detection for SQL dump files.

Dumps arrive without any charset metadata. A leading byte order mark wins;
otherwise the distribution of zero bytes in the first kilobyte decides between
UTF-8 and the two UTF-16 byte orders. ASCII-heavy UTF-16 text carries one zero
byte per code unit, and whether it sits at even or odd offsets reveals the
endianness.
"""

from __future__ import annotations

import logging

LOGGER = logging.getLogger(__name__)

BOM_UTF16_LE = b"\xff\xfe"
BOM_UTF16_BE = b"\xfe\xff"

SAMPLE_SIZE = 1024
NUL_RATIO_THRESHOLD = 0.3


def swap_byte_pairs(buffer: bytes) -> bytes:
    """Swap every consecutive byte pair, leaving a trailing odd byte in place."""
    swapped = bytearray(buffer)
    even_len = len(buffer) - (len(buffer) % 2)
    swapped[0:even_len:2] = buffer[1:even_len:2]
    swapped[1:even_len:2] = buffer[0:even_len:2]
    return bytes(swapped)


def _nul_ratios(buffer: bytes) -> tuple[float, float]:
    sample = buffer[:SAMPLE_SIZE]
    sample_len = len(sample)
    nul_even = sample[0::2].count(0)
    nul_odd = sample[1::2].count(0)
    even_slots = (sample_len + 1) // 2
    odd_slots = sample_len // 2
    even_ratio = nul_even / even_slots if even_slots else 0.0
    odd_ratio = nul_odd / odd_slots if odd_slots else 0.0
    return even_ratio, odd_ratio


def detect_encoding(buffer: bytes) -> str:
    """Return a label describing how ``buffer`` will be decoded.

    One of ``utf-16-le-bom``, ``utf-16-be-bom``, ``utf-16-le``, ``utf-16-be``,
    ``utf-8`` or ``empty``.
    """
    if not buffer:
        return "empty"
    if buffer[:2] == BOM_UTF16_LE:
        return "utf-16-le-bom"
    if buffer[:2] == BOM_UTF16_BE:
        return "utf-16-be-bom"

    even_ratio, odd_ratio = _nul_ratios(buffer)
    if odd_ratio > NUL_RATIO_THRESHOLD or even_ratio > NUL_RATIO_THRESHOLD:
        if odd_ratio >= even_ratio:
            return "utf-16-le"
        return "utf-16-be"
    return "utf-8"


def _decode_utf16_le(buffer: bytes) -> str:
    # An unpaired trailing byte carries no code unit and is dropped.
    return buffer[: len(buffer) - (len(buffer) % 2)].decode("utf-16-le", errors="replace")


def decode_text_buffer(buffer: bytes) -> str:
    """Decode a raw dump into text, never raising on malformed input."""
    encoding = detect_encoding(buffer)
    LOGGER.debug("Decoding %d bytes as %s", len(buffer), encoding)

    if encoding == "utf-16-le-bom":
        return _decode_utf16_le(buffer[2:])
    if encoding == "utf-16-be-bom":
        return _decode_utf16_le(swap_byte_pairs(buffer[2:]))
    if encoding == "utf-16-le":
        return _decode_utf16_le(buffer)
    if encoding == "utf-16-be":
        return _decode_utf16_le(swap_byte_pairs(buffer))
    return buffer.decode("utf-8", errors="replace")
