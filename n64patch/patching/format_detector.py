"""N64 byte-order detection and normalization.

N64 dumps circulate in three orderings of the same content, told apart by the
first four bytes of the header:

- z64: big-endian, the canonical order (``80 37 12 40``)
- v64: byte-swapped 16-bit halfwords (``37 80 40 12``)
- n64: reversed 32-bit words (``40 12 37 80``)

Each ordering maps to a pure transform function. Every transform is its own
inverse, so the same table converts to and from the canonical order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from ..exceptions import FormatError


class FormatTag(Enum):
    """Byte ordering of an N64 image."""

    BIG_ENDIAN = "z64"
    BYTE_SWAPPED = "v64"
    WORD_REVERSED = "n64"
    UNKNOWN = "unknown"


MAGIC_HEADERS: Dict[bytes, FormatTag] = {
    b"\x80\x37\x12\x40": FormatTag.BIG_ENDIAN,
    b"\x37\x80\x40\x12": FormatTag.BYTE_SWAPPED,
    b"\x40\x12\x37\x80": FormatTag.WORD_REVERSED,
}


@dataclass(frozen=True)
class NormalizedImage:
    """A canonical (big-endian) image plus where it came from."""

    data: bytes
    source_format: FormatTag
    converted: bool


def detect(data: bytes) -> FormatTag:
    """Classify the byte order of an image from its 4-byte header."""
    return MAGIC_HEADERS.get(bytes(data[:4]), FormatTag.UNKNOWN)


def _swap_halfwords(data: bytes) -> bytes:
    if len(data) % 2:
        raise FormatError(
            f"Byte-swapped image length {len(data)} is not a multiple of 2",
            source_format=FormatTag.BYTE_SWAPPED.value,
            size=len(data),
        )
    out = bytearray(len(data))
    out[0::2] = data[1::2]
    out[1::2] = data[0::2]
    return bytes(out)


def _reverse_words(data: bytes) -> bytes:
    if len(data) % 4:
        raise FormatError(
            f"Word-reversed image length {len(data)} is not a multiple of 4",
            source_format=FormatTag.WORD_REVERSED.value,
            size=len(data),
        )
    out = bytearray(len(data))
    out[0::4] = data[3::4]
    out[1::4] = data[2::4]
    out[2::4] = data[1::4]
    out[3::4] = data[0::4]
    return bytes(out)


def _identity(data: bytes) -> bytes:
    return data


_TRANSFORMS: Dict[FormatTag, Callable[[bytes], bytes]] = {
    FormatTag.BIG_ENDIAN: _identity,
    FormatTag.BYTE_SWAPPED: _swap_halfwords,
    FormatTag.WORD_REVERSED: _reverse_words,
    FormatTag.UNKNOWN: _identity,
}


def normalize(data: bytes) -> NormalizedImage:
    """Convert an image to big-endian order.

    Converted images are independent copies; BIG_ENDIAN and UNKNOWN images
    are returned as-is with ``converted`` False.
    """
    fmt = detect(data)
    transform = _TRANSFORMS[fmt]
    if transform is _identity:
        return NormalizedImage(data=bytes(data), source_format=fmt, converted=False)
    return NormalizedImage(data=transform(data), source_format=fmt, converted=True)


def to_format(data: bytes, fmt: FormatTag) -> bytes:
    """Convert a big-endian image into the given byte order."""
    if fmt is FormatTag.UNKNOWN:
        raise FormatError("Cannot convert to an unknown byte order", source_format=fmt.value)
    transform = _TRANSFORMS[fmt]
    if transform is _identity:
        return bytes(data)
    return transform(data)
