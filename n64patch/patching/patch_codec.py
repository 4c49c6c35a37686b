"""N64P patch container codec.

Wire format (all integers big-endian, no padding):

- Header (57 bytes):
  magic "N64P" (4) | version (1) | base SHA-1 (20) | target SHA-1 (20) |
  base size (4) | target size (4) | record count (4)
- Records, densely packed: offset (4) | length (4) | payload (length)

The blob must be consumed exactly: no trailing bytes and no short reads.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import List, Tuple

from ..exceptions import PatchStructureError

PATCH_MAGIC = b"N64P"
PATCH_VERSION = 1
SHA1_DIGEST_SIZE = 20

HEADER_FMT = ">4sB20s20sIII"
RECORD_FMT = ">II"
HEADER_SIZE = struct.calcsize(HEADER_FMT)  # 57
RECORD_HEADER_SIZE = struct.calcsize(RECORD_FMT)  # 8

_U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class PatchRecord:
    """Overwrite ``payload`` at ``offset`` in the target image."""

    offset: int
    payload: bytes

    @property
    def length(self) -> int:
        return len(self.payload)

    @property
    def end(self) -> int:
        return self.offset + len(self.payload)


@dataclass(frozen=True)
class PatchContainer:
    """A parsed N64P patch."""

    base_sha1: bytes
    target_sha1: bytes
    base_size: int
    target_size: int
    records: Tuple[PatchRecord, ...] = field(default_factory=tuple)
    version: int = PATCH_VERSION

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def base_sha1_hex(self) -> str:
        return self.base_sha1.hex()

    @property
    def target_sha1_hex(self) -> str:
        return self.target_sha1.hex()

    @property
    def payload_size(self) -> int:
        return sum(r.length for r in self.records)


def parse(blob: bytes) -> PatchContainer:
    """Parse and structurally validate a patch blob.

    Raises:
        PatchStructureError: on a short header, bad magic, unsupported
            version, a record reaching past the end, or trailing bytes.
    """
    total = len(blob)
    if total < HEADER_SIZE:
        raise PatchStructureError(
            f"Patch too short: {total} bytes (header needs {HEADER_SIZE})",
            check="header size", expected=HEADER_SIZE, actual=total,
        )

    magic, version, base_sha1, target_sha1, base_size, target_size, count = (
        struct.unpack_from(HEADER_FMT, blob, 0)
    )
    if magic != PATCH_MAGIC:
        raise PatchStructureError(
            "Invalid patch (magic)",
            check="magic", expected=PATCH_MAGIC.decode("ascii"),
            actual=magic.decode("latin-1"),
        )
    if version != PATCH_VERSION:
        raise PatchStructureError(
            f"Invalid patch (version {version})",
            check="version", expected=PATCH_VERSION, actual=version,
        )

    view = memoryview(blob)
    pos = HEADER_SIZE
    records: List[PatchRecord] = []
    for index in range(count):
        if pos + RECORD_HEADER_SIZE > total:
            raise PatchStructureError(
                f"Corrupted patch (record {index} header truncated at {pos})",
                check="record header", expected=pos + RECORD_HEADER_SIZE, actual=total,
                details={'record_index': index},
            )
        offset, length = struct.unpack_from(RECORD_FMT, blob, pos)
        pos += RECORD_HEADER_SIZE
        if pos + length > total:
            raise PatchStructureError(
                f"Corrupted patch (record {index} data truncated: needs {length} bytes at {pos})",
                check="record data", expected=pos + length, actual=total,
                details={'record_index': index},
            )
        records.append(PatchRecord(offset=offset, payload=bytes(view[pos:pos + length])))
        pos += length

    if pos != total:
        raise PatchStructureError(
            f"Corrupted patch (extra data: {total - pos} trailing bytes)",
            check="length", expected=pos, actual=total,
        )

    return PatchContainer(
        base_sha1=base_sha1,
        target_sha1=target_sha1,
        base_size=base_size,
        target_size=target_size,
        records=tuple(records),
        version=version,
    )


def _check_u32(name: str, value: int) -> None:
    if not 0 <= value <= _U32_MAX:
        raise PatchStructureError(
            f"{name} out of u32 range: {value}", check=name, expected="0..4294967295", actual=value,
        )


def serialize(container: PatchContainer) -> bytes:
    """Encode a container into its wire format."""
    if container.version != PATCH_VERSION:
        raise PatchStructureError(
            f"Unsupported patch version {container.version}",
            check="version", expected=PATCH_VERSION, actual=container.version,
        )
    for name, digest in (("base_sha1", container.base_sha1), ("target_sha1", container.target_sha1)):
        if len(digest) != SHA1_DIGEST_SIZE:
            raise PatchStructureError(
                f"{name} must be {SHA1_DIGEST_SIZE} raw bytes, got {len(digest)}",
                check=name, expected=SHA1_DIGEST_SIZE, actual=len(digest),
            )
    _check_u32("base_size", container.base_size)
    _check_u32("target_size", container.target_size)
    _check_u32("record_count", container.record_count)

    out = bytearray(struct.pack(
        HEADER_FMT,
        PATCH_MAGIC,
        container.version,
        bytes(container.base_sha1),
        bytes(container.target_sha1),
        container.base_size,
        container.target_size,
        container.record_count,
    ))
    for record in container.records:
        _check_u32("offset", record.offset)
        _check_u32("length", record.length)
        out += struct.pack(RECORD_FMT, record.offset, record.length)
        out += record.payload
    return bytes(out)
