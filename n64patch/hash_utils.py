"""ROM hash utilities - digests of in-memory ROM images used to verify a base image before patching and the patched image afterwards."""

import hashlib
import zlib
from dataclasses import dataclass, asdict
from functools import lru_cache
from typing import Dict, Tuple

CRC32_POLYNOMIAL = 0xEDB88320
CRC32_BACKENDS = ("zlib", "table")


@dataclass(frozen=True)
class DigestSet:
    """Digests of one image buffer, all lowercase hex."""

    md5: str
    sha1: str
    sha256: str
    crc32: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@lru_cache(maxsize=1)
def crc32_table() -> Tuple[int, ...]:
    """256-entry lookup table for the reflected CRC-32 polynomial, built once."""
    table = []
    for i in range(256):
        c = i
        for _ in range(8):
            c = (CRC32_POLYNOMIAL ^ (c >> 1)) if (c & 1) else (c >> 1)
        table.append(c)
    return tuple(table)


def crc32_table_driven(data: bytes, crc: int = 0) -> int:
    """CRC-32 of data using the lookup table. Args: data: bytes to digest, crc: running value of a previous call Return: CRC-32 as an unsigned int"""
    table = crc32_table()
    c = crc ^ 0xFFFFFFFF
    for byte in data:
        c = table[(c ^ byte) & 0xFF] ^ (c >> 8)
    return c ^ 0xFFFFFFFF


def crc32_hex(data: bytes, backend: str = "zlib") -> str:
    """CRC-32 of data as 8 lowercase hex chars.

    ``zlib`` and ``table`` compute the same reflected CRC-32 (init and final
    XOR 0xFFFFFFFF); ``zlib`` runs in C and is the default for 64 MiB images.
    zlib's crc32 is itself the table-driven reflected algorithm over polynomial
    0xEDB88320, so both backends yield bit-identical values.
    """
    if backend == "zlib":
        value = zlib.crc32(data) & 0xFFFFFFFF
    elif backend == "table":
        value = crc32_table_driven(data)
    else:
        raise ValueError(f"Unknown CRC-32 backend: {backend}")
    return "%08x" % value


def digest_all(data: bytes, crc32_backend: str = "zlib") -> DigestSet:
    """Compute MD5, SHA-1, SHA-256 and CRC-32 of a buffer."""
    view = memoryview(data)
    return DigestSet(
        md5=hashlib.md5(view).hexdigest(),
        sha1=hashlib.sha1(view).hexdigest(),
        sha256=hashlib.sha256(view).hexdigest(),
        crc32=crc32_hex(data, crc32_backend),
    )
