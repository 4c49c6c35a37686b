"""Build N64P patches from a base and a target image.

Differing byte runs are located and coalesced when separated by a short run
of equal bytes, since every record costs an 8-byte header.
"""

from __future__ import annotations

import hashlib
import logging
from typing import List, Tuple

from ..exceptions import SizeError
from .patch_codec import PatchContainer, PatchRecord

logger = logging.getLogger(__name__)

DEFAULT_MERGE_GAP = 8

# Equal regions are skipped a chunk at a time; only differing chunks are scanned per byte.
CHUNK_SIZE = 64 * 1024


def _next_diff(base: memoryview, target: memoryview, i: int, n: int) -> int:
    """Index of the first differing byte at or after ``i``, or ``n``."""
    while i < n:
        end = min(i + CHUNK_SIZE, n)
        if base[i:end] == target[i:end]:
            i = end
            continue
        while base[i] == target[i]:
            i += 1
        return i
    return n


def find_diffs(base: bytes, target: bytes, merge_gap: int = DEFAULT_MERGE_GAP) -> List[Tuple[int, int]]:
    """Return ``(start, end)`` ranges where the two buffers differ.

    Ranges separated by at most ``merge_gap`` equal bytes are merged.
    """
    if len(base) != len(target):
        raise SizeError(
            f"Base and target sizes differ: {len(base)} != {len(target)}",
            expected=len(base),
            actual=len(target),
        )

    ranges: List[Tuple[int, int]] = []
    a, b = memoryview(base), memoryview(target)
    n = len(a)
    i = _next_diff(a, b, 0, n)
    while i < n:
        start = i
        while i < n and a[i] != b[i]:
            i += 1
        if ranges and start - ranges[-1][1] <= merge_gap:
            ranges[-1] = (ranges[-1][0], i)
        else:
            ranges.append((start, i))
        i = _next_diff(a, b, i, n)
    return ranges


def diff_records(base: bytes, target: bytes, merge_gap: int = DEFAULT_MERGE_GAP) -> List[PatchRecord]:
    """Records that turn ``base`` into ``target``."""
    return [
        PatchRecord(offset=start, payload=bytes(target[start:end]))
        for start, end in find_diffs(base, target, merge_gap)
    ]


def build_patch(base: bytes, target: bytes, merge_gap: int = DEFAULT_MERGE_GAP) -> PatchContainer:
    """Create a container transforming ``base`` into ``target``.

    Both images must already be in big-endian order and of equal length.
    """
    records = diff_records(base, target, merge_gap)
    container = PatchContainer(
        base_sha1=hashlib.sha1(base).digest(),
        target_sha1=hashlib.sha1(target).digest(),
        base_size=len(base),
        target_size=len(target),
        records=tuple(records),
    )
    logger.info(
        "Built patch: %d records, %d payload bytes", container.record_count, container.payload_size
    )
    return container
