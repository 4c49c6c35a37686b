"""N64P Patcher - applies overwrite records to a copy of a ROM image."""

from __future__ import annotations

import logging

from ..exceptions import BoundsError
from .patch_codec import PatchContainer

logger = logging.getLogger(__name__)


def apply_patch(base_image: bytes, container: PatchContainer) -> bytes:
    """Apply every record of a container to a copy of ``base_image``.

    Records are applied strictly in order; a later record may overwrite bytes
    written by an earlier one. The caller's buffer is never modified and the
    result has the same length as the input.

    Raises:
        BoundsError: if a record reaches past the end of the image. The
            partially patched copy is dropped with the exception.
    """
    output = bytearray(base_image)
    size = len(output)

    for index, record in enumerate(container.records):
        if record.end > size:
            raise BoundsError(
                f"Record out of bounds: offset={record.offset}, len={record.length}",
                index=index,
                offset=record.offset,
                length=record.length,
                size=size,
            )
        output[record.offset:record.end] = record.payload

    logger.debug("Applied %d records (%d payload bytes)", container.record_count, container.payload_size)
    return bytes(output)
