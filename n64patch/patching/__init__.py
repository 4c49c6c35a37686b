"""Patch management module.

- Byte-order detection and normalization (z64/v64/n64)
- N64P container codec
- Patch application
- Patch building from a base/target pair
"""

from .format_detector import (
    FormatTag,
    NormalizedImage,
    detect,
    normalize,
    to_format,
)
from .patch_codec import (
    PatchContainer,
    PatchRecord,
    parse,
    serialize,
)
from .patcher import apply_patch
from .patch_builder import (
    build_patch,
    diff_records,
    find_diffs,
)

__all__ = [
    "FormatTag",
    "NormalizedImage",
    "detect",
    "normalize",
    "to_format",
    "PatchContainer",
    "PatchRecord",
    "parse",
    "serialize",
    "apply_patch",
    "build_patch",
    "diff_records",
    "find_diffs",
]
