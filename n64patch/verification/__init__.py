"""Verification Module.

Verified patch pipeline and its text reports.
"""

from .pipeline import (
    DEFAULT_PATCH_NAME,
    BaseVerification,
    PipelineResult,
    VerificationPipeline,
    read_image,
    read_patch,
    write_file_atomic,
)
from .report import (
    format_digests,
    format_failure,
    format_patch_info,
    format_success,
)

__all__ = [
    "DEFAULT_PATCH_NAME",
    "BaseVerification",
    "PipelineResult",
    "VerificationPipeline",
    "read_image",
    "read_patch",
    "write_file_atomic",
    "format_digests",
    "format_failure",
    "format_patch_info",
    "format_success",
]
