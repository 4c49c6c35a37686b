"""Text reports for patch runs.

Failure reports are the main remediation signal for a user whose dump does
not match: they name the failed check, the expected value, every computed
digest and whether the byte order was converted.
"""

from __future__ import annotations

from typing import List

from ..exceptions import BaseError, OutputVerificationError, PatchEngineError
from ..hash_utils import DigestSet
from ..patching.patch_codec import PatchContainer
from .pipeline import PipelineResult

_DIGEST_LABELS = (
    ("sha1", "SHA-1"),
    ("md5", "MD5"),
    ("sha256", "SHA-256"),
    ("crc32", "CRC32"),
)


def _digest_lines(digests: dict, width: int = 15) -> List[str]:
    return [f"  {label:<{width}}: {digests[key]}" for key, label in _DIGEST_LABELS if key in digests]


def _format_line(source_format: str, converted: bool) -> str:
    suffix = " (converted to .z64 for patching)" if converted else ""
    return f"{source_format}{suffix}"


def format_failure(error: BaseError) -> str:
    """Describe a failed run."""
    lines = [str(error)]
    details = error.details

    if isinstance(error, PatchEngineError) and error.check:
        lines.append(f"  Check   : {error.check}")
        if error.expected is not None:
            lines.append(f"  Expected: {error.expected}")
        if error.actual is not None:
            lines.append(f"  Got     : {error.actual}")

    digests = details.get('digests')
    if 'source_format' in details or digests:
        lines.append("")
        lines.append("Generated ROM info:" if isinstance(error, OutputVerificationError) else "Provided ROM info:")
        if 'source_format' in details:
            lines.append(f"  {'Detected format':<15}: "
                         f"{_format_line(details['source_format'], bool(details.get('converted')))}")
        if 'size' in details:
            lines.append(f"  {'Size':<15}: {details['size']}")
        if digests:
            lines.extend(_digest_lines(digests))

    if 'file_path' in details:
        lines.append(f"  Path    : {details['file_path']}")
    return "\n".join(lines)


def format_success(result: PipelineResult) -> str:
    """Describe a successful run."""
    fmt = result.source_format.value
    lines = [
        "Patch applied successfully!",
        f"Input : {result.input_path}",
        f"Output: {result.output_path}",
        f"Patch : {result.patch_path} ({result.record_count} records)",
        f"Format: {fmt}{' -> z64' if result.converted else ''}",
        "",
        "Checksums (output):",
    ]
    lines.extend(_digest_lines(result.output_digests.to_dict(), width=7))
    return "\n".join(lines)


def format_digests(digests: DigestSet) -> str:
    return "\n".join(_digest_lines(digests.to_dict()))


def format_patch_info(container: PatchContainer, patch_path: str) -> str:
    """Describe a patch header without touching any image."""
    return "\n".join([
        f"Patch       : {patch_path}",
        f"Version     : {container.version}",
        f"Base SHA-1  : {container.base_sha1_hex}",
        f"Target SHA-1: {container.target_sha1_hex}",
        f"Base size   : {container.base_size}",
        f"Target size : {container.target_size}",
        f"Records     : {container.record_count}",
        f"Payload     : {container.payload_size} bytes",
    ])
