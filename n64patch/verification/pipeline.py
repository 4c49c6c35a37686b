"""Verified patch pipeline.

detect -> verify input -> apply -> verify output -> persist

Every step is a hard gate. The output file is written once, atomically, and
only after the patched image matches the target profile.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from ..config.profiles import ExpectedProfile, TitleProfile
from ..exceptions import (
    ChecksumError,
    FileOperationError,
    InputNotFoundError,
    OutputVerificationError,
    PatchEngineError,
    PatchMismatchError,
    SizeError,
)
from ..hash_utils import DigestSet, digest_all
from ..logging_config import LoggingTimer
from ..patching.format_detector import FormatTag, NormalizedImage, normalize
from ..patching.patch_codec import PatchContainer, parse
from ..patching.patcher import apply_patch

logger = logging.getLogger(__name__)

DEFAULT_PATCH_NAME = "patchBuf.bin"

# Digests asserted against a profile, in check order. sha256 is reported only.
ASSERTED_DIGESTS = ("sha1", "md5", "crc32")

PathLike = Union[str, Path]


@dataclass(frozen=True)
class BaseVerification:
    """A normalized base image that passed the size and digest gates."""

    image: NormalizedImage
    digests: DigestSet


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a successful run."""

    input_path: str
    output_path: str
    patch_path: str
    source_format: FormatTag
    converted: bool
    base_digests: DigestSet
    output_digests: DigestSet
    record_count: int
    size: int


def _image_details(image: NormalizedImage) -> dict:
    return {
        'source_format': image.source_format.value,
        'converted': image.converted,
        'size': len(image.data),
    }


def _first_mismatch(digests: DigestSet, profile: ExpectedProfile) -> Optional[Tuple[str, str, str]]:
    for name in ASSERTED_DIGESTS:
        expected = getattr(profile, name)
        actual = getattr(digests, name)
        if actual != expected:
            return name, expected, actual
    return None


def read_image(path: PathLike) -> bytes:
    """Read a whole base image."""
    path = Path(path)
    if not path.is_file():
        raise InputNotFoundError(str(path))
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as exc:
        raise FileOperationError(f"Cannot read image: {exc}", str(path), "read") from exc


def read_patch(path: PathLike) -> PatchContainer:
    """Read and structurally validate a patch blob."""
    path = Path(path)
    try:
        with open(path, "rb") as f:
            blob = f.read()
    except OSError as exc:
        raise FileOperationError(f"Cannot read patch: {exc}", str(path), "read") from exc
    return parse(blob)


def write_file_atomic(path: PathLike, data: bytes) -> None:
    """Write ``data`` to ``path`` via a ``.part`` file and ``os.replace``.

    Nothing is left at ``path`` or beside it if the write fails.
    """
    dst = Path(path)
    tmp = dst.with_name(dst.name + ".part")
    try:
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(str(tmp), str(dst))
    except OSError as exc:
        raise FileOperationError(f"Cannot write file: {exc}", str(dst), "write") from exc
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError as exc:
                logger.debug("Failed to remove temp file: %s", exc)


class VerificationPipeline:
    """Applies a patch between the base and target images of one profile."""

    def __init__(self, profile: TitleProfile, crc32_backend: str = "zlib"):
        self.profile = profile
        self.crc32_backend = crc32_backend

    def verify_base(self, raw_image: bytes) -> BaseVerification:
        """Normalize the byte order, then check size and digests."""
        expected = self.profile.base

        with LoggingTimer("normalize"):
            image = normalize(raw_image)
        if image.converted:
            logger.info("Converted %s image to z64", image.source_format.value)
        else:
            logger.debug("Image format: %s", image.source_format.value)

        size = len(image.data)
        if size != expected.size:
            raise SizeError(
                f"Unexpected size: {size} bytes (expected {expected.size}).",
                expected=expected.size,
                actual=size,
                details=_image_details(image),
            )

        with LoggingTimer("digest base"):
            digests = digest_all(image.data, self.crc32_backend)

        mismatch = _first_mismatch(digests, expected)
        if mismatch:
            name, want, got = mismatch
            raise ChecksumError(
                f"Invalid {name.upper()} (base ROM).",
                check=name,
                expected=want,
                actual=got,
                digests=digests.to_dict(),
                details=_image_details(image),
            )

        logger.info("Base image verified (sha1 %s)", digests.sha1)
        return BaseVerification(image=image, digests=digests)

    def check_container(self, container: PatchContainer) -> None:
        """Make sure the patch was built for this exact base/target pair."""
        checks = (
            ("patch base sha1", self.profile.base.sha1, container.base_sha1_hex),
            ("patch target sha1", self.profile.target.sha1, container.target_sha1_hex),
            ("patch base size", self.profile.base.size, container.base_size),
            ("patch target size", self.profile.target.size, container.target_size),
        )
        for check, expected, actual in checks:
            if expected != actual:
                raise PatchMismatchError(
                    f"Invalid {check}.", check=check, expected=expected, actual=actual,
                )

    def verify_output(self, candidate: bytes, base_image: Optional[NormalizedImage] = None) -> DigestSet:
        """Check the patched image against the target profile."""
        expected = self.profile.target

        with LoggingTimer("digest output"):
            digests = digest_all(candidate, self.crc32_backend)

        details = _image_details(base_image) if base_image is not None else {}
        details['size'] = len(candidate)
        if len(candidate) != expected.size:
            raise OutputVerificationError(
                f"Invalid size (patched ROM): {len(candidate)} bytes (expected {expected.size}).",
                check="size",
                expected=str(expected.size),
                actual=str(len(candidate)),
                digests=digests.to_dict(),
                details=details,
            )

        mismatch = _first_mismatch(digests, expected)
        if mismatch:
            name, want, got = mismatch
            raise OutputVerificationError(
                f"Invalid {name.upper()} (patched ROM).",
                check=name,
                expected=want,
                actual=got,
                digests=digests.to_dict(),
                details=details,
            )
        return digests

    def patch_verified(self, base: BaseVerification, container: PatchContainer) -> Tuple[bytes, DigestSet]:
        """Cross-check the container, apply it and verify the result.

        Container and bounds failures carry the verified base image details.
        """
        try:
            self.check_container(container)
            with LoggingTimer("apply patch"):
                candidate = apply_patch(base.image.data, container)
        except PatchEngineError as e:
            for key, value in _image_details(base.image).items():
                e.details.setdefault(key, value)
            e.details.setdefault('digests', base.digests.to_dict())
            raise

        return candidate, self.verify_output(candidate, base.image)

    def process(self, raw_image: bytes, container: PatchContainer) -> Tuple[bytes, BaseVerification, DigestSet]:
        """Run every gate in memory and return the verified patched image."""
        base = self.verify_base(raw_image)
        candidate, output_digests = self.patch_verified(base, container)
        return candidate, base, output_digests

    def run(
        self,
        input_path: PathLike,
        output_path: Optional[PathLike] = None,
        patch_path: PathLike = DEFAULT_PATCH_NAME,
    ) -> PipelineResult:
        """Read the base image and patch, patch, verify and write the output."""
        input_path = Path(input_path)
        if output_path is None:
            output_path = input_path.parent / self.profile.default_output_name
        output_path = Path(output_path)

        raw = read_image(input_path)
        base = self.verify_base(raw)
        del raw

        container = read_patch(patch_path)
        logger.info("Loaded patch %s (%d records)", patch_path, container.record_count)
        candidate, output_digests = self.patch_verified(base, container)

        write_file_atomic(output_path, candidate)
        logger.info("Wrote %s", output_path)

        return PipelineResult(
            input_path=str(input_path),
            output_path=str(output_path),
            patch_path=str(patch_path),
            source_format=base.image.source_format,
            converted=base.image.converted,
            base_digests=base.digests,
            output_digests=output_digests,
            record_count=container.record_count,
            size=len(candidate),
        )
