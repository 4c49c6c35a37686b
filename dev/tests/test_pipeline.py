"""End-to-end tests for the verified patch pipeline."""

from pathlib import Path

import pytest

from n64patch.exceptions import (
    BoundsError,
    ChecksumError,
    EXIT_BASE_VERIFICATION_FAILED,
    EXIT_INPUT_NOT_FOUND,
    EXIT_OUTPUT_VERIFICATION_FAILED,
    FileOperationError,
    FormatError,
    InputNotFoundError,
    OutputVerificationError,
    PatchMismatchError,
    PatchStructureError,
    SizeError,
)
from n64patch.hash_utils import digest_all
from n64patch.patching import FormatTag, PatchContainer, PatchRecord, build_patch, parse, serialize, to_format
from n64patch.verification import pipeline as pipeline_module
from n64patch.verification.pipeline import VerificationPipeline


def _corrupt_first_payload(blob: bytes) -> bytes:
    container = parse(blob)
    first = container.records[0]
    corrupted = PatchRecord(first.offset, bytes([first.payload[0] ^ 0xFF]) + first.payload[1:])
    return serialize(PatchContainer(
        base_sha1=container.base_sha1,
        target_sha1=container.target_sha1,
        base_size=container.base_size,
        target_size=container.target_size,
        records=(corrupted,) + container.records[1:],
    ))


class TestSuccessfulRun:

    @pytest.mark.parametrize("fmt", [FormatTag.BIG_ENDIAN, FormatTag.BYTE_SWAPPED, FormatTag.WORD_REVERSED])
    def test_run_writes_verified_output(self, workspace, title_profile, base_image, target_image, fmt):
        src = workspace / f"base.{fmt.value}"
        src.write_bytes(to_format(base_image, fmt))
        out = workspace / "out.z64"

        result = VerificationPipeline(title_profile).run(src, out, workspace / "patchBuf.bin")

        assert out.read_bytes() == target_image
        assert result.output_digests == digest_all(target_image)
        assert result.output_digests.sha256 == title_profile.target.sha256
        assert result.base_digests == digest_all(base_image)
        assert result.source_format is fmt
        assert result.converted is (fmt is not FormatTag.BIG_ENDIAN)
        assert result.size == len(target_image)
        assert not (workspace / "out.z64.part").exists()

    def test_default_output_is_next_to_input(self, workspace, title_profile, target_image):
        result = VerificationPipeline(title_profile).run(
            workspace / "base.z64", patch_path=workspace / "patchBuf.bin"
        )

        assert Path(result.output_path) == workspace / "patched.z64"
        assert (workspace / "patched.z64").read_bytes() == target_image

    def test_input_file_is_left_untouched(self, workspace, title_profile, base_image):
        VerificationPipeline(title_profile).run(
            workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
        )
        assert (workspace / "base.z64").read_bytes() == base_image

    def test_process_in_memory(self, title_profile, base_image, target_image, patch_blob):
        candidate, base, digests = VerificationPipeline(title_profile).process(base_image, parse(patch_blob))

        assert candidate == target_image
        assert base.image.data == base_image
        assert digests.crc32 == title_profile.target.crc32

    def test_table_crc_backend(self, workspace, title_profile, target_image):
        pipeline = VerificationPipeline(title_profile, crc32_backend="table")
        pipeline.run(workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin")
        assert (workspace / "out.z64").read_bytes() == target_image


class TestBaseVerification:

    def test_wrong_size_fails_before_digesting(self, workspace, title_profile, base_image, monkeypatch):
        (workspace / "base.z64").write_bytes(base_image + b"\x00" * 4)

        def _no_digest(*args, **kwargs):
            raise AssertionError("digest computed for a wrong-size image")

        monkeypatch.setattr(pipeline_module, "digest_all", _no_digest)

        with pytest.raises(SizeError) as exc_info:
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
            )

        err = exc_info.value
        assert err.exit_code == EXIT_BASE_VERIFICATION_FAILED
        assert err.expected == len(base_image)
        assert err.actual == len(base_image) + 4
        assert not (workspace / "out.z64").exists()

    def test_checksum_mismatch_reports_every_digest(self, workspace, title_profile, base_image):
        bad = bytearray(to_format(base_image, FormatTag.BYTE_SWAPPED))
        bad[100] ^= 0x01
        (workspace / "base.z64").write_bytes(bytes(bad))

        with pytest.raises(ChecksumError) as exc_info:
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
            )

        err = exc_info.value
        assert err.exit_code == EXIT_BASE_VERIFICATION_FAILED
        assert err.check == "sha1"
        assert err.expected == title_profile.base.sha1
        assert set(err.digests) == {"md5", "sha1", "sha256", "crc32"}
        assert err.details["source_format"] == "v64"
        assert err.details["converted"] is True
        assert not (workspace / "out.z64").exists()

    def test_odd_length_byte_swapped_image_is_rejected(self, workspace, title_profile, base_image):
        (workspace / "base.z64").write_bytes(to_format(base_image, FormatTag.BYTE_SWAPPED) + b"\x00")

        with pytest.raises(FormatError) as exc_info:
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
            )

        assert exc_info.value.exit_code == 99
        assert exc_info.value.details["source_format"] == "v64"
        assert not (workspace / "out.z64").exists()

    def test_missing_input(self, tmp_path, title_profile):
        with pytest.raises(InputNotFoundError) as exc_info:
            VerificationPipeline(title_profile).run(tmp_path / "nope.z64", patch_path=tmp_path / "p.bin")
        assert exc_info.value.exit_code == EXIT_INPUT_NOT_FOUND


class TestPatchGates:

    def test_truncated_patch_fails_before_touching_image(self, workspace, title_profile, patch_blob, monkeypatch):
        (workspace / "patchBuf.bin").write_bytes(patch_blob[:-3])
        calls = []
        monkeypatch.setattr(pipeline_module, "apply_patch", lambda *a: calls.append(a))

        with pytest.raises(PatchStructureError):
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
            )

        assert calls == []
        assert not (workspace / "out.z64").exists()

    def test_missing_patch_file(self, workspace, title_profile):
        with pytest.raises(FileOperationError) as exc_info:
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "missing.bin"
            )
        assert exc_info.value.exit_code == 99

    def test_patch_for_other_base_is_rejected(self, workspace, title_profile, base_image, target_image):
        other_base = bytearray(base_image)
        other_base[8] ^= 0xFF
        blob = serialize(build_patch(bytes(other_base), target_image))
        (workspace / "patchBuf.bin").write_bytes(blob)

        with pytest.raises(PatchMismatchError) as exc_info:
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
            )
        assert exc_info.value.check == "patch base sha1"
        assert exc_info.value.details["converted"] is False
        assert exc_info.value.details["digests"]["sha1"] == title_profile.base.sha1
        assert not (workspace / "out.z64").exists()

    def test_patch_with_wrong_target_size_is_rejected(self, title_profile, base_image, patch_blob):
        container = parse(patch_blob)
        bad = PatchContainer(
            base_sha1=container.base_sha1,
            target_sha1=container.target_sha1,
            base_size=container.base_size,
            target_size=container.target_size + 4,
            records=container.records,
        )
        with pytest.raises(PatchMismatchError) as exc_info:
            VerificationPipeline(title_profile).process(base_image, bad)
        assert exc_info.value.check == "patch target size"

    def test_out_of_bounds_record_writes_nothing(self, workspace, title_profile, base_image, patch_blob):
        container = parse(patch_blob)
        bad = PatchContainer(
            base_sha1=container.base_sha1,
            target_sha1=container.target_sha1,
            base_size=container.base_size,
            target_size=container.target_size,
            records=container.records + (PatchRecord(len(base_image) - 1, b"\x00\x00"),),
        )
        (workspace / "patchBuf.bin").write_bytes(serialize(bad))

        with pytest.raises(BoundsError) as exc_info:
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
            )
        assert exc_info.value.details["record_index"] == len(container.records)
        assert exc_info.value.details["size"] == len(base_image)
        assert set(exc_info.value.details["digests"]) == {"md5", "sha1", "sha256", "crc32"}
        assert not (workspace / "out.z64").exists()


class TestOutputVerification:

    def test_corrupted_payload_fails_and_writes_nothing(self, workspace, title_profile, patch_blob):
        (workspace / "patchBuf.bin").write_bytes(_corrupt_first_payload(patch_blob))

        with pytest.raises(OutputVerificationError) as exc_info:
            VerificationPipeline(title_profile).run(
                workspace / "base.z64", workspace / "out.z64", workspace / "patchBuf.bin"
            )

        err = exc_info.value
        assert err.exit_code == EXIT_OUTPUT_VERIFICATION_FAILED
        assert err.expected == title_profile.target.sha1
        assert set(err.digests) == {"md5", "sha1", "sha256", "crc32"}
        assert err.details["converted"] is False
        assert not (workspace / "out.z64").exists()
        assert not (workspace / "out.z64.part").exists()
