from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Dict

import pytest
import yaml

# Ensure repo root on path
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from n64patch.config.profiles import ExpectedProfile, TitleProfile  # noqa: E402
from n64patch.hash_utils import digest_all  # noqa: E402
from n64patch.patching import build_patch, serialize  # noqa: E402

IMAGE_SIZE = 4096
Z64_MAGIC = b"\x80\x37\x12\x40"
PROFILE_KEY = "test-title/rev-a"


def make_base_image(size: int = IMAGE_SIZE) -> bytes:
    """Small big-endian image with a recognizable header."""
    return Z64_MAGIC + bytes((i * 7 + 3) & 0xFF for i in range(size - 4))


def make_target_image(base: bytes) -> bytes:
    out = bytearray(base)
    out[0x40:0x48] = b"PATCHED!"
    out[0x200:0x210] = bytes(range(0xF0, 0x100))
    out[-4:] = b"\xde\xad\xbe\xef"
    return bytes(out)


def expected_profile(data: bytes) -> ExpectedProfile:
    d = digest_all(data)
    return ExpectedProfile(size=len(data), md5=d.md5, sha1=d.sha1, crc32=d.crc32, sha256=d.sha256)


def profile_entry(data: bytes) -> Dict[str, object]:
    d = digest_all(data)
    return {"size": len(data), "md5": d.md5, "sha1": d.sha1, "sha256": d.sha256, "crc32": d.crc32}


@pytest.fixture(autouse=True)
def _reset_n64patch_logging():
    yield
    logger = logging.getLogger("n64patch")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def base_image() -> bytes:
    return make_base_image()


@pytest.fixture
def target_image(base_image: bytes) -> bytes:
    return make_target_image(base_image)


@pytest.fixture
def title_profile(base_image: bytes, target_image: bytes) -> TitleProfile:
    return TitleProfile(
        key=PROFILE_KEY,
        base=expected_profile(base_image),
        target=expected_profile(target_image),
        default_input_name="base.z64",
        default_output_name="patched.z64",
        description="synthetic test image",
    )


@pytest.fixture
def patch_blob(base_image: bytes, target_image: bytes) -> bytes:
    return serialize(build_patch(base_image, target_image))


@pytest.fixture
def profiles_file(tmp_path: Path, base_image: bytes, target_image: bytes) -> Path:
    data = {
        "default": PROFILE_KEY,
        "profiles": {
            PROFILE_KEY: {
                "description": "synthetic test image",
                "default_input_name": "base.z64",
                "default_output_name": "patched.z64",
                "base": profile_entry(base_image),
                "target": profile_entry(target_image),
            }
        },
    }
    path = tmp_path / "profiles.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path: Path, base_image: bytes, patch_blob: bytes) -> Path:
    """Directory holding base.z64 and patchBuf.bin."""
    (tmp_path / "base.z64").write_bytes(base_image)
    (tmp_path / "patchBuf.bin").write_bytes(patch_blob)
    return tmp_path
