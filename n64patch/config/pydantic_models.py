"""Pydantic models validating the profile table."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^[0-9a-f]+$")


def _hex_digest(value: str, length: int, name: str) -> str:
    value = str(value).strip().lower()
    if len(value) != length or not _HEX_RE.match(value):
        raise ValueError(f"{name} must be {length} hex chars, got {value!r}")
    return value


class ImageProfileModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    size: int = Field(gt=0)
    md5: str
    sha1: str
    sha256: Optional[str] = None
    crc32: str

    @field_validator("md5")
    @classmethod
    def _check_md5(cls, value: str) -> str:
        return _hex_digest(value, 32, "md5")

    @field_validator("sha1")
    @classmethod
    def _check_sha1(cls, value: str) -> str:
        return _hex_digest(value, 40, "sha1")

    @field_validator("crc32")
    @classmethod
    def _check_crc32(cls, value: str) -> str:
        return _hex_digest(value, 8, "crc32")

    @field_validator("sha256")
    @classmethod
    def _check_sha256(cls, value: Optional[str]) -> Optional[str]:
        # Not asserted by the pipeline, so an irregular value is only reported.
        if value is None:
            return None
        value = str(value).strip().lower()
        if len(value) != 64 or not _HEX_RE.match(value):
            logger.warning("sha256 %r is not a 64-char hex digest; it is reported but never asserted", value)
        return value


class TitleProfileModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    description: str = ""
    default_input_name: str
    default_output_name: str
    base: ImageProfileModel
    target: ImageProfileModel


class ProfileTableModel(BaseModel):
    default: Optional[str] = None
    profiles: Dict[str, TitleProfileModel]
