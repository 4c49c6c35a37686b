"""Expected-image profile table.

Reads ``n64patch/config/profiles.yaml`` (or the file named by
``N64PATCH_PROFILES``) and produces an immutable, title/revision-keyed
mapping of base/target profiles.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from ..exceptions import ConfigurationError, ProfileNotFoundError
from .pydantic_models import ImageProfileModel, ProfileTableModel

logger = logging.getLogger(__name__)

PROFILES_ENV = "N64PATCH_PROFILES"
PROFILE_KEY_ENV = "N64PATCH_PROFILE"


@dataclass(frozen=True)
class ExpectedProfile:
    """Size and digests of a known-good image."""

    size: int
    md5: str
    sha1: str
    crc32: str
    sha256: Optional[str] = None


@dataclass(frozen=True)
class TitleProfile:
    """A base/target pair for one title revision."""

    key: str
    base: ExpectedProfile
    target: ExpectedProfile
    default_input_name: str
    default_output_name: str
    description: str = ""


@dataclass(frozen=True)
class ProfileTable:
    profiles: Mapping[str, TitleProfile]
    default_key: Optional[str] = None
    source: Optional[str] = None

    def get(self, key: Optional[str] = None) -> TitleProfile:
        """Look up a profile; ``None`` selects the env override, then the table default."""
        key = key or os.environ.get(PROFILE_KEY_ENV, "").strip() or self.default_key
        if not key or key not in self.profiles:
            raise ProfileNotFoundError(str(key), list(self.profiles))
        return self.profiles[key]

    def keys(self):
        return self.profiles.keys()


def default_profiles_path() -> Path:
    override = os.environ.get(PROFILES_ENV, "").strip()
    if override:
        return Path(override)
    return Path(__file__).resolve().parent / "profiles.yaml"


def _to_expected(model: ImageProfileModel) -> ExpectedProfile:
    return ExpectedProfile(
        size=model.size,
        md5=model.md5,
        sha1=model.sha1,
        crc32=model.crc32,
        sha256=model.sha256,
    )


def build_profile_table(data: Dict[str, Any], source: Optional[str] = None) -> ProfileTable:
    """Validate raw table data and freeze it."""
    try:
        model = ProfileTableModel.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid profile table: {exc.error_count()} error(s)",
            "PROFILE_VALIDATION_ERROR",
            source,
            {'errors': [err.get('msg') for err in exc.errors()]},
        ) from exc

    profiles = {
        key: TitleProfile(
            key=key,
            base=_to_expected(entry.base),
            target=_to_expected(entry.target),
            default_input_name=entry.default_input_name,
            default_output_name=entry.default_output_name,
            description=entry.description,
        )
        for key, entry in model.profiles.items()
    }
    if model.default and model.default not in profiles:
        raise ProfileNotFoundError(model.default, list(profiles))
    return ProfileTable(profiles=MappingProxyType(profiles), default_key=model.default, source=source)


def load_profile_table(path: Optional[Union[str, Path]] = None) -> ProfileTable:
    """Load the profile table from YAML."""
    table_path = Path(path) if path else default_profiles_path()
    try:
        raw = table_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read profile table: {exc}", "PROFILE_READ_ERROR", str(table_path)
        ) from exc
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Cannot parse profile table: {exc}", "PROFILE_PARSE_ERROR", str(table_path)
        ) from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Profile table must be a mapping", "PROFILE_PARSE_ERROR", str(table_path))

    table = build_profile_table(data, str(table_path))
    logger.debug("Loaded %d profile(s) from %s", len(table.profiles), table_path)
    return table
