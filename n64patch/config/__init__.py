"""Configuration package: the expected-image profile table."""

from .profiles import (
    ExpectedProfile,
    TitleProfile,
    ProfileTable,
    build_profile_table,
    default_profiles_path,
    load_profile_table,
)

__all__ = [
    "ExpectedProfile",
    "TitleProfile",
    "ProfileTable",
    "build_profile_table",
    "default_profiles_path",
    "load_profile_table",
]
