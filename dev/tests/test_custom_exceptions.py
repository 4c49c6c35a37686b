import pytest

from n64patch.exceptions import (
    BaseError,
    BoundsError,
    ChecksumError,
    ConfigurationError,
    FileOperationError,
    FormatError,
    InputNotFoundError,
    OutputVerificationError,
    PatchEngineError,
    PatchMismatchError,
    PatchStructureError,
    ProfileNotFoundError,
    SizeError,
)


@pytest.mark.parametrize(
    "error,exit_code",
    [
        (InputNotFoundError("rom.z64"), 1),
        (SizeError("size", expected=8, actual=4), 2),
        (ChecksumError("sum", "md5", "a", "b"), 2),
        (OutputVerificationError("out", "crc32", "a", "b"), 3),
        (FormatError("fmt"), 99),
        (PatchStructureError("struct"), 99),
        (PatchMismatchError("mismatch", "patch base size", 8, 4), 99),
        (BoundsError("bounds", index=0, offset=4, length=8, size=8), 99),
        (ProfileNotFoundError("x/y"), 99),
        (FileOperationError("io"), 99),
    ],
)
def test_exit_codes(error, exit_code):
    assert isinstance(error, BaseError)
    assert error.exit_code == exit_code


def test_engine_errors_share_a_base():
    for cls in (FormatError, SizeError, ChecksumError, PatchStructureError,
                PatchMismatchError, BoundsError, OutputVerificationError):
        assert issubclass(cls, PatchEngineError)
    assert issubclass(ProfileNotFoundError, ConfigurationError)


def test_to_dict_carries_expected_and_actual():
    err = ChecksumError("Invalid MD5 (base ROM).", "md5", "aa", "bb", digests={"md5": "bb"})
    payload = err.to_dict()

    assert payload["error_code"] == "CHECKSUM_ERROR"
    assert payload["message"] == "Invalid MD5 (base ROM)."
    assert payload["details"]["check"] == "md5"
    assert payload["details"]["expected"] == "aa"
    assert payload["details"]["actual"] == "bb"
    assert payload["details"]["digests"] == {"md5": "bb"}
    assert "timestamp" in payload


def test_bounds_error_details():
    err = BoundsError("oob", index=3, offset=10, length=6, size=12)

    assert err.details["record_index"] == 3
    assert err.expected == 12
    assert err.actual == 16
