#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
N64 ROM Patcher - Consolidated Exception Classes

All errors raised by the patch engine live here. Every error is fatal for a
run: there is no retry and no partial acceptance. Each carries the failed
check plus expected/actual values in ``details`` so a caller can diagnose the
problem without inspecting internals.
"""

from datetime import datetime
from typing import Dict, Any, Optional


# Process exit codes used by the command line front end
EXIT_OK = 0
EXIT_INPUT_NOT_FOUND = 1
EXIT_BASE_VERIFICATION_FAILED = 2
EXIT_OUTPUT_VERIFICATION_FAILED = 3
EXIT_INTERNAL_ERROR = 99


class BaseError(Exception):
    """Base class for all project-specific errors."""

    exit_code = EXIT_INTERNAL_ERROR

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code or "ERROR"
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Converts the exception to a dictionary for structured logging."""
        return {
            'error_code': self.error_code,
            'message': str(self),
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


# =====================================================================================================
# Configuration-related errors
# =====================================================================================================

class ConfigurationError(BaseError):
    """Raised when the profile table cannot be loaded or validated."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 file_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        config_details = details or {}
        if file_path:
            config_details['file_path'] = str(file_path)
        super().__init__(message, error_code or "CONFIG_ERROR", config_details)


class ProfileNotFoundError(ConfigurationError):
    """Raised when a title/revision key is not present in the profile table."""

    def __init__(self, key: str, available: Optional[list] = None):
        details = {'profile': key, 'available': sorted(available or [])}
        super().__init__(f"Unknown profile: {key}", "PROFILE_NOT_FOUND", None, details)
        self.key = key


# =====================================================================================================
# IO-related errors
# =====================================================================================================

class FileOperationError(BaseError):
    """Raised when reading or writing an image or patch file fails."""

    def __init__(self, message: str, file_path: Optional[str] = None,
                 operation: Optional[str] = None,
                 error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        file_details = details or {}
        if file_path:
            file_details['file_path'] = str(file_path)
        if operation:
            file_details['operation'] = operation
        super().__init__(message, error_code or "FILE_OP_ERROR", file_details)


class InputNotFoundError(FileOperationError):
    """Raised when the base image file does not exist."""

    exit_code = EXIT_INPUT_NOT_FOUND

    def __init__(self, file_path: str):
        super().__init__(f"File not found: {file_path}", file_path, "read", "INPUT_NOT_FOUND")


# =====================================================================================================
# Patch engine errors
# =====================================================================================================

class PatchEngineError(BaseError):
    """Base class for every failure of the patch engine.

    ``check`` names the gate that failed; ``expected`` and ``actual`` hold
    the compared values.
    """

    def __init__(self, message: str, error_code: Optional[str] = None,
                 check: Optional[str] = None,
                 expected: Any = None,
                 actual: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        engine_details = details or {}
        if check:
            engine_details['check'] = check
        if expected is not None:
            engine_details['expected'] = expected
        if actual is not None:
            engine_details['actual'] = actual
        super().__init__(message, error_code or "PATCH_ENGINE_ERROR", engine_details)

    @property
    def check(self) -> Optional[str]:
        return self.details.get('check')

    @property
    def expected(self) -> Any:
        return self.details.get('expected')

    @property
    def actual(self) -> Any:
        return self.details.get('actual')


class FormatError(PatchEngineError):
    """Raised when a byte-order transform cannot be applied to a buffer."""

    def __init__(self, message: str, source_format: Optional[str] = None,
                 size: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        fmt_details = details or {}
        if source_format:
            fmt_details['source_format'] = source_format
        if size is not None:
            fmt_details['size'] = size
        super().__init__(message, "FORMAT_ERROR", "byte order", details=fmt_details)


class SizeError(PatchEngineError):
    """Raised when an image does not have the expected length."""

    exit_code = EXIT_BASE_VERIFICATION_FAILED

    def __init__(self, message: str, expected: int, actual: int,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "SIZE_ERROR", "size", expected, actual, details)


class ChecksumError(PatchEngineError):
    """Raised when the base image digests do not match the base profile.

    ``digests`` holds every computed digest (md5, sha1, sha256, crc32).
    """

    exit_code = EXIT_BASE_VERIFICATION_FAILED

    def __init__(self, message: str, check: str, expected: str, actual: str,
                 digests: Optional[Dict[str, str]] = None,
                 details: Optional[Dict[str, Any]] = None):
        sum_details = details or {}
        if digests:
            sum_details['digests'] = dict(digests)
        super().__init__(message, "CHECKSUM_ERROR", check, expected, actual, sum_details)

    @property
    def digests(self) -> Dict[str, str]:
        return self.details.get('digests', {})


class PatchStructureError(PatchEngineError):
    """Raised when a patch blob is malformed."""

    def __init__(self, message: str, check: Optional[str] = None,
                 expected: Any = None, actual: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "PATCH_STRUCTURE_ERROR", check, expected, actual, details)


class PatchMismatchError(PatchEngineError):
    """Raised when a patch header targets a different base/target pair."""

    def __init__(self, message: str, check: str, expected: Any, actual: Any,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "PATCH_MISMATCH", check, expected, actual, details)


class BoundsError(PatchEngineError):
    """Raised when a patch record would write past the end of the image."""

    def __init__(self, message: str, index: int, offset: int, length: int,
                 size: int, details: Optional[Dict[str, Any]] = None):
        bounds_details = details or {}
        bounds_details.update({'record_index': index, 'offset': offset, 'length': length})
        super().__init__(message, "BOUNDS_ERROR", "record bounds", size, offset + length,
                         bounds_details)


class OutputVerificationError(PatchEngineError):
    """Raised when the patched image digests do not match the target profile."""

    exit_code = EXIT_OUTPUT_VERIFICATION_FAILED

    def __init__(self, message: str, check: str, expected: str, actual: str,
                 digests: Optional[Dict[str, str]] = None,
                 details: Optional[Dict[str, Any]] = None):
        out_details = details or {}
        if digests:
            out_details['digests'] = dict(digests)
        super().__init__(message, "OUTPUT_VERIFICATION_ERROR", check, expected, actual,
                         out_details)

    @property
    def digests(self) -> Dict[str, str]:
        return self.details.get('digests', {})
