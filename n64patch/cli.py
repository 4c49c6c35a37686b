#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
N64 ROM Patcher - Command Line Interface

Usage:
    n64patch "Pokemon Stadium 2 (USA).z64"
    n64patch <input_rom> <output_rom> --patch patchBuf.bin

Accepts .z64 (big-endian), .v64 (byte-swapped) and .n64 (word-reversed)
images; other orderings are converted to .z64 before verifying and patching.

Exit codes: 0 success, 1 input not found, 2 base verification failed,
3 output verification failed, 99 any other error.
"""

import argparse
import logging
import sys
import traceback
from typing import List, Optional

from .config.profiles import load_profile_table
from .exceptions import (
    BaseError,
    EXIT_INTERNAL_ERROR,
    EXIT_OK,
)
from .hash_utils import CRC32_BACKENDS
from .logging_config import setup_logging
from .verification.pipeline import DEFAULT_PATCH_NAME, VerificationPipeline, read_patch
from .verification.report import format_failure, format_patch_info, format_success
from .version import load_version

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(
        prog="n64patch",
        description="Apply a verified N64P patch to an N64 ROM image",
    )
    parser.add_argument("input", nargs="?", help="Base ROM image (default: the profile's input name)")
    parser.add_argument("output", nargs="?", help="Patched ROM image (default: next to the input)")
    parser.add_argument(
        "--patch",
        default=DEFAULT_PATCH_NAME,
        help=f"Patch blob to apply (default: {DEFAULT_PATCH_NAME} in the working directory)",
    )
    parser.add_argument("--profile", help="Title/revision key from the profile table")
    parser.add_argument("--profiles-file", help="YAML profile table (default: bundled table)")
    parser.add_argument("--list-profiles", action="store_true", help="List known profiles and exit")
    parser.add_argument("--info", action="store_true", help="Show the patch header and exit")
    parser.add_argument(
        "--crc32-backend",
        choices=CRC32_BACKENDS,
        default="zlib",
        help="CRC-32 implementation (default: zlib)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for progress messages on stderr (default: WARNING)",
    )
    parser.add_argument("--log-json", action="store_true", default=None, help="Structured JSON logs")
    parser.add_argument("--log-file", action="store_true", help="Also log to logs/n64patch.log")
    parser.add_argument("--version", action="store_true", help="Show version information")
    return parser.parse_args(argv)


def _run(args: argparse.Namespace) -> int:
    if args.version:
        print(f"N64 ROM Patcher v{load_version()}")
        return EXIT_OK

    if args.info:
        container = read_patch(args.patch)
        print(format_patch_info(container, args.patch))
        return EXIT_OK

    table = load_profile_table(args.profiles_file)

    if args.list_profiles:
        for key in sorted(table.keys()):
            marker = " (default)" if key == table.default_key else ""
            print(f"{key}{marker}: {table.profiles[key].description}")
        return EXIT_OK

    profile = table.get(args.profile)
    input_path = args.input or profile.default_input_name
    logger.info("Profile %s, input %s, patch %s", profile.key, input_path, args.patch)

    pipeline = VerificationPipeline(profile, crc32_backend=args.crc32_backend)
    result = pipeline.run(input_path, args.output, args.patch)
    print(format_success(result))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the command line front end."""
    args = parse_arguments(argv)
    setup_logging(
        log_level=args.log_level,
        enable_file_logging=args.log_file,
        structured_json=args.log_json,
    )

    try:
        return _run(args)
    except BaseError as e:
        logger.debug("Run failed: %s", e.error_code, extra={'error': e.to_dict()})
        print(format_failure(e), file=sys.stderr)
        return e.exit_code
    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print(f"Error: {traceback.format_exc()}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR


if __name__ == "__main__":
    sys.exit(main())
