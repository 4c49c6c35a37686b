"""Build an N64P patch blob from a base and a target ROM.

    python scripts/make_patch.py base.z64 target.z64 patchBuf.bin

Both images are normalized to big-endian (.z64) order first, so the patch
applies to any of the three common dump orderings of the base.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from n64patch.exceptions import BaseError  # noqa: E402
from n64patch.hash_utils import digest_all  # noqa: E402
from n64patch.logging_config import get_logger, setup_logging  # noqa: E402
from n64patch.patching import build_patch, normalize, serialize  # noqa: E402
from n64patch.patching.patch_builder import DEFAULT_MERGE_GAP  # noqa: E402
from n64patch.verification import format_digests, format_patch_info, read_image, write_file_atomic  # noqa: E402

logger = get_logger("make_patch")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create an N64P patch from two ROM images")
    parser.add_argument("base", help="Unmodified base ROM")
    parser.add_argument("target", help="Modified target ROM")
    parser.add_argument("output", help="Patch blob to write")
    parser.add_argument(
        "--merge-gap",
        type=int,
        default=DEFAULT_MERGE_GAP,
        help=f"Merge changed runs separated by at most this many equal bytes (default: {DEFAULT_MERGE_GAP})",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def make_patch(base_path: str, target_path: str, output_path: str, merge_gap: int = DEFAULT_MERGE_GAP) -> bytes:
    """Diff two images and write the resulting patch blob."""
    base = normalize(read_image(base_path)).data
    target = normalize(read_image(target_path)).data

    container = build_patch(base, target, merge_gap)
    blob = serialize(container)
    write_file_atomic(output_path, blob)

    print(format_patch_info(container, output_path))
    print("\nBase checksums:")
    print(format_digests(digest_all(base)))
    print("\nTarget checksums:")
    print(format_digests(digest_all(target)))
    return blob


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_logging(log_level="DEBUG" if args.debug else "INFO")
    try:
        make_patch(args.base, args.target, args.output, args.merge_gap)
    except BaseError as e:
        logger.error("%s", e)
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
