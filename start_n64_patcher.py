#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
N64 ROM Patcher - Startup Script

Runs the patcher from a source checkout without installing the package:

    python start_n64_patcher.py "Pokemon Stadium 2 (USA).z64"
"""

import os
import sys

repo_root = os.path.abspath(os.path.dirname(__file__))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from n64patch.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
