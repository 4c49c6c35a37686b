#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""N64 ROM Patcher - module entry point (``python -m n64patch``)."""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
