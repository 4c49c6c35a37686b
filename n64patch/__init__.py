#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""N64 ROM Patcher - verified N64P patch application."""

from .version import load_version

__version__ = load_version()
