#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/utils/__init__.py
"""Shared helpers for dependency checks and timing."""
