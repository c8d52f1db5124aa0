#!/usr/bin/env python3
"""Tests for text truncation."""

from ordersync.core.text import truncate_with_ellipsis


def test_short_text_unchanged():
    assert truncate_with_ellipsis("USB-C Cable", 45) == "USB-C Cable"


def test_text_at_limit_unchanged():
    assert truncate_with_ellipsis("x" * 45, 45) == "x" * 45


def test_long_text_cut_with_ellipsis():
    result = truncate_with_ellipsis("x" * 46, 45)
    assert result == "x" * 42 + "..."
    assert len(result) == 45
