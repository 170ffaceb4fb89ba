"""Tests for the translation cacheability policy."""

from __future__ import annotations

import pytest

from core.cache.policy import MAX_CACHEABLE_LENGTH, is_cacheable


@pytest.mark.parametrize(
    "text",
    [
        "cat",
        "  cat  ",
        "Straße",
        "e-mail",
        "snake_case",
        "猫",
        "ありがとう",
        "café",
        "abc123",
        "a" * MAX_CACHEABLE_LENGTH,
    ],
)
def test_single_tokens_are_cacheable(text: str) -> None:
    assert is_cacheable(text) is True


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "the cat sat",
        "a" * (MAX_CACHEABLE_LENGTH + 1),
        "co-op-ed",
        "hello!?",
        "12345",
        "--",
        "cat.",
        "a+b",
        "$100",
    ],
)
def test_rejected_inputs(text: str) -> None:
    assert is_cacheable(text) is False


def test_length_is_measured_after_trimming() -> None:
    padded: str = "  " + "a" * MAX_CACHEABLE_LENGTH + "\n"

    assert is_cacheable(padded) is True


def test_single_punctuation_is_allowed_only_for_dash_and_underscore() -> None:
    assert is_cacheable("well-known") is True
    assert is_cacheable("don't") is False
