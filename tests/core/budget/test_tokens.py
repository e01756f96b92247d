"""Tests for the character-based token estimator."""

import math

import pytest

from novachat.core.budget import Message, Role, estimate_messages_tokens, estimate_tokens


class TestEstimateTokens:
    def test_empty_string_is_zero(self):
        assert estimate_tokens("") == 0

    @pytest.mark.parametrize(
        "text, expected",
        [("a", 1), ("abcd", 1), ("abcde", 2), ("x" * 8, 2), ("x" * 200, 50)],
    )
    def test_rounds_up_per_four_chars(self, text, expected):
        assert estimate_tokens(text) == expected

    def test_matches_ceiling_formula(self):
        for length in range(0, 41):
            assert estimate_tokens("y" * length) == math.ceil(length / 4)

    def test_counts_characters_not_bytes(self):
        # 4 code points, 12 UTF-8 bytes
        assert estimate_tokens("日本語!") == 1

    def test_deterministic_and_monotonic(self):
        text = "The quick brown fox"
        assert estimate_tokens(text) == estimate_tokens(text)
        assert estimate_tokens(text + " jumps") >= estimate_tokens(text)


class TestEstimateMessagesTokens:
    def test_sums_contents(self):
        messages = [
            Message(role=Role.USER, content="x" * 8),
            Message(role=Role.ASSISTANT, content="x" * 5),
        ]
        assert estimate_messages_tokens(messages) == 2 + 2

    def test_empty_iterable(self):
        assert estimate_messages_tokens([]) == 0
