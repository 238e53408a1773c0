"""Tests for utils: chunk_children and normalize_id."""

from __future__ import annotations

import pytest

from session_closer.utils import chunk_children, normalize_id


class TestChunkChildren:
    def test_empty_list(self):
        assert chunk_children([]) == []

    def test_under_limit(self):
        blocks = [{"type": "paragraph"}] * 10
        assert chunk_children(blocks) == [blocks]

    def test_exactly_at_limit(self):
        blocks = [{"type": "paragraph"}] * 100
        result = chunk_children(blocks)
        assert len(result) == 1
        assert len(result[0]) == 100

    def test_250_blocks(self):
        blocks = [{"i": i} for i in range(250)]
        result = chunk_children(blocks)
        assert [len(c) for c in result] == [100, 100, 50]
        assert result[0][0] == {"i": 0}
        assert result[2][-1] == {"i": 249}

    def test_custom_size(self):
        blocks = [{"i": i} for i in range(7)]
        assert [len(c) for c in chunk_children(blocks, size=3)] == [3, 3, 1]

    @pytest.mark.parametrize("size", [0, -5])
    def test_invalid_size(self, size):
        with pytest.raises(ValueError, match="size must be >= 1"):
            chunk_children([{"i": 1}], size=size)


class TestNormalizeId:
    def test_compact_id_is_hyphenated(self):
        assert (
            normalize_id("a1b2c3d4e5f6a1b2c3d4e5f6a1b2c3d4")
            == "a1b2c3d4-e5f6-a1b2-c3d4-e5f6a1b2c3d4"
        )

    def test_uppercase_hex_accepted(self):
        assert normalize_id("A" * 32) == "AAAAAAAA-AAAA-AAAA-AAAA-AAAAAAAAAAAA"

    def test_already_hyphenated_unchanged(self):
        value = "a1b2c3d4-e5f6-a1b2-c3d4-e5f6a1b2c3d4"
        assert normalize_id(value) == value

    @pytest.mark.parametrize(
        "value",
        ["", "abc123", "g" * 32, "a" * 31, "a" * 33, "a" * 32 + "\n"],
    )
    def test_other_strings_unchanged(self, value):
        assert normalize_id(value) == value
