"""
Field-count reconciliation: test_field_counts.py

  - Rectangular rows → exact num_fields, flexible False
  - Mode tie-break prefers the larger field count
  - Up to one in eight disagreeing rows is tolerated
  - Up to MAX_PREAMBLE_ROWS short leading rows before the first canonical-length row are preamble
  - Leading rows of other shapes stay in the profile and count as ragged
  - normalize_rows pads short rows and cuts long ones without touching the Row
"""

from __future__ import annotations

from collections import Counter

from csv_sniffer.discovery.field_counts import (
    build_profile,
    count_preamble_rows,
    normalize_rows,
)
from csv_sniffer.models.models import FieldCountProfile, Row


# ============================================================================
# Helpers
# ============================================================================

def row(*fields: str) -> Row:
    return Row(tuple(fields), (False,) * len(fields))


def rows_of_lengths(*lengths: int) -> list[Row]:
    return [row(*("x",) * n) for n in lengths]


# ============================================================================
# Profile
# ============================================================================

class TestFieldCountProfile:
    def test_rectangular(self):
        profile = build_profile(rows_of_lengths(3, 3, 3, 3, 3))
        assert profile.num_fields == 3
        assert profile.flexible is False
        assert profile.num_preamble_rows == 0

    def test_tie_goes_to_larger_count(self):
        assert FieldCountProfile(counts=Counter({2: 2, 3: 2})).num_fields == 3

    def test_one_in_ten_ragged_tolerated(self):
        profile = build_profile(rows_of_lengths(3, 3, 3, 3, 3, 3, 3, 3, 3, 4))
        assert profile.num_fields == 3
        assert profile.disagreeing_rows == 1
        assert profile.flexible is False

    def test_two_in_ten_ragged_is_flexible(self):
        profile = build_profile(rows_of_lengths(3, 3, 3, 3, 2, 3, 3, 3, 3, 4))
        assert profile.num_fields == 3
        assert profile.flexible is True

    def test_exactly_one_in_eight_is_not_flexible(self):
        profile = build_profile(rows_of_lengths(3, 3, 3, 3, 3, 3, 3, 5))
        assert profile.flexible is False

    def test_empty(self):
        profile = FieldCountProfile()
        assert profile.num_fields == 0
        assert profile.flexible is False


class TestPreamble:
    def test_leading_short_rows_are_preamble(self):
        profile = build_profile(rows_of_lengths(1, 2, 4, 4, 4, 4))
        assert profile.num_preamble_rows == 2
        assert profile.num_fields == 4
        assert profile.counts == Counter({4: 4})
        assert profile.flexible is False

    def test_leading_ragged_rows_are_not_preamble(self):
        profile = build_profile(rows_of_lengths(2, 2, 3, 3, 3, 3, 3, 3))
        assert profile.num_preamble_rows == 0
        assert profile.num_fields == 3
        assert profile.flexible is True

    def test_longer_leading_row_is_not_preamble(self):
        assert count_preamble_rows(rows_of_lengths(1, 6, 4, 4, 4), 4) == 0

    def test_preamble_capped(self):
        assert count_preamble_rows(rows_of_lengths(*[1] * 10, 4, 4), 4) == 10
        assert count_preamble_rows(rows_of_lengths(*[1] * 11, 4, 4), 4) == 0

    def test_no_preamble_when_first_row_canonical(self):
        assert count_preamble_rows(rows_of_lengths(3, 2, 3, 3), 3) == 0

    def test_no_matching_row(self):
        assert count_preamble_rows(rows_of_lengths(1, 2), 5) == 0


# ============================================================================
# Normalization
# ============================================================================

class TestNormalizeRows:
    def test_short_row_padded(self):
        assert normalize_rows([row("a")], 3) == [("a", "", "")]

    def test_long_row_cut(self):
        assert normalize_rows([row("a", "b", "c", "d")], 2) == [("a", "b")]

    def test_raw_row_untouched(self):
        raw = row("a", "b", "c", "d")
        normalize_rows([raw], 2)
        assert raw.fields == ("a", "b", "c", "d")
        assert len(raw) == 4
