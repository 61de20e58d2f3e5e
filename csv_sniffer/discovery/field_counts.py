"""
Field-count reconciliation across ragged rows.

The canonical field count is the mode of the row lengths.  A few short
leading rows before the first canonical-length row (titles, notes, export
banners) are treated as preamble and excluded from the profile.  A file
is ``flexible`` when more than ``RAGGED_ROW_TOLERANCE`` of the remaining
rows disagree with the mode.

Nothing here raises on a ragged row: raggedness is reported, not rejected.
"""

from __future__ import annotations

import logging
from collections import Counter

from csv_sniffer.configs.config import MAX_PREAMBLE_ROWS
from csv_sniffer.models.models import FieldCountProfile, Row

logger = logging.getLogger(__name__)


def count_preamble_rows(rows: list[Row], num_fields: int) -> int:
    """
    Return the number of leading preamble rows.

    Preamble rows come before the first row of ``num_fields`` fields, each
    has at most half that many fields, and there are at most
    ``MAX_PREAMBLE_ROWS`` of them.  Leading rows of any other shape are
    ragged data, and 0 is returned.
    """
    limit = num_fields // 2
    for index, row in enumerate(rows[:MAX_PREAMBLE_ROWS + 1]):
        if len(row) == num_fields:
            return index
        if len(row) > limit:
            return 0
    return 0


def build_profile(rows: list[Row]) -> FieldCountProfile:
    """
    Build the ``FieldCountProfile`` for ``rows``.

    The mode is computed over all rows first to locate the preamble, then
    the histogram is rebuilt from the rows after it.
    """
    overall = FieldCountProfile(counts=Counter(len(row) for row in rows))
    preamble = count_preamble_rows(rows, overall.num_fields)

    profile = FieldCountProfile(
        counts=Counter(len(row) for row in rows[preamble:]),
        num_preamble_rows=preamble,
    )
    logger.debug(
        "Field counts %s: num_fields=%d flexible=%s preamble=%d",
        dict(profile.counts), profile.num_fields, profile.flexible, preamble,
    )
    return profile


def normalize_rows(rows: list[Row], num_fields: int) -> list[tuple[str, ...]]:
    """
    Return each row as exactly ``num_fields`` values for inference.

    Short rows are padded with empty values, long rows are cut.  The
    ``Row`` objects themselves are left untouched.
    """
    return [row.padded(num_fields) for row in rows]
