"""
Header-row detection by type contrast.

The first data row is a header when, for at least one column, its value is
Text while the rest of that column infers to something narrower, and no
column's first value is narrower than the rest of its column.  Empty first
values carry no evidence either way.

A sample with fewer than two data rows never reports a header.
"""

from __future__ import annotations

import logging
from typing import Sequence

from csv_sniffer.models.models import FieldType
from csv_sniffer.transformers.typing_infer import TypeInferencer

logger = logging.getLogger(__name__)


def detect_header(
    rows: Sequence[tuple[str, ...]],
    body_types: Sequence[FieldType],
    inferencer: TypeInferencer,
) -> bool:
    """
    Decide whether ``rows[0]`` is a header.

    Args:
        rows:        Normalized data rows (preamble removed), all the same width.
        body_types:  Column types inferred from ``rows[1:]``.
        inferencer:  Inferencer configured with the sniff's type candidates.

    Returns:
        ``True`` if the first row looks like a header.
    """
    if len(rows) < 2:
        return False

    evidence = False
    for index, (value, body_type) in enumerate(zip(rows[0], body_types)):
        first_type = inferencer.infer_cell_type(value)
        if first_type is None:
            continue
        if first_type.narrower_than(body_type):
            logger.debug(
                "Column %d: first value %r (%s) is narrower than body (%s); no header",
                index, value, first_type, body_type,
            )
            return False
        if first_type is FieldType.TEXT and body_type is not FieldType.TEXT:
            evidence = True

    return evidence
