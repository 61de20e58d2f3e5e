"""
Per-column type inference over the closed ``FieldType`` lattice.

Cell rules, tried narrowest first (whitespace around the value is ignored):

  1. BOOLEAN  : ``true`` / ``false`` in any case; ``0`` / ``1`` only when
                boolean aliases are enabled.
  2. INTEGER  : ``^[+-]?[0-9]+$`` and within the signed 64-bit range.
                Larger magnitudes are not integers (they still parse as FLOAT).
  3. FLOAT    : decimal or exponential literal (``1.5``, ``.5``, ``-2e10``).
                Every INTEGER-shaped value also satisfies FLOAT.
  4. DATETIME : the first ``strptime`` pattern that parses the value.
  5. TEXT     : always satisfied.

Column-level resolution
-----------------------
A column's type is the least lattice element that every non-empty sampled
value satisfies.  Satisfaction is not upward closed (``true`` is not a
FLOAT), so the fold keeps the set of still-satisfied candidates rather than
a single running maximum:

  - ``["1", "2", "3"]``         → INTEGER
  - ``["1", "2", "3.5"]``       → FLOAT
  - ``["1", "2", "abc"]``       → TEXT
  - ``["true", "1"]``           → TEXT (no alias) / BOOLEAN (aliases on)
  - all empty                   → TEXT

Columns are independent: ``infer_columns`` can fan them out over a thread
pool and collects results by column index.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Iterable, Sequence

from csv_sniffer.configs.config import DEFAULT_DATETIME_FORMATS, INT64_MAX, INT64_MIN
from csv_sniffer.models.models import FieldType

logger = logging.getLogger(__name__)


# Compiled patterns

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")

_BOOLEAN_WORDS = frozenset({"true", "false"})
_BOOLEAN_ALIASES = frozenset({"0", "1"})


# Cell-level predicates


def is_boolean(value: str, aliases: bool = False) -> bool:
    lowered = value.lower()
    return lowered in _BOOLEAN_WORDS or (aliases and lowered in _BOOLEAN_ALIASES)


def is_integer(value: str) -> bool:
    if not _INT_RE.match(value):
        return False
    return INT64_MIN <= int(value) <= INT64_MAX


def is_float(value: str) -> bool:
    return bool(_FLOAT_RE.match(value))


def match_datetime(value: str, formats: Iterable[str]) -> str | None:
    """Return the first pattern in ``formats`` that parses ``value``, or ``None``."""
    for fmt in formats:
        try:
            datetime.strptime(value, fmt)
        except ValueError:
            continue
        return fmt
    return None


class TypeInferencer:
    """
    Classifies cells and columns against an ordered subset of the lattice.

    Args:
        candidates:       Types to try.  Sorted into lattice order; TEXT is
                          always added.  ``None`` means the full lattice.
        boolean_aliases:  Accept ``0`` / ``1`` as BOOLEAN.
        datetime_formats: ``strptime`` patterns, first match wins.
    """

    def __init__(
        self,
        candidates: Sequence[FieldType] | None = None,
        boolean_aliases: bool = False,
        datetime_formats: Sequence[str] = DEFAULT_DATETIME_FORMATS,
    ) -> None:
        chosen = set(FieldType if candidates is None else candidates)
        chosen.add(FieldType.TEXT)
        self.candidates: tuple[FieldType, ...] = tuple(sorted(chosen))
        self.boolean_aliases = boolean_aliases
        self.datetime_formats = tuple(datetime_formats)

    def satisfies(self, value: str, field_type: FieldType) -> bool:
        """Return True if the stripped, non-empty ``value`` parses as ``field_type``."""
        if field_type is FieldType.BOOLEAN:
            return is_boolean(value, self.boolean_aliases)
        if field_type is FieldType.INTEGER:
            return is_integer(value)
        if field_type is FieldType.FLOAT:
            return is_float(value)
        if field_type is FieldType.DATETIME:
            return match_datetime(value, self.datetime_formats) is not None
        return True

    def infer_cell_type(self, value: str) -> FieldType | None:
        """
        Return the narrowest candidate type ``value`` satisfies.

        Empty and whitespace-only values return ``None``: they carry no
        type evidence.
        """
        stripped = value.strip()
        if not stripped:
            return None
        for field_type in self.candidates:
            if self.satisfies(stripped, field_type):
                return field_type
        return FieldType.TEXT

    def infer_column_type(self, values: Iterable[str]) -> FieldType:
        """Fold ``values`` down to the least type every non-empty value satisfies."""
        remaining = list(self.candidates)
        seen = False
        for value in values:
            stripped = value.strip()
            if not stripped:
                continue
            seen = True
            remaining = [t for t in remaining if self.satisfies(stripped, t)]
            if remaining[0] is FieldType.TEXT:
                break
        if not seen:
            return FieldType.TEXT
        return remaining[0]

    def infer_columns(
        self,
        rows: Sequence[Sequence[str]],
        num_fields: int,
        max_workers: int = 1,
    ) -> tuple[FieldType, ...]:
        """
        Infer the type of each of ``num_fields`` columns over ``rows``.

        Rows must already be normalized to ``num_fields`` values.  With
        ``max_workers > 1`` columns are classified on a thread pool; the
        result is ordered by column index either way.
        """
        columns = [[row[i] for row in rows] for i in range(num_fields)]
        if max_workers > 1 and num_fields > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                types = tuple(pool.map(self.infer_column_type, columns))
        else:
            types = tuple(self.infer_column_type(col) for col in columns)
        logger.debug("Column types over %d rows: %s", len(rows), [str(t) for t in types])
        return types
