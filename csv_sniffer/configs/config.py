"""
Sniffer configuration.

All tuneable constants live here. Import from this module everywhere:
never hardcode sample bounds, candidate sets or tolerances inline.

Usage:
    from csv_sniffer.configs.config import SniffOptions
    opts = SniffOptions()                              # defaults
    opts = SniffOptions(sample_size_bytes=4096, delimiter_override=";")

Environment overrides (optional) are read when the options object is
constructed; this module does not load .env files itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from csv_sniffer.models.models import FieldType


DEFAULT_SAMPLE_BYTES: int = 64 * 1024
"""Default byte bound for sample extraction."""

CANDIDATE_DELIMITERS: tuple[str, ...] = (",", "\t", ";", "|", ":")
"""Delimiters tried by the detector, in tie-break priority order."""

CANDIDATE_QUOTES: tuple[str, ...] = ('"', "'")
"""Quote characters tried by the detector, in tie-break priority order."""

BACKSLASH_ESCAPE: str = "\\"

MIN_DELIMITER_SCORE: float = 0.0
"""A delimiter must score strictly above this to be accepted."""

RAGGED_ROW_TOLERANCE: float = 1 / 8
"""Fraction of disagreeing rows above which a file is reported as flexible."""

MAX_PREAMBLE_ROWS: int = 10
"""Most leading rows that may be set aside as preamble."""

INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

DEFAULT_DATETIME_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
)
"""
ISO-style date/time patterns tried in order, first match wins.  Locale
dependent forms (MM/DD/YYYY, DD-MON-YYYY) are not included; pass
``datetime_formats`` to opt into them.
"""


def _optional_int_env(name: str) -> int | None:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else None


@dataclass(slots=True)
class SniffOptions:
    """
    Per-call sniffing options.

    Attributes:
        sample_size_bytes: Hard byte bound on the sample. Must be > 0.
        sample_size_lines: Optional bound on terminated lines in the sample.
        delimiter_override: Skip delimiter detection and use this character.
        quote_override: ``None`` detects the quote character, ``""`` declares
            the file unquoted, any other single character is used as-is.
        type_candidates: Ordered subset of the type lattice to try.  ``None``
            means the full lattice.  Text is always implied.
        no_header_override: Force ``has_header = False``.
        boolean_aliases: Accept ``0`` / ``1`` as Boolean values.
        datetime_formats: ``strptime`` patterns for DateTime, first match wins.
        encoding: Text encoding of the source; ``None`` detects it.
        max_workers: Threads used for per-column inference; 1 is sequential.
    """

    sample_size_bytes: int = field(
        default_factory=lambda: int(
            os.environ.get("SNIFF_SAMPLE_BYTES", str(DEFAULT_SAMPLE_BYTES))
        )
    )
    sample_size_lines: int | None = field(
        default_factory=lambda: _optional_int_env("SNIFF_SAMPLE_LINES")
    )
    delimiter_override: str | None = None
    quote_override: str | None = None
    type_candidates: tuple[FieldType, ...] | None = None
    no_header_override: bool = False
    boolean_aliases: bool = False
    datetime_formats: tuple[str, ...] = DEFAULT_DATETIME_FORMATS
    encoding: str | None = None
    max_workers: int = field(
        default_factory=lambda: int(os.environ.get("SNIFF_MAX_WORKERS", "1"))
    )

    @property
    def quoting_overridden(self) -> bool:
        return self.quote_override is not None
