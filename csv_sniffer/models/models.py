"""
Core data models for the sniffing engine.

FieldType         : closed, totally ordered type lattice used by inference.
Row               : one tokenized record from the sample.
FieldCountProfile : histogram of row lengths; derives the canonical field count.
SniffReport       : the sole externally visible result of ``sniff``.

Every instance is created fresh per sniff and discarded once the report is
returned; nothing here holds state across calls.
"""

from __future__ import annotations

import enum
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from csv_sniffer.configs.config import RAGGED_ROW_TOLERANCE
from csv_sniffer.configs.csv_dialect import Dialect


class FieldType(enum.IntEnum):
    """
    Column type lattice, narrowest first.

    The integer value is the lattice rank: ``BOOLEAN < INTEGER < FLOAT <
    DATETIME < TEXT``.  ``TEXT`` accepts every value and is the universal
    fallback.
    """

    BOOLEAN = 0
    INTEGER = 1
    FLOAT = 2
    DATETIME = 3
    TEXT = 4

    def __str__(self) -> str:
        return _DISPLAY_NAMES[self]

    def narrower_than(self, other: "FieldType") -> bool:
        return self < other


_DISPLAY_NAMES = {
    FieldType.BOOLEAN: "Boolean",
    FieldType.INTEGER: "Integer",
    FieldType.FLOAT: "Float",
    FieldType.DATETIME: "DateTime",
    FieldType.TEXT: "Text",
}


@dataclass(frozen=True, slots=True)
class Row:
    """
    A tokenized record.

    Attributes:
        fields:  Unescaped field strings with quotes stripped.
        quoted:  Per-field flag: ``True`` if the field was quote-wrapped.
        offset:  Byte offset of the row's first byte within the sample.
    """

    fields: tuple[str, ...]
    quoted: tuple[bool, ...]
    offset: int = 0

    def __len__(self) -> int:
        return len(self.fields)

    def padded(self, width: int) -> tuple[str, ...]:
        """
        Return exactly ``width`` fields: short rows gain trailing empty
        fields, long rows lose their excess fields.
        """
        if len(self.fields) >= width:
            return self.fields[:width]
        return self.fields + ("",) * (width - len(self.fields))


@dataclass(slots=True)
class FieldCountProfile:
    """
    Mapping of observed field count → number of rows with that count.

    Attributes:
        counts:             Histogram over the data rows (preamble excluded).
        num_preamble_rows:  Leading rows excluded from the histogram.
    """

    counts: Counter = field(default_factory=Counter)
    num_preamble_rows: int = 0

    @property
    def total_rows(self) -> int:
        return sum(self.counts.values())

    @property
    def num_fields(self) -> int:
        """Mode of the row lengths; ties go to the larger field count."""
        if not self.counts:
            return 0
        return max(self.counts.items(), key=lambda item: (item[1], item[0]))[0]

    @property
    def disagreeing_rows(self) -> int:
        return self.total_rows - self.counts.get(self.num_fields, 0)

    @property
    def flexible(self) -> bool:
        """True when more than the tolerated fraction of rows is ragged."""
        total = self.total_rows
        if not total:
            return False
        return self.disagreeing_rows / total > RAGGED_ROW_TOLERANCE


@dataclass(frozen=True, slots=True)
class SniffReport:
    """
    Result of sniffing a sample.

    Attributes:
        dialect:            Detected (or overridden) dialect.
        num_fields:         Canonical number of fields per record.
        flexible:           True if a non-trivial fraction of rows is ragged.
        has_header:         True if the first data row is a header row.
        field_types:        Inferred type per column, in column order.
        num_preamble_rows:  Rows before the header / first data row.
        encoding:           Text encoding of the source (detected or given).
        sample_bytes:       Length of the sample handed to the tokenizer (UTF-8 when transcoded).
        sample_rows:        Rows tokenized from the sample.
        confidence:         Score of the winning delimiter (1.0 for overrides).
    """

    dialect: Dialect
    num_fields: int
    flexible: bool
    has_header: bool
    field_types: tuple[FieldType, ...]
    num_preamble_rows: int = 0
    encoding: str = "utf-8"
    sample_bytes: int = 0
    sample_rows: int = 0
    confidence: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping with a stable key order."""
        return {
            "dialect": self.dialect.to_dict(),
            "num_fields": self.num_fields,
            "flexible": self.flexible,
            "has_header": self.has_header,
            "field_types": [str(t) for t in self.field_types],
            "num_preamble_rows": self.num_preamble_rows,
            "encoding": self.encoding,
            "sample_bytes": self.sample_bytes,
            "sample_rows": self.sample_rows,
            "confidence": round(self.confidence, 6),
        }
