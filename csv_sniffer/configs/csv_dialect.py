"""
Dialect model and its bridge to the stdlib ``csv`` module.

A ``Dialect`` is produced once per sniff and never mutated.  Downstream
readers either consume its fields directly or ask for an equivalent
``csv.Dialect`` subclass:

    import csv
    from csv_sniffer.configs.csv_dialect import register_dialect

    register_dialect("sniffed", report.dialect)
    reader = csv.reader(f, dialect="sniffed")

Open files with ``newline=''`` so quoted fields keep their embedded
line breaks.
"""

from __future__ import annotations

import csv
import enum
from dataclasses import dataclass
from typing import Any


class QuotingStyle(enum.Enum):
    """How the writer of the file applied quotes."""

    NONE = "none"
    MINIMAL = "minimal"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class Dialect:
    """
    Structural parameters of a delimited text file.

    Attributes:
        delimiter:            Field separator (single ASCII character).
        quote:                Quote character, or ``None`` when quoting is not used.
        quoting_style:        Observed quoting policy.
        doubled_quote_escape: ``""`` inside a quoted field is a literal quote.
        escape:               Escape character inside quoted fields, if any.
        terminator:           Dominant line terminator in the sample.
    """

    delimiter: str = ","
    quote: str | None = None
    quoting_style: QuotingStyle = QuotingStyle.NONE
    doubled_quote_escape: bool = True
    escape: str | None = None
    terminator: str = "\r\n"

    def to_dict(self) -> dict[str, Any]:
        return {
            "delimiter": self.delimiter,
            "quote": self.quote,
            "quoting_style": self.quoting_style.value,
            "doubled_quote_escape": self.doubled_quote_escape,
            "escape": self.escape,
            "terminator": self.terminator,
        }

    def to_csv_dialect(self) -> type[csv.Dialect]:
        """
        Build a ``csv.Dialect`` subclass equivalent to this dialect.

        Quoting is disabled entirely when no quote character was detected;
        otherwise ``QUOTE_ALL`` or ``QUOTE_MINIMAL`` mirrors ``quoting_style``.
        """
        if self.quote is None:
            quoting = csv.QUOTE_NONE
        elif self.quoting_style is QuotingStyle.ALL:
            quoting = csv.QUOTE_ALL
        else:
            quoting = csv.QUOTE_MINIMAL

        attrs = {
            "delimiter": self.delimiter,
            "quotechar": self.quote,
            "doublequote": self.doubled_quote_escape,
            "escapechar": self.escape,
            "lineterminator": self.terminator,
            "quoting": quoting,
            "skipinitialspace": False,
            "strict": False,
        }
        return type("SniffedDialect", (csv.Dialect,), attrs)


def register_dialect(name: str, dialect: Dialect) -> None:
    """
    Register ``dialect`` with the ``csv`` module under ``name``.

    Safe to call multiple times. An existing registration under the same
    name is replaced.
    """
    if name in csv.list_dialects():
        csv.unregister_dialect(name)
    csv.register_dialect(name, dialect.to_csv_dialect())
