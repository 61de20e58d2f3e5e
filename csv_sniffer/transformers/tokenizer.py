"""
Dialect-aware row tokenizer.

A single pass over the sample bytes driven by an explicit state machine.
Every byte is mapped to a ``CharClass``; the pair ``(State, CharClass)``
looks up ``(next State, Action)`` in ``TRANSITIONS``.  There is no other
control flow deciding how a byte is treated.

States:
  - ``FIELD_START``       : nothing read for the current field yet.
  - ``IN_UNQUOTED_FIELD`` : reading a bare field.
  - ``IN_QUOTED_FIELD``   : inside quotes; delimiters and newlines are literal.
  - ``AFTER_QUOTE``       : a quote was seen inside a quoted field.
  - ``ESCAPED``           : the escape character was seen inside quotes.
  - ``AFTER_CR``          : a row just ended on ``\\r``; a following ``\\n``
                            belongs to the same terminator.

``AFTER_QUOTE`` followed by a delimiter or terminator closes the field.
Followed by another quote it is a doubled-quote escape, when the dialect
uses doubled quotes.  Followed by anything else (a second quote included
when it does not) the quote was literal and the field stays open.

Usage::

    rows = RowTokenizer(dialect, encoding="utf-8").tokenize(sample.data)
"""

from __future__ import annotations

import enum
import logging

from csv_sniffer.configs.csv_dialect import Dialect
from csv_sniffer.configs.exceptions import UnterminatedQuoteError
from csv_sniffer.models.models import Row

logger = logging.getLogger(__name__)


class State(enum.Enum):
    FIELD_START = "field_start"
    IN_UNQUOTED_FIELD = "in_unquoted_field"
    IN_QUOTED_FIELD = "in_quoted_field"
    AFTER_QUOTE = "after_quote"
    ESCAPED = "escaped"
    AFTER_CR = "after_cr"


class CharClass(enum.Enum):
    QUOTE = "quote"
    DELIMITER = "delimiter"
    CR = "cr"
    LF = "lf"
    ESCAPE = "escape"
    OTHER = "other"


class Action(enum.Enum):
    APPEND = "append"
    BEGIN_QUOTED = "begin_quoted"
    END_FIELD = "end_field"
    END_ROW = "end_row"
    APPEND_QUOTE_AND_BYTE = "append_quote_and_byte"
    SKIP = "skip"


def _build_transitions() -> dict[tuple[State, CharClass], tuple[State, Action]]:
    field_start = {
        CharClass.QUOTE: (State.IN_QUOTED_FIELD, Action.BEGIN_QUOTED),
        CharClass.DELIMITER: (State.FIELD_START, Action.END_FIELD),
        CharClass.CR: (State.AFTER_CR, Action.END_ROW),
        CharClass.LF: (State.FIELD_START, Action.END_ROW),
        CharClass.ESCAPE: (State.IN_UNQUOTED_FIELD, Action.APPEND),
        CharClass.OTHER: (State.IN_UNQUOTED_FIELD, Action.APPEND),
    }
    in_unquoted = {
        CharClass.QUOTE: (State.IN_UNQUOTED_FIELD, Action.APPEND),
        CharClass.DELIMITER: (State.FIELD_START, Action.END_FIELD),
        CharClass.CR: (State.AFTER_CR, Action.END_ROW),
        CharClass.LF: (State.FIELD_START, Action.END_ROW),
        CharClass.ESCAPE: (State.IN_UNQUOTED_FIELD, Action.APPEND),
        CharClass.OTHER: (State.IN_UNQUOTED_FIELD, Action.APPEND),
    }
    in_quoted = {
        CharClass.QUOTE: (State.AFTER_QUOTE, Action.SKIP),
        CharClass.DELIMITER: (State.IN_QUOTED_FIELD, Action.APPEND),
        CharClass.CR: (State.IN_QUOTED_FIELD, Action.APPEND),
        CharClass.LF: (State.IN_QUOTED_FIELD, Action.APPEND),
        CharClass.ESCAPE: (State.ESCAPED, Action.SKIP),
        CharClass.OTHER: (State.IN_QUOTED_FIELD, Action.APPEND),
    }
    escaped = {cls: (State.IN_QUOTED_FIELD, Action.APPEND) for cls in CharClass}
    after_quote = {
        CharClass.QUOTE: (State.IN_QUOTED_FIELD, Action.APPEND),
        CharClass.DELIMITER: (State.FIELD_START, Action.END_FIELD),
        CharClass.CR: (State.AFTER_CR, Action.END_ROW),
        CharClass.LF: (State.FIELD_START, Action.END_ROW),
        CharClass.ESCAPE: (State.IN_QUOTED_FIELD, Action.APPEND_QUOTE_AND_BYTE),
        CharClass.OTHER: (State.IN_QUOTED_FIELD, Action.APPEND_QUOTE_AND_BYTE),
    }
    after_cr = dict(field_start)
    after_cr[CharClass.LF] = (State.FIELD_START, Action.SKIP)

    by_state = {
        State.FIELD_START: field_start,
        State.IN_UNQUOTED_FIELD: in_unquoted,
        State.IN_QUOTED_FIELD: in_quoted,
        State.ESCAPED: escaped,
        State.AFTER_QUOTE: after_quote,
        State.AFTER_CR: after_cr,
    }
    return {
        (state, cls): target
        for state, row in by_state.items()
        for cls, target in row.items()
    }


TRANSITIONS = _build_transitions()

# Override for dialects without doubled-quote escaping.
_LITERAL_DOUBLED_QUOTE = {
    (State.AFTER_QUOTE, CharClass.QUOTE): (State.IN_QUOTED_FIELD, Action.APPEND_QUOTE_AND_BYTE),
}

_OPEN_QUOTE_STATES = (State.IN_QUOTED_FIELD, State.ESCAPED)


class RowTokenizer:
    """
    Splits sample bytes into ``Row`` objects according to a ``Dialect``.

    Args:
        dialect:  Dialect to tokenize with.  Quoting is disabled when
                  ``dialect.quote`` is ``None``.
        encoding: Encoding used to decode each field's bytes.
    """

    def __init__(self, dialect: Dialect, encoding: str = "utf-8") -> None:
        self.dialect = dialect
        self.encoding = encoding
        self._classes = self._class_map()
        self._transitions = TRANSITIONS
        if not dialect.doubled_quote_escape:
            self._transitions = {**TRANSITIONS, **_LITERAL_DOUBLED_QUOTE}

    def _class_map(self) -> list[CharClass]:
        classes = [CharClass.OTHER] * 256
        classes[ord("\r")] = CharClass.CR
        classes[ord("\n")] = CharClass.LF
        if self.dialect.escape is not None and self.dialect.quote is not None:
            classes[ord(self.dialect.escape)] = CharClass.ESCAPE
        if self.dialect.quote is not None:
            classes[ord(self.dialect.quote)] = CharClass.QUOTE
        classes[ord(self.dialect.delimiter)] = CharClass.DELIMITER
        return classes

    def classify(self, byte: int) -> CharClass:
        return self._classes[byte]

    def tokenize(self, data: bytes) -> list[Row]:
        """
        Tokenize ``data`` into rows.

        Blank lines produce no row.  A final row without a terminator is kept.

        Raises:
            UnterminatedQuoteError: If ``data`` ends inside a quoted field.
        """
        rows: list[Row] = []
        fields: list[str] = []
        quoted: list[bool] = []
        buf = bytearray()
        field_quoted = False
        quote_offset = 0
        row_start = 0
        state = State.FIELD_START
        quote_byte = ord(self.dialect.quote) if self.dialect.quote else 0
        classes = self._classes
        transitions = self._transitions

        def end_field() -> None:
            nonlocal field_quoted
            fields.append(buf.decode(self.encoding, errors="replace"))
            quoted.append(field_quoted)
            buf.clear()
            field_quoted = False

        for i, byte in enumerate(data):
            cls = classes[byte]
            prev = state
            state, action = transitions[(state, cls)]

            if action is Action.APPEND:
                buf.append(byte)
            elif action is Action.END_FIELD:
                end_field()
            elif action is Action.END_ROW:
                if fields or buf or field_quoted:
                    end_field()
                    rows.append(Row(tuple(fields), tuple(quoted), row_start))
                    fields.clear()
                    quoted.clear()
                row_start = i + 1
            elif action is Action.BEGIN_QUOTED:
                field_quoted = True
                quote_offset = i
            elif action is Action.APPEND_QUOTE_AND_BYTE:
                buf.append(quote_byte)
                buf.append(byte)
            elif prev is State.AFTER_CR:
                row_start = i + 1

        if state in _OPEN_QUOTE_STATES:
            raise UnterminatedQuoteError(
                f"Sample ended inside a quoted field opened at byte {quote_offset}; "
                f"enlarge the sample or check the quote character.",
                row_index=len(rows),
                offset=quote_offset,
            )

        if fields or buf or field_quoted:
            end_field()
            rows.append(Row(tuple(fields), tuple(quoted), row_start))

        logger.debug("Tokenized %d rows from %d bytes", len(rows), len(data))
        return rows
