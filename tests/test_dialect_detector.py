"""
Dialect detection: test_dialect_detector.py

Delimiter:
  - Consistent counts score 1.0, absent delimiter scores 0.0
  - Inconsistent counts are penalised by normalized variance
  - Every candidate delimiter is recovered from a clean sample
  - Ties go to the earlier candidate (comma first)
  - No candidate present → AmbiguousDialectError carrying the scores

Quote / escape / terminator:
  - Quote chosen by occurrences at field edges; none → None
  - Apostrophes inside words are not quotes
  - Backslash escaping only when it outnumbers non-empty doubled quotes
  - Dominant terminator, CRLF by default

Quoting style:
  - ALL / MINIMAL / NONE classification from tokenized rows

Overrides:
  - delimiter_override and quote_override bypass detection
"""

from __future__ import annotations

import io

import pytest

from csv_sniffer.configs.config import SniffOptions
from csv_sniffer.configs.csv_dialect import Dialect, QuotingStyle
from csv_sniffer.configs.exceptions import AmbiguousDialectError
from csv_sniffer.discovery.dialect_detector import (
    classify_quoting_style,
    count_boundary_quotes,
    detect_delimiter,
    detect_dialect,
    detect_escape,
    detect_quote,
    detect_terminator,
    score_delimiter,
)
from csv_sniffer.discovery.sample import extract_sample
from csv_sniffer.models.models import Row


# ============================================================================
# Helpers
# ============================================================================

def sample_of(data: bytes):
    return extract_sample(io.BytesIO(data), max_bytes=64 * 1024)


def row(fields, quoted=None) -> Row:
    fields = tuple(fields)
    return Row(fields, tuple(quoted) if quoted else (False,) * len(fields))


# ============================================================================
# Delimiter
# ============================================================================

class TestScoreDelimiter:
    def test_consistent(self):
        assert score_delimiter([b"a,b,c", b"1,2,3"], ",") == 1.0

    def test_absent(self):
        assert score_delimiter([b"a,b,c", b"1,2,3"], ";") == 0.0

    def test_inconsistent(self):
        # counts [1, 3]: mean 2, variance 1 -> 1 - 1/4
        assert score_delimiter([b"a,b", b"a,b,c,d"], ",") == pytest.approx(0.75)

    def test_median_zero_scores_zero(self):
        assert score_delimiter([b"a,b", b"c", b"d"], ",") == 0.0

    def test_no_lines(self):
        assert score_delimiter([], ",") == 0.0


class TestDetectDelimiter:
    @pytest.mark.parametrize("delimiter", [",", "\t", ";", "|", ":"])
    def test_recovers_each_candidate(self, delimiter):
        d = delimiter.encode()
        lines = [b"id" + d + b"name" + d + b"score", b"1" + d + b"alice" + d + b"9.5"]
        chosen, score = detect_delimiter(lines)
        assert chosen == delimiter
        assert score == 1.0

    def test_tie_prefers_comma(self):
        chosen, _ = detect_delimiter([b"a,b;c", b"1,2;3"])
        assert chosen == ","

    def test_consistent_beats_frequent(self):
        # Semicolons are consistent; commas (decimal marks) are not.
        lines = [b"name;price;qty", b"apple;1,5;3", b"pear;2;4", b"fig;3,25;1"]
        chosen, _ = detect_delimiter(lines)
        assert chosen == ";"

    def test_ambiguous_raises_with_scores(self):
        with pytest.raises(AmbiguousDialectError) as exc_info:
            detect_delimiter([b"hello", b"world"])
        assert set(exc_info.value.scores) == {",", "\t", ";", "|", ":"}
        assert all(s == 0.0 for s in exc_info.value.scores.values())
        assert "scores" in str(exc_info.value)


# ============================================================================
# Quote / escape / terminator
# ============================================================================

class TestDetectQuote:
    def test_double_quote(self):
        assert detect_quote([b'"a",b', b'"c",d'], ",") == '"'

    def test_single_quote(self):
        assert detect_quote([b"'a',b", b"'c',d"], ",") == "'"

    def test_no_quotes(self):
        assert detect_quote([b"a,b", b"c,d"], ",") is None

    def test_apostrophe_inside_word_ignored(self):
        assert detect_quote([b"O'Brien,x", b"D'Arcy,y"], ",") is None

    def test_more_frequent_wins(self):
        lines = [b"\"a\",'b',\"c\"", b"\"d\",e,\"f\""]
        assert detect_quote(lines, ",") == '"'

    def test_boundary_count(self):
        # Opening quote at line start plus closing quote before the delimiter.
        assert count_boundary_quotes([b'"a",b'], ",", '"') == 2


class TestDetectEscape:
    def test_doubled_quote(self):
        assert detect_escape([b'"a ""hi""",x'], ",", '"') == (True, None)

    def test_backslash(self):
        assert detect_escape([b'"a \\"x\\" b",c'], ",", '"') == (False, "\\")

    def test_empty_quoted_fields_are_not_escapes(self):
        assert detect_escape([b'a,"",b', b'"",c'], ",", '"') == (True, None)

    def test_default_without_evidence(self):
        assert detect_escape([b'"a",b'], ",", '"') == (True, None)


class TestDetectTerminator:
    def test_crlf(self):
        assert detect_terminator(b"a\r\nb\r\n") == "\r\n"

    def test_lf(self):
        assert detect_terminator(b"a\nb\n") == "\n"

    def test_cr(self):
        assert detect_terminator(b"a\rb\r") == "\r"

    def test_default(self):
        assert detect_terminator(b"abc") == "\r\n"


# ============================================================================
# Quoting style
# ============================================================================

class TestClassifyQuotingStyle:
    dialect = Dialect(delimiter=",", quote='"')

    def test_all(self):
        rows = [row(["a", "b"], [True, True]), row(["1", "2"], [True, True])]
        assert classify_quoting_style(rows, self.dialect) is QuotingStyle.ALL

    def test_minimal(self):
        rows = [row(["a,b", "c"], [True, False]), row(["d", "e"])]
        assert classify_quoting_style(rows, self.dialect) is QuotingStyle.MINIMAL

    def test_minimal_with_embedded_newline(self):
        rows = [row(["x\ny", "c"], [True, False]), row(["d", "e"])]
        assert classify_quoting_style(rows, self.dialect) is QuotingStyle.MINIMAL

    def test_unneeded_quotes_are_none(self):
        rows = [row(["a", "b"], [True, False]), row(["c", "d"])]
        assert classify_quoting_style(rows, self.dialect) is QuotingStyle.NONE

    def test_nothing_quoted(self):
        rows = [row(["a", "b"]), row(["c", "d"])]
        assert classify_quoting_style(rows, self.dialect) is QuotingStyle.NONE

    def test_no_quote_character(self):
        rows = [row(["a", "b"], [True, True])]
        assert classify_quoting_style(rows, Dialect(",")) is QuotingStyle.NONE


# ============================================================================
# detect_dialect
# ============================================================================

class TestDetectDialect:
    def test_plain_csv(self):
        dialect, confidence = detect_dialect(
            sample_of(b"name,age\nAlice,30\nBob,25\n"), SniffOptions()
        )
        assert dialect.delimiter == ","
        assert dialect.quote is None
        assert dialect.quoting_style is QuotingStyle.NONE
        assert dialect.terminator == "\n"
        assert confidence == 1.0

    def test_quoted_csv(self):
        dialect, _ = detect_dialect(
            sample_of(b'id,note\n1,"a, b"\n2,"c"\n'), SniffOptions()
        )
        assert dialect.quote == '"'
        assert dialect.doubled_quote_escape is True
        assert dialect.escape is None

    def test_delimiter_override(self):
        dialect, confidence = detect_dialect(
            sample_of(b"a,b;c\n1,2;3\n"), SniffOptions(delimiter_override=";")
        )
        assert dialect.delimiter == ";"
        assert confidence == 1.0

    def test_override_allows_single_column(self):
        dialect, _ = detect_dialect(
            sample_of(b"hello\nworld\n"), SniffOptions(delimiter_override=",")
        )
        assert dialect.delimiter == ","

    def test_quote_override_disables_quoting(self):
        dialect, _ = detect_dialect(
            sample_of(b'"a","b"\n"c","d"\n'), SniffOptions(quote_override="")
        )
        assert dialect.quote is None
        assert dialect.quoting_style is QuotingStyle.NONE

    def test_quote_override_sets_character(self):
        dialect, _ = detect_dialect(
            sample_of(b"a,b\nc,d\n"), SniffOptions(quote_override="'")
        )
        assert dialect.quote == "'"

    def test_blank_lines_ignored(self):
        dialect, confidence = detect_dialect(
            sample_of(b"a|b\n\n1|2\n\n3|4\n"), SniffOptions()
        )
        assert dialect.delimiter == "|"
        assert confidence == 1.0
