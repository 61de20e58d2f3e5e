"""
Dialect detection via per-line frequency and consistency analysis.

Delimiter
---------
Every candidate is counted naively on each non-blank sample line (quoting is
ignored for this pass).  A candidate's score is::

    consistency = 1 - min(1, variance(counts) / mean(counts) ** 2)
    presence    = 1 if median(counts) > 0 else 0
    score       = consistency * presence

The highest score wins; ties go to the earlier candidate
(``, \\t ; | :``).  When nothing scores above ``MIN_DELIMITER_SCORE`` the
sample is ambiguous.

Quote / escape
--------------
``"`` and ``'`` are counted where they touch the delimiter or a line edge;
the more frequent one is the quote character.  Backslash escaping replaces
doubled-quote escaping only when ``\\"`` outnumbers non-empty ``""``.

Quoting style is classified after tokenization, from which fields actually
came out quoted (``classify_quoting_style``).
"""

from __future__ import annotations

import logging
import statistics

from csv_sniffer.configs.config import (
    BACKSLASH_ESCAPE,
    CANDIDATE_DELIMITERS,
    CANDIDATE_QUOTES,
    MIN_DELIMITER_SCORE,
    SniffOptions,
)
from csv_sniffer.configs.csv_dialect import Dialect, QuotingStyle
from csv_sniffer.configs.exceptions import AmbiguousDialectError
from csv_sniffer.discovery.sample import Sample
from csv_sniffer.models.models import Row

logger = logging.getLogger(__name__)


def detect_dialect(sample: Sample, options: SniffOptions) -> tuple[Dialect, float]:
    """
    Detect delimiter, quote, escape convention and terminator for ``sample``.

    Args:
        sample:  Extracted sample.
        options: Sniff options (overrides are honoured, not re-detected).

    Returns:
        Tuple of ``(dialect, confidence)``.  ``dialect.quoting_style`` is
        ``MINIMAL`` whenever a quote character is set; the sniffer refines it
        once rows are tokenized.  ``confidence`` is the winning delimiter
        score, or 1.0 for an override.

    Raises:
        AmbiguousDialectError: If no delimiter can be chosen.
    """
    lines = [line for line in sample.lines if line.strip()]

    if options.delimiter_override is not None:
        delimiter, confidence = options.delimiter_override, 1.0
    else:
        delimiter, confidence = detect_delimiter(lines)

    if options.quote_override is None:
        quote = detect_quote(lines, delimiter)
    else:
        quote = options.quote_override or None

    doubled, escape = True, None
    if quote is not None:
        doubled, escape = detect_escape(lines, delimiter, quote)

    dialect = Dialect(
        delimiter=delimiter,
        quote=quote,
        quoting_style=QuotingStyle.MINIMAL if quote else QuotingStyle.NONE,
        doubled_quote_escape=doubled,
        escape=escape,
        terminator=detect_terminator(sample.data),
    )
    logger.debug("Detected dialect %s (confidence=%.3f)", dialect, confidence)
    return dialect, confidence


# Delimiter


def score_delimiter(lines: list[bytes], delimiter: str) -> float:
    """Return the consistency × presence score of ``delimiter`` over ``lines``."""
    if not lines:
        return 0.0
    needle = delimiter.encode("ascii")
    counts = [line.count(needle) for line in lines]

    if statistics.median(counts) <= 0:
        return 0.0

    mean = statistics.fmean(counts)
    variance = statistics.pvariance(counts, mu=mean)
    return 1.0 - min(1.0, variance / (mean * mean))


def detect_delimiter(
    lines: list[bytes],
    candidates: tuple[str, ...] = CANDIDATE_DELIMITERS,
) -> tuple[str, float]:
    """
    Pick the best-scoring candidate delimiter.

    Returns:
        Tuple of ``(delimiter, score)``.

    Raises:
        AmbiguousDialectError: If every candidate scores at or below
                               ``MIN_DELIMITER_SCORE``.
    """
    scores = {d: score_delimiter(lines, d) for d in candidates}
    logger.debug("Delimiter scores: %s", scores)

    best, best_score = None, MIN_DELIMITER_SCORE
    for candidate in candidates:
        if scores[candidate] > best_score:
            best, best_score = candidate, scores[candidate]

    if best is None:
        raise AmbiguousDialectError(
            f"No delimiter candidate scored above {MIN_DELIMITER_SCORE}; "
            f"supply delimiter_override.",
            scores=scores,
        )
    return best, best_score


# Quote / escape / terminator


def _quote_positions(line: bytes, quote: int):
    i = line.find(quote)
    while i != -1:
        yield i
        i = line.find(quote, i + 1)


def count_boundary_quotes(lines: list[bytes], delimiter: str, quote: str) -> int:
    """Count ``quote`` occurrences adjacent to ``delimiter`` or a line edge."""
    d = ord(delimiter)
    q = ord(quote)
    total = 0
    for line in lines:
        last = len(line) - 1
        for i in _quote_positions(line, q):
            if i == 0 or i == last or line[i - 1] == d or line[i + 1] == d:
                total += 1
    return total


def detect_quote(
    lines: list[bytes],
    delimiter: str,
    candidates: tuple[str, ...] = CANDIDATE_QUOTES,
) -> str | None:
    """Return the quote character, or ``None`` if no candidate appears at a field edge."""
    counts = {q: count_boundary_quotes(lines, delimiter, q) for q in candidates}
    best, best_count = None, 0
    for q in candidates:
        if counts[q] > best_count:
            best, best_count = q, counts[q]
    logger.debug("Quote counts: %s -> %r", counts, best)
    return best


def detect_escape(
    lines: list[bytes],
    delimiter: str,
    quote: str,
) -> tuple[bool, str | None]:
    """
    Decide between doubled-quote and backslash escaping.

    Returns:
        Tuple of ``(doubled_quote_escape, escape_char)``.
    """
    d = ord(delimiter)
    q = quote.encode("ascii")
    doubled_pair = q + q
    backslashed = (BACKSLASH_ESCAPE + quote).encode("ascii")

    doubled = backslash = 0
    for line in lines:
        backslash += line.count(backslashed)
        i = line.find(doubled_pair)
        while i != -1:
            end = i + 2
            empty_field = (i == 0 or line[i - 1] == d) and (
                end == len(line) or line[end] == d
            )
            if not empty_field:
                doubled += 1
            i = line.find(doubled_pair, end)

    if backslash > doubled:
        return False, BACKSLASH_ESCAPE
    return True, None


def detect_terminator(data: bytes) -> str:
    """Return the dominant line terminator, defaulting to ``\\r\\n``."""
    crlf = data.count(b"\r\n")
    counts = {
        "\r\n": crlf,
        "\n": data.count(b"\n") - crlf,
        "\r": data.count(b"\r") - crlf,
    }
    best, best_count = "\r\n", 0
    for terminator, count in counts.items():
        if count > best_count:
            best, best_count = terminator, count
    return best


# Quoting style


def _needs_quoting(value: str, dialect: Dialect) -> bool:
    specials = (dialect.delimiter, dialect.quote, "\r", "\n")
    return any(ch in value for ch in specials if ch)


def classify_quoting_style(rows: list[Row], dialect: Dialect) -> QuotingStyle:
    """
    Classify how quotes were applied across tokenized ``rows``.

    - ``ALL``    : every field is quoted in a majority of rows.
    - ``MINIMAL``: quotes appear, and only on fields that need them.
    - ``NONE``   : no quote character, nothing quoted, or inconsistent use.
    """
    if dialect.quote is None or not rows:
        return QuotingStyle.NONE

    fully_quoted = sum(1 for row in rows if row.quoted and all(row.quoted))
    if fully_quoted * 2 > len(rows):
        return QuotingStyle.ALL

    quoted_values = [
        value
        for row in rows
        for value, was_quoted in zip(row.fields, row.quoted)
        if was_quoted
    ]
    if quoted_values and all(_needs_quoting(v, dialect) for v in quoted_values):
        return QuotingStyle.MINIMAL
    return QuotingStyle.NONE
