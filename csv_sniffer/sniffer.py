"""
Sniff orchestrator.

Wires the stages in order; each consumes only the previous stage's output
and nothing re-reads the raw source:

  1. Sample extraction  → bounded, fully-initialized ``Sample``
  2. Dialect detection  → delimiter, quote, escape, terminator
  3. Tokenization       → ``Row`` list (quoting style refined from it)
  4. Field counts       → canonical ``num_fields``, ``flexible``, preamble
  5. Header detection   → first data row vs. the rest
  6. Type inference     → one ``FieldType`` per column
  7. ``SniffReport``

Error policy:
  - Every ``SniffError`` propagates unchanged; nothing is retried.
  - Invalid options raise ``ValueError`` before the source is read.
  - The engine keeps no state between calls: the same bytes and options
    always give an equal report.

Usage::

    with open(path, "rb") as f:
        report = sniff(f, SniffOptions(sample_size_bytes=16_384))
"""

from __future__ import annotations

import io
import logging
from dataclasses import replace
from pathlib import Path
from typing import BinaryIO

from csv_sniffer.configs.config import SniffOptions
from csv_sniffer.configs.exceptions import EmptySampleError, IoError
from csv_sniffer.discovery.dialect_detector import classify_quoting_style, detect_dialect
from csv_sniffer.discovery.field_counts import build_profile, normalize_rows
from csv_sniffer.discovery.header_detector import detect_header
from csv_sniffer.discovery.sample import extract_sample
from csv_sniffer.models.models import SniffReport
from csv_sniffer.transformers.tokenizer import RowTokenizer
from csv_sniffer.transformers.typing_infer import TypeInferencer
from csv_sniffer.utils.validation import validate_options

logger = logging.getLogger(__name__)


# Public entry points


def sniff(source: BinaryIO, options: SniffOptions | None = None) -> SniffReport:
    """
    Infer the dialect and schema of a delimited text stream.

    Args:
        source:  Readable binary stream, read from its current position.
                 At most ``options.sample_size_bytes`` bytes are consumed.
        options: Sniff options; defaults are used when ``None``.

    Returns:
        ``SniffReport`` for the sampled prefix.

    Raises:
        ValueError:             If ``options`` is invalid.
        IoError:                If the source cannot be read.
        EmptySampleError:       If the sample holds no non-blank line.
        AmbiguousDialectError:  If no delimiter can be chosen.
        UnterminatedQuoteError: If the sample ends inside a quoted field.
    """
    options = options or SniffOptions()
    validate_options(options)

    sample = extract_sample(
        source,
        max_bytes=options.sample_size_bytes,
        max_lines=options.sample_size_lines,
        encoding=options.encoding,
    )
    if not any(line.strip() for line in sample.lines):
        raise EmptySampleError(
            f"Sample of {len(sample)} bytes contains no rows."
        )

    dialect, confidence = detect_dialect(sample, options)

    rows = RowTokenizer(dialect, encoding=sample.encoding).tokenize(sample.data)
    if not rows:
        raise EmptySampleError("Tokenizing the sample produced no rows.")

    if dialect.quote is not None:
        dialect = replace(dialect, quoting_style=classify_quoting_style(rows, dialect))

    profile = build_profile(rows)
    num_fields = profile.num_fields
    data_rows = normalize_rows(rows[profile.num_preamble_rows:], num_fields)

    inferencer = TypeInferencer(
        candidates=options.type_candidates,
        boolean_aliases=options.boolean_aliases,
        datetime_formats=options.datetime_formats,
    )
    body_types = inferencer.infer_columns(data_rows[1:], num_fields, options.max_workers)

    has_header = False
    if not options.no_header_override:
        has_header = detect_header(data_rows, body_types, inferencer)

    if has_header:
        field_types = body_types
    else:
        field_types = inferencer.infer_columns(data_rows, num_fields, options.max_workers)

    report = SniffReport(
        dialect=dialect,
        num_fields=num_fields,
        flexible=profile.flexible,
        has_header=has_header,
        field_types=field_types,
        num_preamble_rows=profile.num_preamble_rows,
        encoding=sample.source_encoding,
        sample_bytes=len(sample),
        sample_rows=len(rows),
        confidence=confidence,
    )
    logger.info(
        "Sniff complete: delimiter=%r quote=%r fields=%d header=%s flexible=%s rows=%d",
        dialect.delimiter, dialect.quote, num_fields, has_header,
        profile.flexible, len(rows),
    )
    return report


def sniff_bytes(data: bytes, options: SniffOptions | None = None) -> SniffReport:
    """Sniff an in-memory byte string."""
    return sniff(io.BytesIO(data), options)


def sniff_path(path: Path | str, options: SniffOptions | None = None) -> SniffReport:
    """
    Open ``path`` in binary mode and sniff it.

    Raises:
        IoError: If the file cannot be opened (plus everything ``sniff`` raises).
    """
    path = Path(path)
    try:
        f = open(path, "rb")
    except OSError as e:
        raise IoError(f"Cannot open {path}: {e}") from e
    with f:
        return sniff(f, options)
