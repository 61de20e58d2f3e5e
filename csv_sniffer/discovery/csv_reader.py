"""
CSV reader configured from a ``SniffReport``.

Handles:
- UTF-8 with or without BOM (``utf-8-sig`` when the sniffed encoding is UTF-8).
- Embedded newlines in quoted fields (``newline=''``).
- Preamble rows, skipped before the header / first data row.
- Seek-back so the source can be iterated more than once.
- UTF-16 / UTF-32 sources, opened with the sniffed encoding.

Parsing itself is delegated to the stdlib ``csv`` module through
``Dialect.to_csv_dialect``.

Usage:
    report = sniff_path(path)
    with CSVReader(path, report) as source:
        names = source.headers()
        for row in source.rows():
            process(row)
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterator

from csv_sniffer.configs.exceptions import IoError, MalformedRowError
from csv_sniffer.models.models import SniffReport

logger = logging.getLogger(__name__)


class CSVReader:
    """
    Delimited file reader using a sniffed dialect.

    Args:
        path: Path to the file that was sniffed.
        report: Result of sniffing that file.

    ``open`` must be called before ``headers`` or ``rows``; using the reader
    as a context manager does that and closes the file on exit.
    """

    def __init__(self, path: Path | str, report: SniffReport) -> None:
        self.path = Path(path)
        self.report = report
        self._file = None
        self._dialect = report.dialect.to_csv_dialect()
        self._headers: list[str] | None = None

    @property
    def encoding(self) -> str:
        if self.report.encoding.lower().replace("_", "-") in ("utf-8", "utf8", "ascii"):
            return "utf-8-sig"
        return self.report.encoding

    # ── reading ──────────────────────────────────────────────────────────

    def open(self) -> None:
        """
        Open the file and read the header row, if the report found one.

        Raises:
            IoError: If the file cannot be opened.
            MalformedRowError: If the header row cannot be parsed.
        """
        try:
            self._file = open(
                self.path,
                encoding=self.encoding,
                errors="replace",
                newline="",
            )
        except OSError as e:
            raise IoError(f"Cannot open {self.path}: {e}") from e

        if self.report.has_header:
            reader = self._positioned_reader()
            try:
                raw_headers = _next_record(reader) or []
            except csv.Error as e:
                raise MalformedRowError(
                    f"Malformed header row in {self.path}: {e}",
                    row_number=self.report.num_preamble_rows + 1,
                ) from e
            self._headers = [h.strip() for h in raw_headers]
        else:
            self._headers = [f"field_{i}" for i in range(self.report.num_fields)]
        logger.debug(
            "Opened %s: encoding=%s preamble=%d headers=%s",
            self.path, self.encoding, self.report.num_preamble_rows, self._headers,
        )

    def headers(self) -> list[str]:
        """Return the cached header list.  ``open()`` must be called first."""
        if self._headers is None:
            raise RuntimeError("CSVReader.open() must be called before headers().")
        return self._headers

    def rows(self) -> Iterator[list[str]]:
        """
        Yield each data row.  Rewinds to the first data row on each call.

        Raises:
            MalformedRowError: If the ``csv`` module rejects a row.
        """
        if self._file is None:
            raise RuntimeError("CSVReader.open() must be called before rows().")

        reader = self._positioned_reader()
        if self.report.has_header:
            _next_record(reader)

        try:
            for row in reader:
                if row:
                    yield row
        except csv.Error as e:
            raise MalformedRowError(
                f"Malformed row in {self.path}: {e}",
                row_number=reader.line_num,
            ) from e

    def close(self) -> None:
        """Close the underlying file handle."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "CSVReader":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── internal ─────────────────────────────────────────────────────────

    def _positioned_reader(self):
        """Rewind and return a ``csv.reader`` positioned after the preamble."""
        self._file.seek(0)
        reader = csv.reader(self._file, dialect=self._dialect)
        for _ in range(self.report.num_preamble_rows):
            if _next_record(reader) is None:
                break
        return reader


def _next_record(reader) -> list[str] | None:
    """Return the next non-blank record, or None at end of file."""
    for row in reader:
        if row:
            return row
    return None
