"""
Custom exceptions for the CSV sniffing engine.

Hierarchy:
    SniffError
    ├── IoError                  Source read failed; the partial sample is unusable.
    ├── EmptySampleError         The bounded sample holds no rows.
    ├── AmbiguousDialectError    No delimiter candidate cleared the presence threshold.
    ├── UnterminatedQuoteError   Sample ended inside a quoted field.
    └── MalformedRowError        A report-driven reader hit a row the csv module rejects.

None of these are retried inside the engine.  Each carries enough context
(byte offset or row index) for the caller to enlarge the sample, supply an
override, or give up.
"""


class SniffError(Exception):
    """Base class for all sniffing errors."""


class IoError(SniffError):
    """
    Raised when the byte source cannot be read.

    Args:
        message: Human-readable description of the failure.
        offset: Number of bytes successfully read before the failure.
    """

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset

    def __str__(self) -> str:
        base = super().__str__()
        if self.offset is not None:
            return f"{base} | offset={self.offset}"
        return base


class EmptySampleError(SniffError):
    """Raised when the extracted sample contains zero rows."""


class AmbiguousDialectError(SniffError):
    """
    Raised when no candidate delimiter scores above the presence threshold.

    Args:
        message: Human-readable description.
        scores: Score computed for every candidate delimiter, in priority order.
    """

    def __init__(self, message: str, scores: dict[str, float] | None = None) -> None:
        super().__init__(message)
        self.scores = dict(scores or {})

    def __str__(self) -> str:
        base = super().__str__()
        if self.scores:
            parts = " ".join(f"{d!r}={s:.3f}" for d, s in self.scores.items())
            return f"{base} | scores: {parts}"
        return base


class UnterminatedQuoteError(SniffError):
    """
    Raised when the sample ends while a quoted field is still open.

    Args:
        message: Human-readable description.
        row_index: 0-based index of the row that was being tokenized.
        offset: Byte offset of the quote that opened the unterminated field.
    """

    def __init__(
        self,
        message: str,
        row_index: int | None = None,
        offset: int | None = None,
    ) -> None:
        super().__init__(message)
        self.row_index = row_index
        self.offset = offset

    def __str__(self) -> str:
        base = super().__str__()
        parts = []
        if self.row_index is not None:
            parts.append(f"row={self.row_index}")
        if self.offset is not None:
            parts.append(f"offset={self.offset}")
        if parts:
            return f"{base} | {' '.join(parts)}"
        return base


class MalformedRowError(SniffError):
    """
    Raised by ``CSVReader`` when the ``csv`` module rejects a row.

    Args:
        message: Human-readable description.
        row_number: 1-based physical line number where parsing failed.
    """

    def __init__(self, message: str, row_number: int | None = None) -> None:
        super().__init__(message)
        self.row_number = row_number

    def __str__(self) -> str:
        base = super().__str__()
        if self.row_number is not None:
            return f"{base} | row={self.row_number}"
        return base
