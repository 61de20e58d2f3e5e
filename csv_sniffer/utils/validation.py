"""
Validation helpers for ``SniffOptions``.

Called once at the top of ``sniff`` before the source is read.  Every
function raises ``ValueError`` on the first invalid value.
"""

from __future__ import annotations

import codecs

from csv_sniffer.configs.config import SniffOptions
from csv_sniffer.models.models import FieldType


def validate_single_char(name: str, value: str | None, allow_empty: bool = False) -> None:
    """
    Assert that an override is a single ASCII character.

    Raises:
        ValueError: If ``value`` is set and is not exactly one ASCII character
                    (an empty string is accepted when ``allow_empty``).
    """
    if value is None or (allow_empty and value == ""):
        return
    if len(value) != 1 or not value.isascii():
        raise ValueError(f"{name} must be a single ASCII character, got {value!r}.")
    if value in ("\r", "\n"):
        raise ValueError(f"{name} cannot be a line terminator.")


def validate_options(options: SniffOptions) -> None:
    """
    Assert that ``options`` is internally consistent.

    Raises:
        ValueError: On the first invalid field found.
    """
    if options.sample_size_bytes <= 0:
        raise ValueError(
            f"sample_size_bytes must be > 0, got {options.sample_size_bytes}."
        )
    if options.sample_size_lines is not None and options.sample_size_lines <= 0:
        raise ValueError(
            f"sample_size_lines must be > 0 when set, got {options.sample_size_lines}."
        )
    if options.max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {options.max_workers}.")

    if options.encoding is not None:
        try:
            codecs.lookup(options.encoding)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {options.encoding!r}.") from e

    validate_single_char("delimiter_override", options.delimiter_override)
    validate_single_char("quote_override", options.quote_override, allow_empty=True)

    if (
        options.delimiter_override is not None
        and options.delimiter_override == options.quote_override
    ):
        raise ValueError("delimiter_override and quote_override must differ.")

    if options.type_candidates is not None:
        candidates = tuple(options.type_candidates)
        if not candidates:
            raise ValueError("type_candidates must not be empty.")
        if len(set(candidates)) != len(candidates):
            raise ValueError(f"type_candidates contains duplicates: {candidates}.")
        for candidate in candidates:
            if not isinstance(candidate, FieldType):
                raise ValueError(f"Unknown type candidate: {candidate!r}.")

    if not options.datetime_formats and (
        options.type_candidates is None or FieldType.DATETIME in options.type_candidates
    ):
        raise ValueError("datetime_formats must not be empty while DateTime is a candidate.")
