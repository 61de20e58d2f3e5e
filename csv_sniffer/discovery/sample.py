"""
Bounded sample extraction.

Reads at most ``max_bytes`` bytes (and optionally at most ``max_lines``
terminated lines) from a binary stream into a fixed-capacity buffer, then
copies out exactly the bytes the source wrote.  Nothing past the written
length is ever visible to later stages.

Handles:
- Short reads (``readinto`` / ``read`` returning fewer bytes than asked).
- UTF-8 / UTF-16 / UTF-32 byte-order marks (stripped, flagged on the sample).
- ``\\r\\n``, ``\\n`` and lone ``\\r`` line terminators.
- A partial trailing line at the byte bound (dropped, not half-buffered).

Text encoding detection uses ``charset_normalizer`` over the sample bytes.
Every later stage works on raw bytes and looks for ASCII delimiters, quotes
and terminators, so a source in an encoding that is not a byte-wise ASCII
superset (UTF-16, UTF-32, UTF-7) is transcoded to UTF-8 here.  The sample
keeps both the encoding of its bytes and the encoding of the source.
"""

from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass
from typing import BinaryIO

from charset_normalizer import from_bytes

from csv_sniffer.configs.exceptions import IoError

logger = logging.getLogger(__name__)

UTF8_BOM = codecs.BOM_UTF8
DEFAULT_ENCODING = "utf-8"

# UTF-32 first: its little-endian BOM starts with the UTF-16 one.
_WIDE_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

_ASCII_PROBE = b",\t;|:\"'\\\r\n azAZ09."

_TERMINATOR_RE = re.compile(rb"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class Sample:
    """
    Immutable, fully-initialized sample of the source.

    Attributes:
        data:            Sample bytes (BOM removed, partial trailing line removed).
        line_ends:       Offset just past each line, terminator included.
        encoding:        Encoding of ``data``, used to decode field bytes.
        truncated:       True if the byte or line bound cut the source short.
        bom:             True if a byte-order mark was stripped.
        source_encoding: Encoding of the source itself.  Differs from
                         ``encoding`` only when the sample was transcoded.
    """

    data: bytes
    line_ends: tuple[int, ...]
    encoding: str = DEFAULT_ENCODING
    truncated: bool = False
    bom: bool = False
    source_encoding: str = DEFAULT_ENCODING

    def __len__(self) -> int:
        return len(self.data)

    @property
    def transcoded(self) -> bool:
        return self.encoding != self.source_encoding

    @property
    def lines(self) -> list[bytes]:
        """Sample lines with their terminators removed."""
        out = []
        start = 0
        for end in self.line_ends:
            out.append(self.data[start:end].rstrip(b"\r\n"))
            start = end
        return out


def extract_sample(
    stream: BinaryIO,
    max_bytes: int,
    max_lines: int | None = None,
    encoding: str | None = None,
) -> Sample:
    """
    Read a bounded prefix of ``stream`` into a ``Sample``.

    Args:
        stream:    Readable binary stream.  Read from its current position.
        max_bytes: Capacity of the sample buffer.  Never exceeded.
        max_lines: Optional cap on the number of lines kept.
        encoding:  Known source encoding; detected from the bytes when ``None``.

    Returns:
        ``Sample`` whose ``data`` is ASCII-compatible.  Without transcoding
        it is at most ``max_bytes`` long.

    Raises:
        IoError: If the stream raises while being read.
    """
    buf = bytearray(max_bytes)
    written = _fill(stream, buf)
    hit_byte_bound = written == max_bytes

    data = bytes(memoryview(buf)[:written])
    del buf

    if encoding is None:
        encoding = detect_encoding(_complete_lines(data) if hit_byte_bound else data)
    text_encoding = encoding

    if is_ascii_compatible(encoding):
        bom = data.startswith(UTF8_BOM)
        if bom:
            data = data[len(UTF8_BOM):]
    else:
        data, bom = transcode_to_utf8(data, encoding)
        text_encoding = DEFAULT_ENCODING
        logger.debug("Transcoded %d-byte %s sample to UTF-8", written, encoding)

    line_ends = [m.end() for m in _TERMINATOR_RE.finditer(data)]
    truncated = False

    if hit_byte_bound:
        keep = line_ends[-1] if line_ends else 0
        if keep < len(data):
            logger.debug(
                "Byte bound %d hit; dropping %d-byte partial trailing line",
                max_bytes, len(data) - keep,
            )
            data = data[:keep]
        truncated = True
    elif line_ends and line_ends[-1] < len(data):
        # Final line at end of input without a terminator is complete.
        line_ends.append(len(data))
    elif not line_ends and data:
        line_ends.append(len(data))

    if max_lines is not None and len(line_ends) > max_lines:
        data = data[:line_ends[max_lines - 1]]
        line_ends = line_ends[:max_lines]
        truncated = True

    logger.debug(
        "Extracted sample: %d bytes, %d lines, encoding=%s, truncated=%s",
        len(data), len(line_ends), encoding, truncated,
    )
    return Sample(
        data=data,
        line_ends=tuple(line_ends),
        encoding=text_encoding,
        truncated=truncated,
        bom=bom,
        source_encoding=encoding,
    )


def detect_encoding(data: bytes) -> str:
    """
    Detect the text encoding of ``data``.

    A UTF-16 / UTF-32 byte-order mark decides the encoding outright.  Input
    without NUL bytes that decodes cleanly as UTF-8 (ASCII included) is
    UTF-8.  Otherwise the best ``charset_normalizer`` guess is used, or
    UTF-8 when it has none.
    """
    for bom, name in _WIDE_BOMS:
        if data.startswith(bom):
            return name
    if b"\x00" not in data:
        try:
            data.decode(DEFAULT_ENCODING)
            return DEFAULT_ENCODING
        except UnicodeDecodeError:
            pass
    best = from_bytes(data).best()
    if best is None:
        return DEFAULT_ENCODING
    return best.encoding


def is_ascii_compatible(encoding: str) -> bool:
    """True if ``encoding`` writes delimiters, quotes and terminators as single ASCII bytes."""
    try:
        return _ASCII_PROBE.decode("ascii").encode(encoding) == _ASCII_PROBE
    except (LookupError, UnicodeError):
        return False


def transcode_to_utf8(data: bytes, encoding: str) -> tuple[bytes, bool]:
    """
    Re-encode ``data`` from ``encoding`` to UTF-8.

    A leading byte-order mark is dropped.  A code unit cut off by the byte
    bound decodes to U+FFFD and lands in the partial trailing line.

    Returns:
        Tuple of ``(utf8_bytes, bom_stripped)``.
    """
    bom = data.startswith(tuple(b for b, _ in _WIDE_BOMS))
    text = data.decode(encoding, errors="replace")
    if text.startswith("\ufeff"):
        text = text[1:]
        bom = True
    return text.encode(DEFAULT_ENCODING), bom


def _complete_lines(data: bytes) -> bytes:
    """``data`` up to its last ``\\n`` or ``\\r`` byte, or all of it if there is none."""
    cut = max(data.rfind(b"\n"), data.rfind(b"\r")) + 1
    return data[:cut] if cut else data


def _fill(stream: BinaryIO, buf: bytearray) -> int:
    """Fill ``buf`` from ``stream`` until full or EOF; return bytes written."""
    view = memoryview(buf)
    written = 0
    readinto = getattr(stream, "readinto", None)
    try:
        while written < len(buf):
            if readinto is not None:
                n = readinto(view[written:]) or 0
            else:
                chunk = stream.read(len(buf) - written) or b""
                n = len(chunk)
                view[written:written + n] = chunk
            if not n:
                break
            written += n
    except OSError as e:
        raise IoError(f"Failed to read sample: {e}", offset=written) from e
    return written
