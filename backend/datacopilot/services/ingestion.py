"""
Delimited File Ingestion

Decodes an uploaded text file, detects its delimiter and splits it into a
header plus data rows. All cells are kept as raw text; typing happens in
the profiler.
"""

import csv
import io
import logging
from dataclasses import dataclass
from typing import List, Tuple

logger = logging.getLogger("datacopilot.ingestion")

DEFAULT_MAX_ROWS = 5000
DEFAULT_PREVIEW_ROWS = 19
SNIFF_BYTES = 4096
CANDIDATE_DELIMITERS = ",;\t|"


class EmptyFileError(ValueError):
    """Raised when an uploaded file holds no rows at all."""


@dataclass(frozen=True)
class ParsedTable:
    headers: List[str]
    rows: List[List[str]]
    preview: List[List[str]]  # header + first data rows
    delimiter: str
    encoding: str
    total_data_rows: int
    truncated: bool


def detect_encoding(sample: bytes) -> str:
    """Detect text encoding from sample bytes."""
    # latin-1 decodes any byte sequence, so it must come last
    for encoding in ("utf-8-sig", "utf-8", "cp1252", "latin-1"):
        try:
            sample.decode(encoding)
            return encoding
        except (UnicodeDecodeError, LookupError):
            continue
    return "utf-8"


def detect_delimiter(sample: str) -> str:
    """Detect CSV delimiter from sample text."""
    try:
        dialect = csv.Sniffer().sniff(sample[:SNIFF_BYTES], delimiters=CANDIDATE_DELIMITERS)
        return dialect.delimiter
    except csv.Error:
        return ","


def read_rows(text: str, delimiter: str) -> List[List[str]]:
    """Split text into rows, skipping empty lines."""
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    return [row for row in reader if row]


def split_header(
    rows: List[List[str]],
    max_rows: int = DEFAULT_MAX_ROWS,
    preview_rows: int = DEFAULT_PREVIEW_ROWS,
) -> Tuple[List[str], List[List[str]], List[List[str]]]:
    """Return (header, capped data rows, preview) from raw rows."""
    header, data = rows[0], rows[1:]
    limited = data[:max_rows]
    preview = [header] + limited[:preview_rows]
    return header, limited, preview


def parse_table(
    raw: bytes,
    max_rows: int = DEFAULT_MAX_ROWS,
    preview_rows: int = DEFAULT_PREVIEW_ROWS,
) -> ParsedTable:
    """
    Parse an uploaded delimited file.

    The first non-empty row is the header. Data rows past ``max_rows`` are
    dropped without error; ``truncated`` records whether that happened.
    """
    encoding = detect_encoding(raw)
    text = raw.decode(encoding)
    delimiter = detect_delimiter(text)
    rows = read_rows(text, delimiter)

    if not rows:
        raise EmptyFileError("File contains no rows")

    header, limited, preview = split_header(rows, max_rows, preview_rows)
    total = len(rows) - 1
    if total > max_rows:
        logger.info("parse_table: keeping %d of %d data rows", max_rows, total)

    logger.info(
        "parse_table: %d columns, %d rows (encoding=%s, delimiter=%r)",
        len(header), len(limited), encoding, delimiter,
    )
    return ParsedTable(
        headers=header,
        rows=limited,
        preview=preview,
        delimiter=delimiter,
        encoding=encoding,
        total_data_rows=total,
        truncated=total > max_rows,
    )
