"""
Inspection of uploaded embeddings/info tables.

Only the first rows are parsed; the result is used to preview the file and
check that embeddings and info rows share ids before clustering.
"""

import io
import os
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import structlog
from pydantic import BaseModel

logger = structlog.get_logger()

DELIMITERS = [",", ";", "\t", "|"]
NUMERIC_THRESHOLD = 0.7
NUMERIC_SAMPLE_ROWS = 10


class FileMetadata(BaseModel):
    name: str
    size: int
    delimiter: str
    has_header: bool = True
    column_count: int
    row_count: int
    columns: List[str]
    numeric_columns: List[str]
    preview: List[Dict[str, Any]]


class IdMapping(BaseModel):
    matched: int
    total: int
    percentage: float


def detect_delimiter(sample: str) -> str:
    """Most frequent candidate delimiter in the sample (comma on ties)."""
    counts = [(sample.count(d), -i, d) for i, d in enumerate(DELIMITERS)]
    return max(counts)[2]


def numeric_columns(frame: pd.DataFrame) -> List[str]:
    """Columns where more than 70% of the first sampled values are finite numbers."""
    sample = frame.head(NUMERIC_SAMPLE_ROWS)
    result = []
    for column in frame.columns:
        values = sample[column]
        if len(values) == 0:
            continue
        parsed = pd.to_numeric(values, errors="coerce")
        finite = parsed.replace([float("inf"), float("-inf")], float("nan")).notna().sum()
        if finite / len(values) > NUMERIC_THRESHOLD:
            result.append(str(column))
    return result


def inspect_table(
    source: Union[str, bytes, os.PathLike],
    name: Optional[str] = None,
    preview_rows: int = 20,
) -> FileMetadata:
    """
    Read the head of a delimited table and describe it.

    Args:
        source: File path, or raw bytes of the upload
        name: Display name (defaults to the file name)
        preview_rows: Rows to parse for the preview

    Returns:
        FileMetadata

    Raises:
        ValueError: If the table cannot be parsed
    """
    if isinstance(source, bytes):
        raw = source
        display_name = name or "upload"
    else:
        with open(source, "rb") as handle:
            raw = handle.read()
        display_name = name or os.path.basename(os.fspath(source))

    text = raw.decode("utf-8-sig", errors="replace")
    delimiter = detect_delimiter(text[:4096])

    try:
        frame = pd.read_csv(io.StringIO(text), sep=delimiter, nrows=preview_rows, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ValueError(f"Parse error: {e}") from e

    total_rows = sum(1 for line in text.splitlines()[1:] if line.strip())
    preview = frame.astype(object).where(frame.notna(), None).to_dict(orient="records")

    metadata = FileMetadata(
        name=display_name,
        size=len(raw),
        delimiter=delimiter,
        column_count=len(frame.columns),
        row_count=total_rows,
        columns=[str(c) for c in frame.columns],
        numeric_columns=numeric_columns(frame),
        preview=preview,
    )
    logger.info("Inspected table", name=display_name, rows=total_rows, columns=metadata.column_count)
    return metadata


def validate_id_mapping(
    embeddings: List[Dict[str, Any]], info: List[Dict[str, Any]], id_column: str = "id"
) -> IdMapping:
    """Count ids present in both tables relative to the larger id set."""
    embedding_ids = {row.get(id_column) for row in embeddings}
    info_ids = {row.get(id_column) for row in info}
    matched = len(embedding_ids & info_ids)
    total = max(len(embedding_ids), len(info_ids))
    percentage = (matched / total) * 100 if total else 0.0
    return IdMapping(matched=matched, total=total, percentage=percentage)
