from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from pymarc import MARCWriter, Record

from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..marc.builder import build_record
from ..marc.control_field import ControlFieldError
from ..marc.normalizers import NormalizationError
from ..models.config_models import MarcifyConfig
from ..models.processing_result import BatchResult
from ..models.source_row import SourceRow
from ..spreadsheet.reader import StructuralError, read_source_rows
from .progress import ProgressTracker

"""Batch driver: worksheet rows -> MARC file.

Rows are converted strictly in worksheet order and written as they are built.
The first row that cannot be converted aborts the whole batch; there is no
skip-and-continue mode, a feed with silently dropped records is worse than a
stopped one.
"""

logger = logging.getLogger(__name__)

# Columns the record builder reads unconditionally
REQUIRED_COLUMNS = {
    "Title",
    "Creator",
    "ISBN",
    "DateOfPublication",
    "Language",
    "PlaceOfPublication",
    "Subject",
    "Publisher",
    "Format",
    "SystemRequirements",
    "URL",
}


class ProcessingError(Exception):
    """Base exception for fatal batch errors."""
    error_type = "PROCESSING_ERROR"


class RecordBuildError(ProcessingError):
    """A row could not be converted; chained to the normalizer error."""

    def __init__(self, row: SourceRow, cause: Exception) -> None:
        self.row_number = row.row_number
        self.title = row.title
        self.error_type = getattr(cause, "error_type", "RECORD_BUILD_ERROR")
        super().__init__(f"row {row.row_number} ({row.title!r}): {cause}")


class RecordWriter(Protocol):
    def write(self, record: Record) -> None: ...


def run_batch(
    rows: Iterable[SourceRow],
    config: MarcifyConfig,
    writer: RecordWriter,
    progress: ProgressTracker | None = None,
) -> int:
    """Build and write one record per row, in order.

    Returns:
        Number of records written

    Raises:
        RecordBuildError: on the first row any normalizer rejects
    """
    written = 0
    for row in rows:
        try:
            record = build_record(row, config)
        except (NormalizationError, ControlFieldError) as e:
            raise RecordBuildError(row, e) from e
        logger.debug(f"writing marc record for {row.title}")
        writer.write(record)
        written += 1
        if progress is not None:
            progress.advance()
    return written


def process_file(
    source: Path,
    output: Path,
    config: MarcifyConfig,
    error_log: ErrorLogBuffer | None = None,
) -> BatchResult:
    """Convert ``source`` into ``output``.

    The output file is closed on every exit path. Fatal errors are recorded in
    the JSON Lines error log before being re-raised.

    Raises:
        StructuralError: the workbook shape or header is wrong
        RecordBuildError: a row could not be converted
        ProcessingError: the output file could not be written
    """
    start_time = datetime.now(UTC)
    if error_log is None:
        error_log = ErrorLogBuffer()

    try:
        rows = read_source_rows(source, expected_columns=REQUIRED_COLUMNS)
    except StructuralError as e:
        error_log.append(ErrorRecord.create(str(source), -1, e.error_type, str(e)))
        error_log.flush()
        raise
    logger.info(f"read {len(rows)} rows from {source.name}")

    try:
        with output.open("wb") as fh, ProgressTracker(len(rows)) as progress:
            written = run_batch(rows, config, MARCWriter(fh), progress=progress)
    except RecordBuildError as e:
        error_log.append(ErrorRecord.create(str(source), e.row_number, e.error_type, str(e)))
        path = error_log.flush()
        logger.debug(f"error log written to {path}")
        raise
    except OSError as e:
        raise ProcessingError(f"unable to write {output}: {e}") from e

    end_time = datetime.now(UTC)
    return BatchResult.from_times(written, source, output, start_time, end_time)
