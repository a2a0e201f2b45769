from __future__ import annotations

from ..models.processing_result import BatchResult

"""SUMMARY line rendering."""


def _format_number(value: float) -> str:
    # integral values without a fraction, tiny ones without scientific notation
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(result: BatchResult) -> str:
    """Render the SUMMARY line for a finished batch.

    Format:
    SUMMARY records={n} input={source} output={output} elapsed_sec={elapsed}
    throughput_rps={throughput}

    Examples:
        >>> from datetime import datetime, timezone
        >>> from pathlib import Path
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = BatchResult.from_times(10, Path("in.xml"), Path("out.mrc"), start, end)
        >>> render_summary_line(result)
        'SUMMARY records=10 input=in.xml output=out.mrc elapsed_sec=2 throughput_rps=5'
    """
    return (
        f"SUMMARY records={result.records_written} "
        f"input={result.source} "
        f"output={result.output} "
        f"elapsed_sec={_format_number(result.elapsed_seconds)} "
        f"throughput_rps={_format_number(result.throughput_records_per_sec)}"
    )
