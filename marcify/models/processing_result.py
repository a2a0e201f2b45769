from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

"""Processing result model for a marcify batch run."""


@dataclass(frozen=True)
class BatchResult:
    """Aggregated results of one conversion, rendered as the SUMMARY line."""
    records_written: int
    source: Path
    output: Path
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float  # end - start
    throughput_records_per_sec: float  # records_written / elapsed

    @classmethod
    def from_times(
        cls,
        records_written: int,
        source: Path,
        output: Path,
        start_time: datetime,
        end_time: datetime,
    ) -> BatchResult:
        elapsed = (end_time - start_time).total_seconds()
        throughput = records_written / elapsed if elapsed > 0 else 0.0
        return cls(
            records_written=records_written,
            source=source,
            output=output,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=elapsed,
            throughput_records_per_sec=throughput,
        )
