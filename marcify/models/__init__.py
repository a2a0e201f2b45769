"""Domain models for marcify.

Configuration, the per-row source record, error log records and the batch
result. MARC records themselves are ``pymarc.Record`` instances.
"""

from .config_models import LinkConfig, MarcifyConfig
from .error_record import ErrorRecord
from .processing_result import BatchResult
from .source_row import SourceRow

__all__ = [
    # Configuration models
    "LinkConfig",
    "MarcifyConfig",
    # Processing models
    "SourceRow",
    "BatchResult",
    "ErrorRecord",
]
