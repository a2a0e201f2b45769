from .batch import ProcessingError, RecordBuildError, process_file, run_batch

__all__ = ["ProcessingError", "RecordBuildError", "process_file", "run_batch"]
