from .reader import MissingColumnsError, StructuralError, read_source_rows

__all__ = ["MissingColumnsError", "StructuralError", "read_source_rows"]
