from .builder import build_record
from .control_field import ControlFieldError, build_control_field
from .normalizers import NormalizationError

__all__ = ["build_record", "build_control_field", "ControlFieldError", "NormalizationError"]
