"""
Data Quality Module
"""
from .validators import DataValidator, ValidationResult, validate_frames, validate_store

__all__ = [
    "DataValidator",
    "ValidationResult",
    "validate_frames",
    "validate_store",
]
