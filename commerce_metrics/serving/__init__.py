"""
Serving Module
"""
from .service import ReportService, to_frame

__all__ = [
    "ReportService",
    "to_frame",
]
