"""
Historical coordinate resolution
"""

from .resolver import HistoryResolver, select_version
from .batch import BatchResolver, BatchRun, ProgressEvent

__all__ = [
    "HistoryResolver",
    "select_version",
    "BatchResolver",
    "BatchRun",
    "ProgressEvent",
]
