"""
Services built on the formatter: live preview and batch processing.
"""

from spformat.services.batch import BatchFormatter, BatchMode
from spformat.services.preview import LivePreview

__all__ = [
    "BatchFormatter",
    "BatchMode",
    "LivePreview",
]
