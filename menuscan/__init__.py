"""
menuscan - turn a photographed menu into tappable dish records.
"""

from .models.schema import AnalysisResult, BoundingBox, Category, MenuItem, Word
from .pipeline import MenuPipeline, PipelineConfig
from .session import ScanSession

__version__ = "0.1.0"

__all__ = [
    "AnalysisResult", "BoundingBox", "Category", "MenuItem", "Word",
    "MenuPipeline", "PipelineConfig", "ScanSession",
]
