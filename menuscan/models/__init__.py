"""Data models."""
from .schema import (
    AnalysisResult, BoundingBox, Category, HighlightBlock, ItemFrame,
    Line, MenuItem, Word, WordSourceResponse, WordSourceWord, detect_normalized,
)

__all__ = [
    "AnalysisResult", "BoundingBox", "Category", "HighlightBlock", "ItemFrame",
    "Line", "MenuItem", "Word", "WordSourceResponse", "WordSourceWord",
    "detect_normalized",
]
