"""
Word Sources that need no OCR engine.
"""

import json
from pathlib import Path
from typing import Union

from ..models.schema import WordSourceResponse


class JsonWordSource:
    """Read a saved Word Source response from disk."""

    name = "json"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def recognize(self, image=None) -> WordSourceResponse:
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        return WordSourceResponse.model_validate(data)


class MockWordSource:
    """Fixed normalized words for end-to-end checks without OCR."""

    name = "mock"

    WORDS = [
        {"bbox": {"x0": 0.08, "y0": 0.10, "x1": 0.92, "y1": 0.18}, "text": "TITLE", "fontSize": 0.08},
        {"bbox": {"x0": 0.10, "y0": 0.45, "x1": 0.88, "y1": 0.53}, "text": "description text", "fontSize": 0.08},
        {"bbox": {"x0": 0.12, "y0": 0.78, "x1": 0.85, "y1": 0.86}, "text": "299₽", "fontSize": 0.08},
    ]

    def recognize(self, image=None) -> WordSourceResponse:
        return WordSourceResponse.model_validate({"text": "", "words": self.WORDS})
