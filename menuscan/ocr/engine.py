"""
Word Source backed by EasyOCR.
"""

import re
from pathlib import Path
from typing import Union

import easyocr
import numpy as np
from PIL import Image

from ..models.schema import BoundingBox, WordSourceResponse, WordSourceWord


def _zeros(match) -> str:
    return "0" * len(match.group())


# Letter/digit confusions seen around prices, applied in order
_PRICE_FIXES = [
    (re.compile(r"\b([oO])\1+\b"), _zeros),
    (re.compile(r"(?<=\d)[oO]+(?=\d)"), _zeros),
    (re.compile(r"(?<=\d)[Il](?=\d)"), "1"),
    (re.compile(r"^[lI](?=\d{2,}$)"), "1"),
    (re.compile(r"(?<=\d)[}\]]|[{\[](?=\d)"), ""),
]


def clean_ocr_text(text: str) -> str:
    """Fix common OCR confusions inside prices ("1O00" -> "1000", "[450" -> "450")."""
    for pattern, replacement in _PRICE_FIXES:
        text = pattern.sub(replacement, text)
    return text.strip()


class EasyOCRWordSource:
    """
    EasyOCR-based text extraction, returning the Word Source contract.
    """

    name = "easyocr"

    def __init__(self, langs: tuple[str, ...] = ("en", "ru"), use_gpu: bool = False):
        self.reader = easyocr.Reader(
            list(langs),
            gpu=use_gpu,
            verbose=False
        )

    def recognize(
        self,
        image: Union[str, Path, np.ndarray, Image.Image],
        confidence_threshold: float = 0.3,
    ) -> WordSourceResponse:
        """
        Extract positioned words from an image.

        Parameters:
        -----------
        image : Image source
        confidence_threshold : Minimum confidence for results

        Returns:
        --------
        WordSourceResponse in pixel coordinates, box height as font size
        """
        if isinstance(image, Path):
            image = str(image)
        elif isinstance(image, Image.Image):
            image = np.array(image.convert("RGB"))

        raw_results = self.reader.readtext(image)

        words = []
        for bbox_pts, text, conf in raw_results:
            if conf < confidence_threshold:
                continue

            text = clean_ocr_text(text)
            if not text:
                continue

            # Polygon -> axis-aligned box
            pts = np.array(bbox_pts)
            x_min, y_min = pts.min(axis=0)
            x_max, y_max = pts.max(axis=0)

            words.append(WordSourceWord(
                text=text,
                bbox=BoundingBox(
                    x0=float(x_min),
                    y0=float(y_min),
                    x1=float(x_max),
                    y1=float(y_max),
                ),
                font_size=float(y_max - y_min),
            ))

        words.sort(key=lambda w: (w.bbox.y0, w.bbox.x0))

        return WordSourceResponse(
            text=" ".join(w.text for w in words),
            words=words,
        )
