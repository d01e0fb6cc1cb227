"""
Line clustering: group recognized words into horizontal lines.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from ..models.schema import Line, Word, detect_normalized

log = logging.getLogger(__name__)


@dataclass
class _LineBucket:
    """Open line while words are being placed."""
    words: list[Word] = field(default_factory=list)
    mid_sum: float = 0.0
    height_sum: float = 0.0
    min_y: float = float("inf")
    max_y: float = float("-inf")

    @property
    def avg_mid(self) -> float:
        return self.mid_sum / len(self.words)

    @property
    def avg_height(self) -> float:
        return self.height_sum / len(self.words)

    def add(self, word: Word, height: float):
        self.words.append(word)
        self.mid_sum += word.bbox.mid_y
        self.height_sum += height
        self.min_y = min(self.min_y, word.bbox.y0)
        self.max_y = max(self.max_y, word.bbox.y1)


class LineClusterer:
    """Group words into lines by vertical proximity."""

    PIXEL_MIN_HEIGHT = 1.0
    NORMALIZED_MIN_HEIGHT = 1e-3

    def __init__(
        self,
        tolerance: float = 0.6,
        min_height: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize clusterer.

        Parameters:
        -----------
        tolerance : Max distance between a word's midpoint and a line's
                    average midpoint, as a fraction of the line's average height
        min_height : Floor for degenerate box heights (auto-selected from the
                     coordinate convention when None)
        logger : Logger to report through
        """
        self.tolerance = tolerance
        self.min_height = min_height
        self.log = logger or log

    def _floor_height(self, words: list[Word]) -> float:
        if self.min_height is not None:
            return self.min_height
        if detect_normalized(words):
            return self.NORMALIZED_MIN_HEIGHT
        return self.PIXEL_MIN_HEIGHT

    def cluster(self, words: list[Word]) -> list[Line]:
        """
        Cluster words into lines.

        Returns lines sorted top to bottom, each with its words sorted
        left to right.
        """
        if not words:
            return []

        floor = self._floor_height(words)
        buckets: list[_LineBucket] = []

        for word in sorted(words, key=lambda w: w.bbox.mid_y):
            height = max(word.bbox.height, floor)
            target = None
            for bucket in buckets:
                if abs(word.bbox.mid_y - bucket.avg_mid) < bucket.avg_height * self.tolerance:
                    target = bucket
                    break
            if target is None:
                target = _LineBucket()
                buckets.append(target)
            target.add(word, height)

        buckets.sort(key=lambda b: b.min_y)

        lines = []
        for i, bucket in enumerate(buckets):
            line_words = sorted(bucket.words, key=lambda w: w.bbox.x0)
            lines.append(Line(
                index=i,
                words=line_words,
                min_y=bucket.min_y,
                max_y=bucket.max_y,
                avg_font_size=float(np.mean([w.font_size for w in line_words])),
            ))

        self.log.debug("Clustered %d words into %d lines", len(words), len(lines))
        return lines


def cluster_lines(words: list[Word], tolerance: float = 0.6) -> list[Line]:
    """Convenience wrapper around LineClusterer."""
    return LineClusterer(tolerance=tolerance).cluster(words)
