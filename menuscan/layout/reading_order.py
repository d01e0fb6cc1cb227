"""
Reading order for single-column menus.
"""

from functools import cmp_to_key

from ..models.schema import Word


class ReadingOrderResolver:
    """Top-to-bottom, left-to-right ordering of words."""

    PIXEL_EPSILON = 10.0
    NORMALIZED_EPSILON = 0.01

    def __init__(self, epsilon: float = PIXEL_EPSILON):
        """
        Initialize resolver.

        Parameters:
        -----------
        epsilon : Max difference in top edge for two words to count as
                  the same line (then ordered by x)
        """
        self.epsilon = epsilon

    @classmethod
    def for_coordinates(cls, normalized: bool) -> "ReadingOrderResolver":
        return cls(cls.NORMALIZED_EPSILON if normalized else cls.PIXEL_EPSILON)

    def _compare(self, a: Word, b: Word) -> float:
        y_diff = a.bbox.y0 - b.bbox.y0
        if abs(y_diff) < self.epsilon:
            return a.bbox.x0 - b.bbox.x0
        return y_diff

    def resolve(self, words: list[Word]) -> list[Word]:
        """Return words in reading order."""
        return sorted(words, key=cmp_to_key(self._compare))
