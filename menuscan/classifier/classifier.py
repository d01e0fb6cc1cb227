"""
Word classifiers for menu elements.
Each variant maps clustered lines to per-word categories.
"""

import logging
import re
from typing import Optional, Protocol

from ..models.schema import Category, Line, Word
from .corrections import count_letters
from .errors import ProviderUnavailable

log = logging.getLogger(__name__)


class Classifier(Protocol):
    """Something that labels every word of a page."""

    name: str

    def classify(self, lines: list[Line]) -> list[Word]:
        """Return all words of ``lines`` with a category set."""
        ...


class HeuristicClassifier:
    """
    Deterministic fallback classifier, always available.

    - digits only -> price
    - more than 2 letters and all upper case -> title
    - anything else -> description
    """

    name = "heuristic"

    PRICE_PATTERN = re.compile(r'^\d+$', re.ASCII)

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or log

    def classify_text(self, text: str) -> Category:
        text = text.strip()
        if self.PRICE_PATTERN.match(text):
            return Category.PRICE
        if count_letters(text) > 2 and text == text.upper():
            return Category.TITLE
        return Category.DESCRIPTION

    def classify(self, lines: list[Line]) -> list[Word]:
        words = [
            word.with_category(self.classify_text(word.text))
            for line in lines
            for word in line.words
        ]
        self.log.debug("Heuristic labels assigned to %d words", len(words))
        return words


class SourceTagClassifier:
    """Use categories already attached by the Word Source."""

    name = "source"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or log

    def classify(self, lines: list[Line]) -> list[Word]:
        words = [word for line in lines for word in line.words]
        untagged = sum(1 for w in words if w.category is None)
        if not words or untagged:
            raise ProviderUnavailable(
                f"{untagged} of {len(words)} words carry no source category",
                source=self.name,
            )
        return list(words)
