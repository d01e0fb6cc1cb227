"""
Deterministic correction rules applied after any classifier.
"""

import logging
import re
import unicodedata
from typing import Optional

from ..models.schema import Category, Word

log = logging.getLogger(__name__)

NUMERIC_RE = re.compile(r"^\d+$", re.ASCII)
LETTER_RE = re.compile(r"[A-Za-zА-Яа-яЁё]")


def is_numeric(text: str) -> bool:
    return bool(NUMERIC_RE.match(text.strip()))


def count_letters(text: str) -> int:
    """Count Latin and Cyrillic letters."""
    return len(LETTER_RE.findall(text))


def is_symbolic(text: str) -> bool:
    """True if text has no characters other than punctuation, symbols and spaces."""
    stripped = "".join(text.split())
    if not stripped:
        return True
    return all(unicodedata.category(ch)[0] in ("P", "S") for ch in stripped)


def correct_category(text: str, category: Optional[Category | str]) -> Category:
    """Apply label sanitization, numeric override and title validity to one word."""
    category = Category.coerce(category)

    if is_numeric(text):
        return Category.PRICE

    if category == Category.TITLE and (count_letters(text) < 2 or is_symbolic(text)):
        return Category.DESCRIPTION

    return category


def apply_corrections(words: list[Word], logger: Optional[logging.Logger] = None) -> list[Word]:
    """Return words with corrected categories."""
    logger = logger or log
    corrected = []
    changed = 0
    for word in words:
        category = correct_category(word.text, word.category)
        if category != word.category:
            changed += 1
        corrected.append(word.with_category(category))
    if changed:
        logger.debug("Corrections changed %d of %d labels", changed, len(words))
    return corrected
