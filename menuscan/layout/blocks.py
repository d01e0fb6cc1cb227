"""
Merge adjacent same-category words into highlight blocks.
"""

import logging
from typing import Optional

from ..models.schema import BoundingBox, Category, HighlightBlock, Line, Word

log = logging.getLogger(__name__)

# Price tokens stay individually highlightable (several size prices per dish)
MERGEABLE = frozenset({Category.TITLE, Category.DESCRIPTION, Category.PRICE_MODIFIER})


def _make_block(run: list[Word], line_index: int) -> HighlightBlock:
    return HighlightBlock(
        category=run[0].category,
        bbox=BoundingBox.union(w.bbox for w in run),
        word_ids=[w.id for w in run],
        line_index=line_index,
        text=" ".join(w.text for w in run),
    )


def merge_line(line: Line, categories: dict[str, Category]) -> list[HighlightBlock]:
    """
    Merge one line's words into blocks.

    Parameters:
    -----------
    line : Line with x-sorted words
    categories : Final category per word id
    """
    blocks = []
    run: list[Word] = []
    run_category: Optional[Category] = None

    for word in sorted(line.words, key=lambda w: w.bbox.x0):
        category = categories.get(word.id, Category.DESCRIPTION)
        word = word.with_category(category)
        if run and category == run_category and category in MERGEABLE:
            run.append(word)
            continue
        if run:
            blocks.append(_make_block(run, line.index))
        run = [word]
        run_category = category

    if run:
        blocks.append(_make_block(run, line.index))

    return blocks


def merge_blocks(
    lines: list[Line],
    words: list[Word],
    logger: Optional[logging.Logger] = None,
) -> list[HighlightBlock]:
    """
    Build highlight blocks for all lines.

    Lines come from clustering (their words may carry stale categories),
    so the final per-word categories are looked up from ``words``.
    """
    categories = {w.id: w.category or Category.DESCRIPTION for w in words}
    blocks = []
    for line in lines:
        blocks.extend(merge_line(line, categories))

    (logger or log).debug("Merged %d words into %d blocks", len(words), len(blocks))
    return blocks
