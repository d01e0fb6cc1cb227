"""
Finite-state machine that segments the classified word stream into menu items.
"""

import logging
from enum import Enum
from typing import Optional

from ..layout.reading_order import ReadingOrderResolver
from ..models.schema import Category, MenuItem, Word

log = logging.getLogger(__name__)


class SegmenterState(str, Enum):
    NO_ACTIVE_ITEM = "no_active_item"
    BUILDING_ITEM = "building_item"


class MenuItemSegmenter:
    """
    Partition reading-order words into dish records.

    Transitions per word category:
    - price_modifier: closes the active item and opens a new one; a run of
      modifiers (e.g. "DOUBLE" "TRIPLE") stays together in one item
    - title: opens an item; closes the active one first only if it already
      has a description (a title interrupted by an inline price continues)
    - price / description: appended to the active item, never open one
    - anything arriving with no active item, other than title or
      price_modifier, is dropped
    """

    def __init__(
        self,
        reading_order: Optional[ReadingOrderResolver] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.reading_order = reading_order or ReadingOrderResolver()
        self.log = logger or log
        self._reset()

    def _reset(self):
        self.state = SegmenterState.NO_ACTIVE_ITEM
        self._current: Optional[MenuItem] = None
        self._emitted: list[MenuItem] = []
        self._dropped = 0

    def _open(self) -> MenuItem:
        self._close()
        self._current = MenuItem()
        self.state = SegmenterState.BUILDING_ITEM
        return self._current

    def _close(self):
        if self._current is not None:
            self._emitted.append(self._current)
        self._current = None
        self.state = SegmenterState.NO_ACTIVE_ITEM

    def feed(self, word: Word):
        """Advance the machine by one word."""
        category = word.category or Category.DESCRIPTION
        item = self._current

        if category == Category.PRICE_MODIFIER:
            if item is None or item.title or item.price or item.description:
                item = self._open()
            item.price_modifier.append(word)
            return

        if category == Category.TITLE:
            if item is None or item.description:
                item = self._open()
            item.title.append(word)
            return

        if item is None:
            self._dropped += 1
            return

        if category == Category.PRICE:
            item.price.append(word)
        else:
            item.description.append(word)

    def segment(self, words: list[Word]) -> list[MenuItem]:
        """
        Segment words into menu items.

        Words are put in reading order first. Items without a title are
        discarded; the rest get ids in output order.
        """
        self._reset()
        for word in self.reading_order.resolve(words):
            self.feed(word)
        self._close()

        items = [item for item in self._emitted if item.title]
        for i, item in enumerate(items):
            item.id = f"item{i}"

        discarded = len(self._emitted) - len(items)
        self.log.debug(
            "Segmented %d words into %d items (%d untitled discarded, %d words dropped)",
            len(words), len(items), discarded, self._dropped,
        )
        return items


def segment_menu_items(words: list[Word], normalized: bool = False) -> list[MenuItem]:
    """Convenience wrapper using the default epsilon for the coordinate space."""
    segmenter = MenuItemSegmenter(ReadingOrderResolver.for_coordinates(normalized))
    return segmenter.segment(words)
