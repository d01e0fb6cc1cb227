"""Menu item segmentation."""

from .segmenter import MenuItemSegmenter, SegmenterState, segment_menu_items

__all__ = ['MenuItemSegmenter', 'SegmenterState', 'segment_menu_items']
