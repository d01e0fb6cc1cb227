"""Layout analysis: line clustering, block merging and reading order."""

from .blocks import merge_blocks
from .lines import LineClusterer, cluster_lines
from .reading_order import ReadingOrderResolver

__all__ = ['LineClusterer', 'cluster_lines', 'merge_blocks', 'ReadingOrderResolver']
