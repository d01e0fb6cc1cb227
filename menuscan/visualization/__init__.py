"""Highlight overlay rendering."""

from .overlay import COLORS, OverlayRenderer, RedrawScheduler

__all__ = ['COLORS', 'OverlayRenderer', 'RedrawScheduler']
