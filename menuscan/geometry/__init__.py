"""Item geometry and tap resolution."""

from .frames import Viewport, compute_item_frames, default_padding
from .hit_test import HitTester

__all__ = ['Viewport', 'compute_item_frames', 'default_padding', 'HitTester']
