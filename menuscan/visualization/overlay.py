"""
Highlight overlay: category fills per block and outlines per menu item.
"""

import logging
import threading
from typing import Any, Callable, Optional

import cv2
import numpy as np

from ..geometry.frames import Viewport
from ..models.schema import AnalysisResult, BoundingBox, Category

log = logging.getLogger(__name__)


# BGR colors
COLORS = {
    Category.TITLE: (100, 100, 255),           # Pink
    Category.DESCRIPTION: (50, 200, 255),      # Yellow
    Category.PRICE: (100, 255, 100),           # Green
    Category.PRICE_MODIFIER: (255, 200, 100),  # Light blue
}
FRAME_COLOR = (128, 128, 128)


class OverlayRenderer:
    """Draw the highlight layer for one analysis."""

    def __init__(
        self,
        fill_alpha: float = 0.4,
        frame_alpha: float = 0.8,
        frame_thickness: int = 2,
        block_padding: int = 1,
    ):
        """
        Parameters:
        -----------
        fill_alpha : Opacity of category fills
        frame_alpha : Opacity of item outlines
        frame_thickness : Outline width in canvas pixels
        block_padding : Extra pixels around each fill
        """
        self.fill_alpha = fill_alpha
        self.frame_alpha = frame_alpha
        self.frame_thickness = frame_thickness
        self.block_padding = block_padding

    def _corners(self, bbox: BoundingBox, pad: int = 0) -> tuple[tuple[int, int], tuple[int, int]]:
        pt1 = (max(0, int(round(bbox.x0)) - pad), max(0, int(round(bbox.y0)) - pad))
        pt2 = (int(round(bbox.x1)) + pad, int(round(bbox.y1)) + pad)
        return pt1, pt2

    def render_layer(self, result: AnalysisResult, viewport: Viewport) -> np.ndarray:
        """
        Transparent BGRA layer at canvas size.

        Price blocks are single words already, so every block is one fill.
        """
        sx, sy = viewport.scale_factors(result.normalized)
        width = max(1, int(round(viewport.display_width * viewport.device_pixel_ratio)))
        height = max(1, int(round(viewport.display_height * viewport.device_pixel_ratio)))
        layer = np.zeros((height, width, 4), dtype=np.uint8)

        fill_a = int(self.fill_alpha * 255)
        for block in result.blocks:
            color = COLORS.get(block.category, COLORS[Category.DESCRIPTION])
            pt1, pt2 = self._corners(block.bbox.scale(sx, sy), self.block_padding)
            cv2.rectangle(layer, pt1, pt2, (*color, fill_a), thickness=-1)

        frame_a = int(self.frame_alpha * 255)
        for frame in result.frames:
            pt1, pt2 = self._corners(frame.bbox.scale(sx, sy))
            cv2.rectangle(layer, pt1, pt2, (*FRAME_COLOR, frame_a), self.frame_thickness)

        return layer

    def render(
        self,
        image: np.ndarray,
        result: AnalysisResult,
        viewport: Optional[Viewport] = None,
    ) -> np.ndarray:
        """Blend the highlight layer over a BGR image (resized to canvas size)."""
        if viewport is None:
            h, w = image.shape[:2]
            viewport = Viewport.identity(w, h)

        layer = self.render_layer(result, viewport)
        height, width = layer.shape[:2]
        base = image
        if base.shape[:2] != (height, width):
            base = cv2.resize(image, (width, height), interpolation=cv2.INTER_AREA)

        alpha = layer[:, :, 3:4].astype(np.float32) / 255.0
        blended = base.astype(np.float32) * (1 - alpha) + layer[:, :, :3].astype(np.float32) * alpha
        return blended.astype(np.uint8)

    def save(
        self,
        image_path: str,
        result: AnalysisResult,
        output_path: str,
        viewport: Optional[Viewport] = None,
    ) -> np.ndarray:
        """Render over an image file and write the annotated copy."""
        img = cv2.imread(str(image_path))
        if img is None:
            raise ValueError(f"Could not load image: {image_path}")
        annotated = self.render(img, result, viewport)
        cv2.imwrite(str(output_path), annotated)
        return annotated


class RedrawScheduler:
    """
    Debounced, non-reentrant redraw of the highlight layer.

    Each ``request`` restarts a short timer so bursts of state changes
    (new words, new display size) collapse into one redraw. A redraw that
    fires while another is still drawing does not overlap it: its arguments
    go back to pending (unless newer ones arrived) and are drawn once the
    running pass finishes.
    """

    def __init__(
        self,
        redraw: Callable[..., Any],
        delay: float = 0.01,
        logger: Optional[logging.Logger] = None,
    ):
        self.redraw = redraw
        self.delay = delay
        self.log = logger or log
        self.redraw_count = 0
        self.deferred_count = 0

        self._drawing = threading.Lock()
        self._state = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple] = None

    def request(self, *args: Any):
        """Schedule a redraw, replacing any pending one."""
        with self._state:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = args
        self._arm()

    def _take_pending(self) -> Optional[tuple]:
        with self._state:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            args, self._pending = self._pending, None
            return args

    def _fire(self):
        args = self._take_pending()
        if args is not None:
            self._run(args)

    def _arm(self):
        """Start the timer for a pending redraw if none is running."""
        with self._state:
            if self._pending is None or self._timer is not None:
                return
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _defer(self, args: tuple):
        with self._state:
            if self._pending is None:
                self._pending = args
        self.deferred_count += 1
        self.log.debug("Redraw already in progress, deferring")
        if not self._drawing.locked():
            self._arm()

    def _run(self, args: tuple):
        if not self._drawing.acquire(blocking=False):
            self._defer(args)
            return
        try:
            self.redraw(*args)
            self.redraw_count += 1
        finally:
            self._drawing.release()
            self._arm()

    def flush(self) -> bool:
        """Run a pending redraw now. Returns False if nothing was pending."""
        args = self._take_pending()
        if args is None:
            return False
        self._run(args)
        return True

    def cancel(self):
        self._take_pending()

    @property
    def pending(self) -> bool:
        with self._state:
            return self._pending is not None
