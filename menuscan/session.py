"""
Scan session: the latest analysis, its highlight redraws and tap lookups.
"""

import logging
import threading
from typing import Any, Callable, Optional, Union

import numpy as np

from .geometry.frames import Viewport
from .geometry.hit_test import HitTester
from .models.schema import AnalysisResult, MenuItem, WordSourceResponse
from .pipeline import MenuPipeline
from .visualization.overlay import OverlayRenderer, RedrawScheduler

log = logging.getLogger(__name__)


class ScanSession:
    """
    Holds the current analysis for one user.

    Every submission starts a new generation. A finished analysis only
    becomes current if no newer submission started in the meantime, and
    it replaces the previous items entirely.

    When ``on_redraw`` is given, new results and viewport changes schedule
    a debounced redraw; the callback receives the BGRA highlight layer.
    """

    def __init__(
        self,
        pipeline: Optional[MenuPipeline] = None,
        on_redraw: Optional[Callable[[np.ndarray], Any]] = None,
        renderer: Optional[OverlayRenderer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.pipeline = pipeline or MenuPipeline()
        self.log = logger or log
        self._lock = threading.Lock()
        self._generation = 0
        self._result: Optional[AnalysisResult] = None
        self._viewport: Optional[Viewport] = None
        self._hit_tester: Optional[HitTester] = None
        self._hit_viewport: Optional[Viewport] = None

        self.renderer = renderer or OverlayRenderer()
        self.on_redraw = on_redraw
        self.scheduler: Optional[RedrawScheduler] = None
        if on_redraw is not None:
            self.scheduler = RedrawScheduler(
                self._redraw,
                delay=self.pipeline.config.redraw_delay,
                logger=self.log,
            )

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._result

    @property
    def generation(self) -> int:
        return self._generation

    def begin(self) -> int:
        """Start a new capture; returns its generation."""
        with self._lock:
            self._generation += 1
            return self._generation

    def publish(self, generation: int, result: AnalysisResult) -> bool:
        """Make ``result`` current unless a newer capture superseded it."""
        with self._lock:
            if generation != self._generation:
                self.log.info(
                    "Discarding analysis %s from superseded capture %d (current %d)",
                    result.trace_id, generation, self._generation,
                )
                return False
            self._result = result
            self._hit_tester = None
            viewport = self._viewport
        self._schedule_redraw(result, viewport)
        return True

    def submit(self, response: Union[WordSourceResponse, dict], source: str = "") -> AnalysisResult:
        """Analyze a Word Source response and make it current."""
        generation = self.begin()
        result = self.pipeline.analyze(response, source=source)
        self.publish(generation, result)
        return result

    def submit_image(self, image: Any, word_source: Any, source_name: Optional[str] = None) -> AnalysisResult:
        """Recognize and analyze an image and make it current."""
        generation = self.begin()
        result = self.pipeline.analyze_image(image, word_source, source=source_name)
        self.publish(generation, result)
        return result

    def set_viewport(self, viewport: Viewport):
        """Record new on-screen image dimensions."""
        with self._lock:
            if viewport == self._viewport:
                return
            self._viewport = viewport
            result = self._result
        self._schedule_redraw(result, viewport)

    def _schedule_redraw(self, result: Optional[AnalysisResult], viewport: Optional[Viewport]):
        if self.scheduler is None or result is None or viewport is None or not result.words:
            return
        self.scheduler.request(result, viewport)

    def _redraw(self, result: AnalysisResult, viewport: Viewport):
        layer = self.renderer.render_layer(result, viewport)
        self.on_redraw(layer)

    def _tester(self, viewport: Optional[Viewport]) -> Optional[HitTester]:
        with self._lock:
            viewport = viewport or self._viewport
            result = self._result
            if result is None or viewport is None:
                return None
            if self._hit_tester is None or self._hit_viewport != viewport:
                self._hit_tester = HitTester(
                    result.items, viewport, result.normalized, logger=self.log
                )
                self._hit_viewport = viewport
            return self._hit_tester

    def tap(self, x: float, y: float, viewport: Optional[Viewport] = None) -> Optional[MenuItem]:
        """Menu item whose title is under the canvas point, or None."""
        tester = self._tester(viewport)
        if tester is None:
            return None
        return tester.resolve(x, y)

    def clear(self):
        with self._lock:
            self._generation += 1
            self._result = None
            self._hit_tester = None
        if self.scheduler is not None:
            self.scheduler.cancel()
