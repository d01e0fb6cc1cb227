"""
Item frames and mapping between word space and canvas space.
"""

from dataclasses import dataclass

from ..models.schema import BoundingBox, ItemFrame, MenuItem

PIXEL_FRAME_PADDING = 8.0
NORMALIZED_FRAME_PADDING = 0.008


@dataclass(frozen=True)
class Viewport:
    """How the analyzed image is shown on screen."""
    natural_width: float
    natural_height: float
    display_width: float
    display_height: float
    device_pixel_ratio: float = 1.0

    def scale_factors(self, normalized: bool) -> tuple[float, float]:
        """Multipliers from word space to canvas space."""
        if normalized:
            sx, sy = self.display_width, self.display_height
        else:
            sx = self.display_width / self.natural_width if self.natural_width else 1.0
            sy = self.display_height / self.natural_height if self.natural_height else 1.0
        return sx * self.device_pixel_ratio, sy * self.device_pixel_ratio

    def to_canvas(self, bbox: BoundingBox, normalized: bool) -> BoundingBox:
        sx, sy = self.scale_factors(normalized)
        return bbox.scale(sx, sy)

    @classmethod
    def identity(cls, width: float, height: float) -> "Viewport":
        """Display at natural size."""
        return cls(width, height, width, height)


def item_frame(item: MenuItem, padding: float) -> ItemFrame:
    """Union of every word box in all four buckets, padded and clamped at 0."""
    bbox = BoundingBox.union(w.bbox for w in item.words)
    return ItemFrame(item_id=item.id, bbox=bbox.expand(padding))


def compute_item_frames(items: list[MenuItem], padding: float = PIXEL_FRAME_PADDING) -> list[ItemFrame]:
    return [item_frame(item, padding) for item in items if item.words]


def default_padding(normalized: bool) -> float:
    return NORMALIZED_FRAME_PADDING if normalized else PIXEL_FRAME_PADDING
