"""
Data models for menu scanning.
Words, items and geometry stay traceable to the source image.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BoundingBox(BaseModel):
    """Axis-aligned box, normalized [0,1] or pixel units."""
    x0: float
    y0: float
    x1: float
    y1: float

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_order(self) -> "BoundingBox":
        if self.x1 < self.x0 or self.y1 < self.y0:
            raise ValueError(
                f"Invalid box: ({self.x0}, {self.y0}, {self.x1}, {self.y1})"
            )
        return self

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def center(self) -> tuple[float, float]:
        return ((self.x0 + self.x1) / 2, (self.y0 + self.y1) / 2)

    @property
    def mid_y(self) -> float:
        return (self.y0 + self.y1) / 2

    @property
    def is_normalized(self) -> bool:
        return self.x1 <= 1 and self.y1 <= 1

    def contains(self, x: float, y: float) -> bool:
        """Point-in-box test, edges inclusive."""
        return self.x0 <= x <= self.x1 and self.y0 <= y <= self.y1

    def expand(self, padding: float, clamp_at_zero: bool = True) -> "BoundingBox":
        x0 = self.x0 - padding
        y0 = self.y0 - padding
        if clamp_at_zero:
            x0 = max(0.0, x0)
            y0 = max(0.0, y0)
        return BoundingBox(x0=x0, y0=y0, x1=self.x1 + padding, y1=self.y1 + padding)

    def scale(self, sx: float, sy: float) -> "BoundingBox":
        return BoundingBox(
            x0=self.x0 * sx, y0=self.y0 * sy,
            x1=self.x1 * sx, y1=self.y1 * sy,
        )

    @classmethod
    def union(cls, boxes: Iterable["BoundingBox"]) -> "BoundingBox":
        """Smallest box covering all given boxes."""
        boxes = list(boxes)
        if not boxes:
            raise ValueError("union() of no boxes")
        return cls(
            x0=min(b.x0 for b in boxes),
            y0=min(b.y0 for b in boxes),
            x1=max(b.x1 for b in boxes),
            y1=max(b.y1 for b in boxes),
        )


class Category(str, Enum):
    """Semantic role of a word on a menu."""
    TITLE = "title"                    # Dish name
    PRICE = "price"                    # Price token, one per size variant
    PRICE_MODIFIER = "price_modifier"  # Size/variant header (e.g. "DOUBLE TRIPLE")
    DESCRIPTION = "description"        # Ingredients, notes, everything else

    @classmethod
    def coerce(cls, value: Any) -> "Category":
        """
        Map a raw label onto the closed set.

        Multi-token labels ("title, price") keep the first token;
        anything unrecognized becomes DESCRIPTION.
        """
        if isinstance(value, Category):
            return value
        if value is None:
            return cls.DESCRIPTION
        token = str(value).split(",")[0].strip().lower()
        try:
            return cls(token)
        except ValueError:
            return cls.DESCRIPTION


class Word(BaseModel):
    """A recognized word (or phrase) with its box and optional category."""
    id: str = ""
    text: str
    bbox: BoundingBox
    font_size: float = Field(default=0.0, alias="fontSize")
    category: Optional[Category] = None

    model_config = ConfigDict(populate_by_name=True)

    def with_category(self, category: Category) -> "Word":
        return self.model_copy(update={"category": category})


class WordSourceWord(BaseModel):
    """One word as delivered by a Word Source."""
    text: str
    bbox: BoundingBox
    font_size: float = Field(default=0.0, alias="fontSize")
    category: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class WordSourceResponse(BaseModel):
    """Word Source contract: full text plus positioned words."""
    text: str = ""
    words: list[WordSourceWord] = Field(default_factory=list)

    def to_words(self) -> list[Word]:
        """Ingest words, assigning stable ids in response order."""
        words = []
        for i, w in enumerate(self.words):
            font_size = w.font_size or w.bbox.height
            words.append(Word(
                id=f"w{i}",
                text=w.text,
                bbox=w.bbox,
                font_size=font_size,
                category=Category.coerce(w.category) if w.category else None,
            ))
        return words


def detect_normalized(words: Iterable[Word]) -> bool:
    """True when every box lies in the unit square (x1, y1 <= 1)."""
    words = list(words)
    return bool(words) and all(w.bbox.is_normalized for w in words)


@dataclass
class Line:
    """Transient cluster of words sharing a vertical band."""
    index: int
    words: list[Word]
    min_y: float
    max_y: float
    avg_font_size: float

    @property
    def text(self) -> str:
        return " ".join(w.text for w in self.words)


class MenuItem(BaseModel):
    """A dish record segmented from the classified word stream."""
    id: str = ""
    price_modifier: list[Word] = Field(default_factory=list, alias="priceModifier")
    title: list[Word] = Field(default_factory=list)
    price: list[Word] = Field(default_factory=list)
    description: list[Word] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @property
    def words(self) -> list[Word]:
        return [*self.price_modifier, *self.title, *self.price, *self.description]

    @property
    def title_text(self) -> str:
        return " ".join(w.text for w in self.title)

    def to_dish(self) -> dict:
        """Record shown to the user when the dish is tapped."""
        dish: dict[str, Any] = {
            "id": self.id,
            "title": self.title_text,
            "prices": [w.text for w in self.price],
            "description": " ".join(w.text for w in self.description),
        }
        if self.price_modifier:
            dish["priceModifier"] = " ".join(w.text for w in self.price_modifier)
        return dish


class HighlightBlock(BaseModel):
    """A merged span of same-category words within one line."""
    category: Category
    bbox: BoundingBox
    word_ids: list[str] = Field(default_factory=list)
    line_index: int = 0
    text: str = ""


class ItemFrame(BaseModel):
    """Padded outline around every word of one menu item."""
    item_id: str
    bbox: BoundingBox


@dataclass
class AnalysisResult:
    """Everything one analysis run hands to the presentation layer."""
    trace_id: str = ""
    words: list[Word] = field(default_factory=list)
    items: list[MenuItem] = field(default_factory=list)
    blocks: list[HighlightBlock] = field(default_factory=list)
    frames: list[ItemFrame] = field(default_factory=list)
    classifier_source: str = ""
    normalized: bool = False
    warnings: list[str] = field(default_factory=list)
    processing_time_ms: float = 0.0

    def item_by_id(self, item_id: str) -> Optional[MenuItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_output_json(self) -> dict:
        """Export for the presentation layer."""
        return {
            "traceId": self.trace_id,
            "classifierSource": self.classifier_source,
            "normalized": self.normalized,
            "items": [item.to_dish() for item in self.items],
            "words": [
                {
                    "id": w.id,
                    "text": w.text,
                    "bbox": w.bbox.model_dump(),
                    "category": w.category.value if w.category else None,
                }
                for w in self.words
            ],
            "blocks": [
                {
                    "category": b.category.value,
                    "bbox": b.bbox.model_dump(),
                    "wordIds": b.word_ids,
                }
                for b in self.blocks
            ],
            "frames": [
                {"itemId": f.item_id, "bbox": f.bbox.model_dump()}
                for f in self.frames
            ],
            "warnings": self.warnings,
            "processingTimeMs": self.processing_time_ms,
        }
