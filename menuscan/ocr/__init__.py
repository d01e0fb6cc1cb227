"""Word Sources. The EasyOCR-backed one lives in ``engine`` (optional extra)."""
from .sources import JsonWordSource, MockWordSource

__all__ = ["JsonWordSource", "MockWordSource"]
