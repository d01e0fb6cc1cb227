"""
Pipeline instrumentation for tracing, logging, and diagnostics.
"""

import hashlib
import json
import logging
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from .models.schema import MenuItem, Word


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ContextLogger(logging.LoggerAdapter):
    """
    Logger bound to one analysis run.

    Context (trace id, stage) is appended to every message and also
    passed through ``extra`` so structured handlers can pick it up.
    """

    def process(self, msg, kwargs):
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        context = " ".join(f"{k}={v}" for k, v in extra.items())
        if context:
            msg = f"{msg} [{context}]"
        return msg, kwargs

    def bind(self, **context: Any) -> "ContextLogger":
        """Return a child logger with additional context."""
        merged = dict(self.extra or {})
        merged.update(context)
        return ContextLogger(self.logger, merged)


def bind_logger(logger: Optional[logging.Logger] = None, **context: Any) -> ContextLogger:
    """Wrap a logger (or adapter) with analysis context."""
    if isinstance(logger, ContextLogger):
        return logger.bind(**context)
    return ContextLogger(logger or logging.getLogger("menuscan"), context)


@dataclass
class PipelineTrace:
    """Complete trace of one analysis for debugging and analysis."""

    # Identification
    source: str = ""
    timestamp: str = field(default_factory=_now)
    trace_id: str = ""
    config_hash: str = ""

    # Per-stage timing (ms)
    line_clustering_ms: float = 0.0
    classification_ms: float = 0.0
    block_merging_ms: float = 0.0
    segmentation_ms: float = 0.0
    geometry_ms: float = 0.0
    total_ms: float = 0.0

    # Per-stage counts
    word_count: int = 0
    line_count: int = 0
    block_count: int = 0
    item_count: int = 0
    price_count: int = 0
    classifier_source: str = ""

    # Detailed outputs (optional, for debugging)
    classifications: list[dict] = field(default_factory=list)
    items: list[dict] = field(default_factory=list)

    # Warnings and errors
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.trace_id:
            self.trace_id = self._generate_trace_id()

    def _generate_trace_id(self) -> str:
        """Generate unique trace ID."""
        content = f"{self.source}_{self.timestamp}_{time.perf_counter_ns()}"
        return hashlib.sha256(content.encode()).hexdigest()[:12]

    def add_warning(self, message: str):
        """Add a warning message."""
        self.warnings.append(f"[{_now()}] {message}")

    def add_error(self, message: str):
        """Add an error message."""
        self.errors.append(f"[{_now()}] {message}")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, output_dir: Path) -> Path:
        """Save trace to file with deterministic filename."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        filepath = output_dir / f"trace_{self.trace_id}.json"
        with open(filepath, 'w') as f:
            f.write(self.to_json())

        return filepath

    def get_timing_breakdown(self) -> dict[str, float]:
        """Get timing breakdown by stage."""
        return {
            'line_clustering': self.line_clustering_ms,
            'classification': self.classification_ms,
            'block_merging': self.block_merging_ms,
            'segmentation': self.segmentation_ms,
            'geometry': self.geometry_ms,
            'total': self.total_ms,
        }

    def get_summary(self) -> str:
        """Get human-readable summary."""
        lines = [
            f"Pipeline Trace: {self.trace_id}",
            f"Source: {self.source or '-'}",
            f"Total time: {self.total_ms:.1f}ms",
            "",
            "Stage Timing:",
            f"  Line clustering: {self.line_clustering_ms:7.1f}ms ({self.line_count} lines)",
            f"  Classification:  {self.classification_ms:7.1f}ms ({self.classifier_source or '-'})",
            f"  Block merging:   {self.block_merging_ms:7.1f}ms ({self.block_count} blocks)",
            f"  Segmentation:    {self.segmentation_ms:7.1f}ms ({self.item_count} items)",
            f"  Geometry:        {self.geometry_ms:7.1f}ms",
            "",
            "Counts:",
            f"  Words:  {self.word_count}",
            f"  Items:  {self.item_count}",
            f"  Prices: {self.price_count}",
        ]

        if self.warnings:
            lines.append(f"\nWarnings: {len(self.warnings)}")
            for w in self.warnings[:5]:
                lines.append(f"  - {w}")

        if self.errors:
            lines.append(f"\nErrors: {len(self.errors)}")
            for e in self.errors[:5]:
                lines.append(f"  - {e}")

        return '\n'.join(lines)


class PipelineInstrumentor:
    """Helper class for instrumenting one analysis run."""

    def __init__(self, source: str = "", config: Optional[dict] = None):
        self.trace = PipelineTrace(source=str(source))
        self._stage_start: Optional[float] = None
        self._total_start = time.perf_counter()

        if config:
            config_str = json.dumps(config, sort_keys=True, default=str)
            self.trace.config_hash = hashlib.sha256(config_str.encode()).hexdigest()[:8]

    def start_stage(self, stage_name: str):
        """Mark start of a pipeline stage."""
        self._stage_start = time.perf_counter()

    def end_stage(self, stage_name: str):
        """Mark end of a pipeline stage and record timing."""
        if self._stage_start is None:
            return

        elapsed_ms = (time.perf_counter() - self._stage_start) * 1000

        stage_attr = f"{stage_name}_ms"
        if hasattr(self.trace, stage_attr):
            setattr(self.trace, stage_attr, elapsed_ms)

        self._stage_start = None

    def record_classifications(self, words: list[Word], source: str):
        """Record classification results."""
        self.trace.classifier_source = source
        self.trace.word_count = len(words)
        self.trace.classifications = [
            {
                'id': w.id,
                'text': w.text,
                'category': w.category.value if w.category else None,
            }
            for w in words
        ]

    def record_items(self, items: list[MenuItem]):
        """Record segmentation results."""
        self.trace.item_count = len(items)
        self.trace.price_count = sum(len(item.price) for item in items)
        self.trace.items = [item.to_dish() for item in items]

    def finalize(self) -> PipelineTrace:
        """Finalize trace and return."""
        self.trace.total_ms = (time.perf_counter() - self._total_start) * 1000
        return self.trace


class StageTimer:
    """Context manager for timing pipeline stages."""

    def __init__(self, instrumentor: PipelineInstrumentor, stage_name: str):
        self.instrumentor = instrumentor
        self.stage_name = stage_name

    def __enter__(self):
        self.instrumentor.start_stage(self.stage_name)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.instrumentor.end_stage(self.stage_name)
