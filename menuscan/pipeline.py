"""
Menu scanning pipeline.
Words -> lines -> categories -> blocks -> menu items -> frames.
"""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional, Union

import requests
from dotenv import load_dotenv

from .classifier import (
    Classifier, ClassifierChain, HeuristicClassifier, RemoteClassifier,
    RemoteClassifierConfig, SourceTagClassifier,
)
from .geometry.frames import compute_item_frames, default_padding
from .hierarchy.segmenter import MenuItemSegmenter
from .instrumentation import PipelineInstrumentor, PipelineTrace, StageTimer, bind_logger
from .layout.blocks import merge_blocks
from .layout.lines import LineClusterer
from .layout.reading_order import ReadingOrderResolver
from .models.schema import AnalysisResult, WordSourceResponse, detect_normalized

log = logging.getLogger(__name__)


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class PipelineConfig:
    """Pipeline configuration."""
    line_tolerance: float = 0.6
    reading_order_epsilon: Optional[float] = None  # None = pick from coordinate space
    frame_padding: Optional[float] = None           # None = pick from coordinate space
    use_source_tags: bool = True
    use_remote: bool = True
    remote: Optional[RemoteClassifierConfig] = None
    redraw_delay: float = 0.01
    trace_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None, **overrides: Any) -> "PipelineConfig":
        """Build config from environment variables (and an optional .env file)."""
        load_dotenv(env_file)
        api_key = (
            os.environ.get("YANDEX_GPT_API_KEY", "").strip()
            or os.environ.get("YANDEX_VISION_API_KEY", "").strip()
        )
        remote = RemoteClassifierConfig(
            api_key=api_key,
            folder_id=os.environ.get("YANDEX_FOLDER_ID", "").strip(),
            model=os.environ.get("MENUSCAN_GPT_MODEL", "yandexgpt/latest").strip(),
            timeout=float(os.environ.get("MENUSCAN_CLASSIFIER_TIMEOUT", "30")),
        )
        trace_dir = os.environ.get("MENUSCAN_TRACE_DIR", "").strip()
        config = cls(
            use_remote=_env_flag("MENUSCAN_USE_REMOTE", True),
            remote=remote,
            trace_dir=Path(trace_dir) if trace_dir else None,
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    def to_dict(self) -> dict:
        data = asdict(self)
        if data.get("remote"):
            data["remote"]["api_key"] = "***" if self.remote.api_key else ""
        return data


class MenuPipeline:
    """
    Layout-understanding pipeline for one menu photo at a time.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        classifiers: Optional[list[Classifier]] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Parameters:
        -----------
        config : Pipeline configuration
        classifiers : Classifier variants to chain (built from config when None)
        session : HTTP session for the remote classifier
        logger : Base logger; each analysis binds its own context to it
        """
        self.config = config or PipelineConfig()
        self.log = logger or log
        self._session = session
        self._classifiers = classifiers
        self.last_trace: Optional[PipelineTrace] = None

    def _build_classifiers(self, logger: logging.Logger, has_tags: bool) -> list[Classifier]:
        if self._classifiers is not None:
            return self._classifiers
        classifiers: list[Classifier] = []
        if self.config.use_source_tags and has_tags:
            classifiers.append(SourceTagClassifier(logger=logger))
        if self.config.use_remote:
            classifiers.append(RemoteClassifier(
                self.config.remote, session=self._session, logger=logger
            ))
        classifiers.append(HeuristicClassifier(logger=logger))
        return classifiers

    def analyze(
        self,
        response: Union[WordSourceResponse, dict],
        source: str = "",
    ) -> AnalysisResult:
        """Run the full pipeline over one Word Source response."""
        if not isinstance(response, WordSourceResponse):
            response = WordSourceResponse.model_validate(response)

        instr = PipelineInstrumentor(source, config=self.config.to_dict())
        trace = instr.trace
        alog = bind_logger(self.log, trace_id=trace.trace_id)

        words = response.to_words()
        if not words:
            alog.info("No text detected")
            trace.add_warning("No text detected")
            return self._finish(instr, AnalysisResult(
                trace_id=trace.trace_id,
                warnings=["No text detected"],
            ))

        normalized = detect_normalized(words)
        alog.info("Analyzing %d words (%s coordinates)", len(words),
                  "normalized" if normalized else "pixel")

        # Step 1: Lines
        with StageTimer(instr, "line_clustering"):
            clusterer = LineClusterer(
                tolerance=self.config.line_tolerance,
                logger=alog.bind(stage="lines"),
            )
            lines = clusterer.cluster(words)
        trace.line_count = len(lines)

        # Step 2: Categories
        with StageTimer(instr, "classification"):
            clog = alog.bind(stage="classify")
            chain = ClassifierChain(
                self._build_classifiers(clog, any(w.category for w in words)),
                logger=clog,
                on_failure=trace.add_warning,
            )
            classified, classifier_source = chain.classify(lines)
        instr.record_classifications(classified, classifier_source)

        # Step 3: Highlight blocks
        with StageTimer(instr, "block_merging"):
            blocks = merge_blocks(lines, classified, logger=alog.bind(stage="blocks"))
        trace.block_count = len(blocks)

        # Step 4: Menu items
        with StageTimer(instr, "segmentation"):
            epsilon = self.config.reading_order_epsilon
            resolver = (
                ReadingOrderResolver(epsilon) if epsilon is not None
                else ReadingOrderResolver.for_coordinates(normalized)
            )
            segmenter = MenuItemSegmenter(resolver, logger=alog.bind(stage="segment"))
            items = segmenter.segment(classified)
        instr.record_items(items)

        # Step 5: Frames
        with StageTimer(instr, "geometry"):
            padding = self.config.frame_padding
            if padding is None:
                padding = default_padding(normalized)
            frames = compute_item_frames(items, padding)

        alog.info("Found %d menu items via %s classifier", len(items), classifier_source)

        result = AnalysisResult(
            trace_id=trace.trace_id,
            words=classified,
            items=items,
            blocks=blocks,
            frames=frames,
            classifier_source=classifier_source,
            normalized=normalized,
            warnings=list(trace.warnings),
        )
        return self._finish(instr, result)

    def _finish(self, instr: PipelineInstrumentor, result: AnalysisResult) -> AnalysisResult:
        trace = instr.finalize()
        result.processing_time_ms = trace.total_ms
        self.last_trace = trace
        if self.config.trace_dir:
            trace.save(self.config.trace_dir)
        return result

    def analyze_image(self, image: Any, word_source: Any, source: Optional[str] = None) -> AnalysisResult:
        """Recognize words with ``word_source`` and analyze them."""
        start = time.perf_counter()
        response = word_source.recognize(image)
        self.log.info(
            "Word source %s returned %d words in %.0fms",
            getattr(word_source, "name", type(word_source).__name__),
            len(response.words), (time.perf_counter() - start) * 1000,
        )
        if source is None:
            source = str(image) if isinstance(image, (str, Path)) else str(getattr(word_source, "path", ""))
        return self.analyze(response, source=source)


def analyze_words(
    words_json: Union[str, Path],
    output_json: Optional[Union[str, Path]] = None,
    use_remote: bool = True,
) -> dict:
    """
    Analyze a saved Word Source response.

    Parameters:
    -----------
    words_json : Path to the Word Source JSON
    output_json : Optional path to save the analysis
    use_remote : Whether to try the remote classifier

    Returns:
    --------
    Analysis dictionary for the presentation layer
    """
    from .ocr.sources import JsonWordSource

    config = PipelineConfig.from_env(use_remote=use_remote)
    pipeline = MenuPipeline(config)
    result = pipeline.analyze_image(None, JsonWordSource(words_json))
    output = result.to_output_json()

    if output_json:
        Path(output_json).parent.mkdir(parents=True, exist_ok=True)
        with open(output_json, 'w', encoding='utf-8') as f:
            json.dump(output, f, indent=2, ensure_ascii=False)

    return output
