"""
End-to-end pipeline tests.

Covers:
  - Empty result
  - Pixel page through the heuristic classifier
  - Normalized page from the mock Word Source
  - Remote classifier success (one request per image) and fallback
  - Source-tagged words
  - Trace saving and config from the environment
"""

import json

import pytest
from pydantic import ValidationError

from menuscan.classifier.remote import RemoteClassifierConfig
from menuscan.models.schema import Category
from menuscan.ocr.sources import JsonWordSource, MockWordSource
from menuscan.pipeline import MenuPipeline, PipelineConfig, analyze_words

from conftest import FakeSession, completion, raw_word

CATEGORIES = set(Category)


def _local() -> MenuPipeline:
    return MenuPipeline(PipelineConfig(use_remote=False))


def _remote_config() -> PipelineConfig:
    return PipelineConfig(remote=RemoteClassifierConfig(api_key="secret", folder_id="b1g123"))


class TestAnalyze:
    def test_empty_response(self):
        result = _local().analyze({"text": "", "words": []})
        assert result.items == []
        assert result.words == []
        assert result.warnings == ["No text detected"]
        assert result.to_output_json()["items"] == []

    def test_pixel_page(self, pizza_response):
        pipeline = _local()
        result = pipeline.analyze(pizza_response, source="menu.jpg")

        assert not result.normalized
        assert result.classifier_source == "heuristic"
        assert [item.to_dish() for item in result.items] == [{
            "id": "item0",
            "title": "PIZZA",
            "prices": ["450"],
            "description": "fresh basil",
        }]
        assert [b.text for b in result.blocks] == ["PIZZA", "450", "fresh basil"]

        frame = result.frames[0].bbox
        assert (frame.x0, frame.y0, frame.x1, frame.y1) == (2, 2, 358, 78)

        trace = pipeline.last_trace
        assert trace.trace_id == result.trace_id
        assert trace.source == "menu.jpg"
        assert trace.line_count == 2
        assert trace.item_count == 1
        assert result.processing_time_ms == trace.total_ms

    def test_every_word_gets_a_category(self, pizza_response):
        pizza_response["words"].append(raw_word("•", 200, 50, 210, 60))
        pizza_response["words"].append(raw_word("SPECIALS", 10, 300, 200, 330, category="heading"))
        result = _local().analyze(pizza_response)
        assert len(result.words) == 5
        assert all(w.category in CATEGORIES for w in result.words)

    def test_normalized_mock_source(self):
        result = _local().analyze_image(None, MockWordSource(), source="mock")
        assert result.normalized
        assert len(result.items) == 1
        dish = result.items[0].to_dish()
        assert dish["title"] == "TITLE"
        assert dish["description"] == "description text 299₽"
        assert result.frames[0].bbox.x0 == pytest.approx(0.072)

    def test_invalid_box_rejected(self):
        with pytest.raises(ValidationError):
            _local().analyze({"words": [raw_word("A", 10, 0, 5, 10)]})

    def test_remote_success_uses_one_request(self, pizza_response):
        answer = '[{"line": 0, "category": "title"}, {"line": 1, "category": "description"}]'
        session = FakeSession(completion(answer))
        result = MenuPipeline(_remote_config(), session=session).analyze(pizza_response)

        assert len(session.calls) == 1
        assert result.classifier_source == "remote"
        assert result.items[0].to_dish()["prices"] == ["450"]
        assert result.warnings == []

    def test_remote_failure_falls_back(self, pizza_response, failing_session):
        pipeline = MenuPipeline(_remote_config(), session=failing_session)
        result = pipeline.analyze(pizza_response)

        assert result.classifier_source == "heuristic"
        assert len(result.items) == 1
        assert any("remote classifier failed" in w for w in result.warnings)
        assert pipeline.last_trace.warnings == result.warnings

    def test_missing_credentials_fall_back_without_network(self, pizza_response):
        session = FakeSession(completion("[]"))
        result = MenuPipeline(PipelineConfig(), session=session).analyze(pizza_response)
        assert result.classifier_source == "heuristic"
        assert session.calls == []

    def test_source_tags_preferred(self, pizza_response):
        for word, category in zip(pizza_response["words"], ("title", "price", "description")):
            word["category"] = category
        session = FakeSession(completion("[]"))
        result = MenuPipeline(_remote_config(), session=session).analyze(pizza_response)

        assert result.classifier_source == "source"
        assert session.calls == []

    def test_trace_saved(self, pizza_response, tmp_path):
        pipeline = MenuPipeline(PipelineConfig(use_remote=False, trace_dir=tmp_path))
        result = pipeline.analyze(pizza_response)
        assert (tmp_path / f"trace_{result.trace_id}.json").exists()

    def test_configured_padding_and_epsilon(self, pizza_response):
        config = PipelineConfig(use_remote=False, frame_padding=0, reading_order_epsilon=5)
        result = MenuPipeline(config).analyze(pizza_response)
        frame = result.frames[0].bbox
        assert (frame.x0, frame.y0, frame.x1, frame.y1) == (10, 10, 350, 70)


class TestAnalyzeWords:
    def test_json_source_round_trip(self, pizza_response, tmp_path):
        words_path = tmp_path / "menu.words.json"
        words_path.write_text(json.dumps(pizza_response), encoding="utf-8")

        output = analyze_words(words_path, tmp_path / "out" / "menu.json", use_remote=False)
        assert output["items"][0]["title"] == "PIZZA"
        assert (tmp_path / "out" / "menu.json").exists()

    def test_json_source_name(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text('{"text": "", "words": []}', encoding="utf-8")
        pipeline = _local()
        pipeline.analyze_image(None, JsonWordSource(path))
        assert pipeline.last_trace.source == str(path)


class TestConfigFromEnv:
    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.delenv("YANDEX_GPT_API_KEY", raising=False)
        monkeypatch.setenv("YANDEX_VISION_API_KEY", "vision-key")
        monkeypatch.setenv("YANDEX_FOLDER_ID", "folder")
        monkeypatch.setenv("MENUSCAN_CLASSIFIER_TIMEOUT", "5")
        monkeypatch.setenv("MENUSCAN_USE_REMOTE", "off")
        monkeypatch.setenv("MENUSCAN_TRACE_DIR", str(tmp_path))

        config = PipelineConfig.from_env(env_file=tmp_path / "missing.env")
        assert config.remote.api_key == "vision-key"
        assert config.remote.folder_id == "folder"
        assert config.remote.timeout == 5
        assert config.remote.model == "yandexgpt/latest"
        assert config.use_remote is False
        assert config.trace_dir == tmp_path
        assert config.to_dict()["remote"]["api_key"] == "***"

    def test_env_file_and_overrides(self, monkeypatch, tmp_path):
        # setenv then delenv so the value load_dotenv writes is undone afterwards
        monkeypatch.setenv("YANDEX_GPT_API_KEY", "")
        monkeypatch.delenv("YANDEX_GPT_API_KEY")
        monkeypatch.delenv("MENUSCAN_USE_REMOTE", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("YANDEX_GPT_API_KEY=from-file\n", encoding="utf-8")

        config = PipelineConfig.from_env(env_file=env_file, use_remote=False, line_tolerance=0.5)
        assert config.remote.api_key == "from-file"
        assert config.use_remote is False
        assert config.line_tolerance == 0.5
