"""
Remote line classifier backed by the Yandex GPT completion API.

One request per page: all lines are serialized into a single prompt and
the model answers with a JSON array of {"line": <index>, "category": <label>}.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import requests

from ..models.schema import Category, Line, Word
from .errors import ParseError, ProviderUnavailable

log = logging.getLogger(__name__)

COMPLETION_URL = "https://llm.api.cloud.yandex.net/foundationModels/v1/completion"

_PROMPT = """\
You receive the text lines of a photographed restaurant menu, top to bottom.
Each line is given as: index | y | average font size | text

Assign every line exactly one category:
- "title" - dish name or heading of a menu position
- "price" - a price or amount
- "price_modifier" - a size or variant label that qualifies the prices below it (e.g. "DOUBLE TRIPLE", "300 ml 500 ml")
- "description" - ingredients, composition, any other text

Answer ONLY with a JSON array, one object per line, for example:
[{"line": 0, "category": "title"}, {"line": 1, "category": "price"}]

Lines:
"""


@dataclass
class RemoteClassifierConfig:
    """Credentials and request settings."""
    api_key: str = ""
    folder_id: str = ""
    model: str = "yandexgpt/latest"
    url: str = COMPLETION_URL
    timeout: float = 30.0
    temperature: float = 0.1
    max_tokens: int = 2000


def serialize_lines(lines: list[Line]) -> str:
    """Render lines as the request document."""
    rows = []
    for line in lines:
        rows.append(f"{line.index} | {line.min_y:.4g} | {line.avg_font_size:.4g} | {line.text}")
    return "\n".join(rows)


def _strip_fences(content: str) -> str:
    match = re.search(r'```(?:json)?\s*(.*?)\s*```', content, re.DOTALL)
    if match:
        return match.group(1)
    return content.strip()


def parse_line_labels(content: str) -> dict[int, Category]:
    """
    Parse the model answer into line index -> category.

    Raises ParseError when the answer is not a JSON array of objects.
    Entries with an unusable line index are skipped.
    """
    try:
        data = json.loads(_strip_fences(content))
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Response is not JSON: {e}", source=RemoteClassifier.name) from e

    if not isinstance(data, list):
        raise ParseError(
            f"Expected a JSON array, got {type(data).__name__}",
            source=RemoteClassifier.name,
        )

    labels: dict[int, Category] = {}
    for entry in data:
        if not isinstance(entry, dict):
            raise ParseError(f"Unexpected entry: {entry!r}", source=RemoteClassifier.name)
        try:
            index = int(entry.get("line"))
        except (TypeError, ValueError, OverflowError):
            continue
        labels[index] = Category.coerce(entry.get("category"))
    return labels


class RemoteClassifier:
    """Classify all lines of a page with a single completion request."""

    name = "remote"

    def __init__(
        self,
        config: Optional[RemoteClassifierConfig] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config or RemoteClassifierConfig()
        self.session = session or requests.Session()
        self.log = logger or log

    def _build_request(self, lines: list[Line]) -> dict[str, Any]:
        return {
            "modelUri": f"gpt://{self.config.folder_id}/{self.config.model}",
            "completionOptions": {
                "stream": False,
                "temperature": self.config.temperature,
                "maxTokens": str(self.config.max_tokens),
            },
            "messages": [
                {"role": "user", "text": _PROMPT + serialize_lines(lines)},
            ],
        }

    def _extract_text(self, payload: Any) -> str:
        try:
            alternative = payload["result"]["alternatives"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise ParseError(f"No completion in response: {e}", source=self.name) from e
        if not isinstance(alternative, dict):
            raise ParseError(f"Unexpected alternative: {alternative!r}", source=self.name)
        message = alternative.get("message") or {}
        if not isinstance(message, dict):
            raise ParseError(f"Unexpected message: {message!r}", source=self.name)
        text = message.get("text") or alternative.get("text")
        if not isinstance(text, str):
            raise ParseError("Completion has no text", source=self.name)
        return text

    def request_labels(self, lines: list[Line]) -> dict[int, Category]:
        """Issue the single classification request for a page."""
        if not self.config.api_key or not self.config.folder_id:
            raise ProviderUnavailable("Yandex GPT credentials not configured", source=self.name)

        self.log.info("Requesting classification for %d lines", len(lines))
        try:
            response = self.session.post(
                self.config.url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Api-Key {self.config.api_key}",
                },
                json=self._build_request(lines),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise ProviderUnavailable(f"Request failed: {e}", source=self.name) from e

        if response.status_code != 200:
            raise ProviderUnavailable(
                f"HTTP {response.status_code}: {response.text[:200]}",
                source=self.name,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"Response body is not JSON: {e}", source=self.name) from e

        return parse_line_labels(self._extract_text(payload))

    def classify(self, lines: list[Line]) -> list[Word]:
        labels = self.request_labels(lines)

        missing = [line.index for line in lines if line.index not in labels]
        if missing:
            self.log.warning("No label for %d lines, using description", len(missing))

        return [
            word.with_category(labels.get(line.index, Category.DESCRIPTION))
            for line in lines
            for word in line.words
        ]
