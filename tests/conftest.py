"""Shared fixtures: word factories and a fake HTTP session."""

import json
from typing import Any, Optional

import pytest
import requests

from menuscan.models.schema import BoundingBox, Category, Word


def make_word(
    text: str,
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    category: Optional[str] = None,
    id: Optional[str] = None,
    font_size: Optional[float] = None,
) -> Word:
    return Word(
        id=id or f"{text}@{x0:g},{y0:g}",
        text=text,
        bbox=BoundingBox(x0=x0, y0=y0, x1=x1, y1=y1),
        font_size=font_size if font_size is not None else y1 - y0,
        category=Category(category) if category else None,
    )


def raw_word(text: str, x0: float, y0: float, x1: float, y1: float, **extra: Any) -> dict:
    """One word in the Word Source wire format."""
    word = {"bbox": {"x0": x0, "y0": y0, "x1": x1, "y1": y1}, "text": text}
    word.update(extra)
    return word


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Records posts and replays canned responses (or raises)."""

    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls: list[dict] = []

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self.response


def completion(content: str) -> FakeResponse:
    """A successful completion response wrapping ``content``."""
    return FakeResponse(200, {
        "result": {
            "alternatives": [{"message": {"role": "assistant", "text": content}, "status": "ALTERNATIVE_STATUS_FINAL"}],
        }
    })


@pytest.fixture
def word():
    return make_word


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def failing_session():
    return FakeSession(error=requests.ConnectionError("connection refused"))


@pytest.fixture
def pizza_response() -> dict:
    """Pixel-space page: one dish with a price and a description."""
    return {
        "text": "PIZZA 450\nfresh basil",
        "words": [
            raw_word("PIZZA", 10, 10, 100, 40),
            raw_word("450", 300, 10, 350, 40),
            raw_word("fresh basil", 10, 50, 150, 70),
        ],
    }
