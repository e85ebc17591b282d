"""Shared fixtures: settings, a scripted gateway double and canned model output."""

import io
import json
import base64
from typing import Any, List, Optional

import pytest
from PIL import Image

from forma.config.settings import Settings
from forma.models.design import ImageItem
from forma.models.gateway import ModelResponse


ARMCHAIR_ITEMS = [
    {
        "name": "Armchair",
        "description": "A comfortable reading chair.",
        "estimatedPriceRange": "$300 - $500",
        "searchQuery": "reading armchair",
        "options": [
            {"optionName": "Tan Leather", "description": "Tan leather armchair with walnut legs."}
        ],
    }
]

DESIGN_SUMMARY = {
    "summary": "A warm reading nook.",
    "suggestedItems": [
        {
            "name": "Armchair",
            "description": "Tan leather armchair with walnut legs.",
            "estimatedPriceRange": "$300 - $500",
            "searchQuery": "tan leather armchair",
        }
    ],
}


class ScriptedGateway:
    """Gateway double replaying queued answers and recording every call.

    Queue entries are returned as-is, or raised when they are exceptions.
    """

    def __init__(self):
        self.suggestions: List[Any] = []
        self.images: List[Any] = []
        self.summaries: List[Any] = []
        self.calls: List[dict] = []

    @staticmethod
    def _next(queue: List[Any]):
        value = queue.pop(0)
        if isinstance(value, BaseException):
            raise value
        return value

    async def request_suggestions(self, prompt: str, image: Optional[ImageItem] = None) -> str:
        self.calls.append({"kind": "suggestions", "prompt": prompt, "image": image})
        return self._next(self.suggestions)

    async def request_image(self, prompt: str, image: Optional[ImageItem] = None) -> ModelResponse:
        self.calls.append({"kind": "image", "prompt": prompt, "image": image})
        return self._next(self.images)

    async def request_summary(self, prompt: str, image: Optional[ImageItem] = None) -> str:
        self.calls.append({"kind": "summary", "prompt": prompt, "image": image})
        return self._next(self.summaries)

    def calls_of(self, kind: str) -> List[dict]:
        return [c for c in self.calls if c["kind"] == kind]


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def armchair_response() -> str:
    """Suggestion output with a single Armchair item and one option."""
    return json.dumps(ARMCHAIR_ITEMS)


@pytest.fixture
def summary_response() -> str:
    return json.dumps(DESIGN_SUMMARY)


@pytest.fixture
def make_png():
    """Factory for small, valid PNG payloads."""

    def _make(size=(8, 8), color=(200, 150, 100)) -> bytes:
        buf = io.BytesIO()
        Image.new("RGB", size, color).save(buf, format="PNG")
        return buf.getvalue()

    return _make


@pytest.fixture
def make_image_item():
    """Factory for ImageItem values that are easy to tell apart."""

    def _make(tag: str = "img") -> ImageItem:
        return ImageItem(mime_type="image/png", data_b64=base64.b64encode(tag.encode()).decode())

    return _make
