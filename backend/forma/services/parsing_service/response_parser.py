"""Validate raw model output before any field of it reaches the session."""

import json
from typing import Any, List, Optional

from pydantic import ValidationError

from forma.config.settings import Settings, get_settings
from forma.handlers.error_handler import ParseError
from forma.models.design import DesignSummary, GeneratedImage, InitialSuggestedItem
from forma.models.gateway import ModelResponse
from forma.utility.utils import Helper
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)


class ResponseParser:
    """Turn raw gateway output into typed models or raise ParseError.

    Nothing is coerced: a response either matches the expected shape in
    full or is rejected with the raw text attached. No partial lists.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _fail(self, message: str, raw: Optional[str]) -> ParseError:
        logger.error(f"Model response rejected: {message}")
        logger.debug(f"Rejected raw response: {raw!r}")
        return ParseError(
            message,
            raw_response=raw,
            preview_chars=self.settings.raw_response_preview_chars,
        )

    def _load_json(self, raw: Optional[str]) -> Any:
        text = Helper.strip_code_fences(raw or "")
        if not text:
            raise self._fail("The model returned an empty response.", raw)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise self._fail(f"The model response is not valid JSON: {exc.msg}.", raw) from exc

    def parse_suggestions(self, raw: Optional[str]) -> List[InitialSuggestedItem]:
        """Parse the suggestion stage output: an array of items with options."""
        data = self._load_json(raw)
        if not isinstance(data, list):
            raise self._fail("Expected a JSON array of suggested items.", raw)

        items: List[InitialSuggestedItem] = []
        seen = set()
        for index, element in enumerate(data):
            if not isinstance(element, dict):
                raise self._fail(f"Suggested item {index} is not an object.", raw)
            if "options" not in element:
                raise self._fail(f"Suggested item {index} is missing 'options'.", raw)
            try:
                item = InitialSuggestedItem.model_validate(element)
            except ValidationError as exc:
                raise self._fail(
                    f"Suggested item {index} does not match the expected shape: "
                    f"{self._describe(exc)}",
                    raw,
                ) from exc
            if not item.description.strip():
                raise self._fail(f"Suggested item '{item.name}' has an empty description.", raw)
            if item.name in seen:
                raise self._fail(f"Duplicate suggested item name '{item.name}'.", raw)
            seen.add(item.name)
            items.append(item)

        logger.info(f"Parsed {len(items)} suggested item(s)")
        return items

    def parse_design_turn(self, raw: Optional[str]) -> DesignSummary:
        """Parse the design-turn output: summary plus fully specified items."""
        data = self._load_json(raw)
        if not isinstance(data, dict):
            raise self._fail("Expected a JSON object with 'summary' and 'suggestedItems'.", raw)
        if not isinstance(data.get("suggestedItems"), list):
            raise self._fail("'suggestedItems' must be an array.", raw)
        try:
            summary = DesignSummary.model_validate(data)
        except ValidationError as exc:
            raise self._fail(
                f"Design summary does not match the expected shape: {self._describe(exc)}",
                raw,
            ) from exc
        if not summary.summary.strip():
            raise self._fail("Design summary is empty.", raw)
        return summary

    def extract_image(self, response: ModelResponse) -> GeneratedImage:
        """Return the first image of a generation response."""
        if not response.images:
            raise self._fail("no image produced", response.text)
        if len(response.images) > 1:
            logger.info(f"Model returned {len(response.images)} images, using the first")
        return GeneratedImage(image=response.images[0])

    @staticmethod
    def _describe(exc: ValidationError) -> str:
        """Compact one-line description of the first validation problem."""
        first = exc.errors()[0]
        location = ".".join(str(p) for p in first.get("loc", ()))
        return f"{location}: {first.get('msg', 'invalid value')}"
