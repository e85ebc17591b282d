"""Gateway stand-in that answers from canned data instead of calling Gemini."""

import json
from typing import Optional

from PIL import Image, ImageDraw

from forma.config.mock import Mock
from forma.config.settings import Settings
from forma.models.gateway import ModelRequest, ModelResponse
from forma.services.gateway_service.model_gateway import ModelGateway
from forma.services.gateway_service.response_schemas import SUGGESTION_SCHEMA
from forma.utility.utils import Helper
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)


class MockModelGateway(ModelGateway):
    """Serve mock suggestions, summaries and a placeholder panorama.

    Shares the request building of ``ModelGateway`` so prompts and schemas
    are exercised exactly as in actual mode; only ``send`` is replaced.
    """

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(settings=settings, credential_provider=lambda: "mock")
        self.mock = Mock()
        self.helper = Helper()

    async def send(self, request: ModelRequest) -> ModelResponse:
        """Return canned output matching the requested format and schema."""
        logger.info(f"Mock mode: answering {request.response_format} request for {request.model}")
        if request.response_format == "image":
            return ModelResponse(images=[self._placeholder_panorama()])

        if request.response_schema == SUGGESTION_SCHEMA:
            return ModelResponse(text=json.dumps(self.mock.MOCK_SUGGESTIONS))
        return ModelResponse(text=json.dumps(self.mock.MOCK_SUMMARY))

    def _placeholder_panorama(self):
        """Render a wide vertical gradient with a horizon line."""
        width, height = self.mock.PANORAMA_SIZE
        top, bottom = self.mock.PANORAMA_COLORS
        img = Image.new("RGB", (width, height))
        draw = ImageDraw.Draw(img)
        for y in range(height):
            t = y / max(height - 1, 1)
            color = tuple(int(a + (b - a) * t) for a, b in zip(top, bottom))
            draw.line([(0, y), (width, y)], fill=color)
        draw.line([(0, height * 2 // 3), (width, height * 2 // 3)], fill=(90, 70, 50), width=3)
        return self.helper.from_pil(img, fmt="PNG")
