"""Single boundary to the hosted Gemini models."""

import os
import base64
from typing import Any, Callable, List, Optional

from google import genai
from google.genai import types
from termcolor import colored

from forma.config.settings import Settings, get_settings
from forma.handlers.error_handler import ConfigurationError, MapExceptions
from forma.models.design import ImageItem
from forma.models.gateway import ModelRequest, ModelResponse
from forma.services.gateway_service.response_schemas import (
    DESIGN_TURN_SCHEMA,
    SUGGESTION_SCHEMA,
)
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)

CredentialProvider = Callable[[], Optional[str]]
ClientFactory = Callable[[str], Any]


class ModelGateway:
    """Send one request to Gemini and return its raw text or images.

    One outbound call per ``send``: no retry, no caching, transport default
    timeouts. The credential is looked up on every call through
    ``credential_provider`` and a fresh client is built with
    ``client_factory``, so a rotated key takes effect immediately and tests
    can inject both.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        credential_provider: Optional[CredentialProvider] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        self.settings = settings or get_settings()
        self.credential_provider = credential_provider or self._read_env_credential
        self.client_factory = client_factory or self._make_genai_client
        self.map_exception = MapExceptions()

    def _read_env_credential(self) -> Optional[str]:
        """Read the API key from the environment at call time."""
        return os.getenv(self.settings.credential_env_var)

    @staticmethod
    def _make_genai_client(api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    def make_client(self) -> Any:
        """Create a configured Gemini client, failing fast without a credential."""
        api_key = self.credential_provider()
        if not api_key:
            raise ConfigurationError(
                f"{self.settings.credential_env_var} environment variable is not set. "
                "Please provide a valid API key.",
                details={"env_var": self.settings.credential_env_var},
            )
        return self.client_factory(api_key)

    def _to_contents(self, request: ModelRequest) -> List[types.Part]:
        """Translate ordered content parts into SDK parts."""
        contents = []
        for part in request.parts:
            if part.inline_image is not None:
                contents.append(
                    types.Part.from_bytes(
                        data=base64.b64decode(part.inline_image.data_b64),
                        mime_type=part.inline_image.mime_type,
                    )
                )
            else:
                contents.append(types.Part.from_text(text=part.text))
        return contents

    def _to_config(self, request: ModelRequest) -> types.GenerateContentConfig:
        """Build the generation config for a JSON or image request."""
        if request.response_format == "image":
            return types.GenerateContentConfig(
                response_modalities=["IMAGE"],
                temperature=request.temperature,
            )

        thinking = None
        if request.thinking_budget is not None:
            thinking = types.ThinkingConfig(thinking_budget=request.thinking_budget)
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=request.response_schema,
            max_output_tokens=request.max_output_tokens,
            temperature=request.temperature,
            thinking_config=thinking,
        )

    async def send(self, request: ModelRequest) -> ModelResponse:
        """Issue the request and return the unvalidated response."""
        client = self.make_client()
        logger.info(
            f"Calling {colored(request.model, 'cyan')} "
            f"({request.response_format}, image={request.has_image})"
        )
        try:
            resp = await client.aio.models.generate_content(
                model=request.model,
                contents=self._to_contents(request),
                config=self._to_config(request),
            )
            return self._to_model_response(resp)
        except Exception as e:
            raise self.map_exception.map_gemini_exception(e)

    def _to_model_response(self, resp: Any) -> ModelResponse:
        """Collect text and inline images from the first candidate, in order."""
        texts: List[str] = []
        images: List[ImageItem] = []

        candidates = getattr(resp, "candidates", None) or []
        if candidates:
            content = getattr(candidates[0], "content", None)
            for part in getattr(content, "parts", None) or []:
                if getattr(part, "thought", False):
                    continue
                image = self.read_image_part(part)
                if image is not None:
                    images.append(image)
                elif getattr(part, "text", None):
                    texts.append(part.text)

        text = "".join(texts) if texts else None
        logger.debug(f"Model returned {len(images)} image part(s), text={text!r}")
        return ModelResponse(text=text, images=images)

    @staticmethod
    def read_image_part(part: Any) -> Optional[ImageItem]:
        """
        Return the encoded image carried inline by ``part``, if any.

        File-URI parts are not downloaded: fetching them would be a second
        outbound call for one ``send``. They are logged and skipped, so the
        response reads as carrying no image.
        """
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            data = inline.data
            if isinstance(data, str):
                # already base64 on some transports
                return ImageItem(mime_type=inline.mime_type or "image/png", data_b64=data)
            return ImageItem(
                mime_type=inline.mime_type or "image/png",
                data_b64=base64.b64encode(data).decode("utf-8"),
            )
        file_data = getattr(part, "file_data", None)
        if file_data is not None and getattr(file_data, "file_uri", None):
            logger.warning(
                f"Skipping file-URI image part ({file_data.mime_type or 'unknown type'}); "
                "only inline image data is accepted"
            )
        return None

    async def request_suggestions(self, prompt: str, image: Optional[ImageItem] = None) -> str:
        """Schema-constrained call returning the raw suggestion JSON text."""
        max_tokens = self.settings.suggestion_max_tokens
        request = ModelRequest.build(
            model=self.settings.text_model,
            prompt=prompt,
            response_format="json",
            image=image,
            response_schema=SUGGESTION_SCHEMA,
            max_output_tokens=max_tokens,
            # reserve half of the budget for the visible answer
            thinking_budget=max_tokens // 2,
            temperature=self.settings.suggestion_temperature,
        )
        response = await self.send(request)
        return response.text or ""

    async def request_summary(self, prompt: str, image: Optional[ImageItem] = None) -> str:
        """Schema-constrained call returning the raw design-turn JSON text."""
        max_tokens = self.settings.summary_max_tokens
        request = ModelRequest.build(
            model=self.settings.text_model,
            prompt=prompt,
            response_format="json",
            image=image,
            response_schema=DESIGN_TURN_SCHEMA,
            max_output_tokens=max_tokens,
            thinking_budget=max_tokens // 2,
            temperature=self.settings.summary_temperature,
        )
        response = await self.send(request)
        return response.text or ""

    async def request_image(self, prompt: str, image: Optional[ImageItem] = None) -> ModelResponse:
        """Image-output call; the caller picks the image out of the response."""
        request = ModelRequest.build(
            model=self.settings.image_model,
            prompt=prompt,
            response_format="image",
            image=image,
            temperature=self.settings.image_temperature,
        )
        return await self.send(request)
