"""Tests for the Gemini gateway using an injected fake client."""

import asyncio
import base64
import json
from io import BytesIO
from types import SimpleNamespace

import httpx
import pytest
from PIL import Image
from google.genai import errors as genai_errors
from google.genai import types

from forma.handlers.error_handler import ConfigurationError, TransportError
from forma.models.gateway import ModelRequest
from forma.services.gateway_service.mock_gateway import MockModelGateway
from forma.services.gateway_service.model_gateway import ModelGateway
from forma.services.gateway_service.response_schemas import (
    DESIGN_TURN_SCHEMA,
    SUGGESTION_SCHEMA,
)


class FakeModels:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return self.response


class FakeClient:
    def __init__(self, models: FakeModels):
        self.aio = SimpleNamespace(models=models)


def _response(*parts):
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def _gateway(settings, models, credential="test-key"):
    return ModelGateway(
        settings=settings,
        credential_provider=lambda: credential,
        client_factory=lambda api_key: FakeClient(models),
    )


class TestSend:
    def test_missing_credential_fails_fast(self, settings):
        models = FakeModels(response=_response(types.Part(text="[]")))
        gateway = _gateway(settings, models, credential=None)

        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(gateway.request_suggestions("prompt"))

        assert settings.credential_env_var in exc_info.value.message
        assert models.calls == []

    def test_credential_is_read_on_every_call(self, settings):
        keys = iter(["key-1", "key-2"])
        seen = []
        models = FakeModels(response=_response(types.Part(text="[]")))
        gateway = ModelGateway(
            settings=settings,
            credential_provider=lambda: next(keys),
            client_factory=lambda api_key: seen.append(api_key) or FakeClient(models),
        )

        asyncio.run(gateway.request_suggestions("one"))
        asyncio.run(gateway.request_suggestions("two"))

        assert seen == ["key-1", "key-2"]

    def test_default_credential_comes_from_environment(self, settings, monkeypatch):
        monkeypatch.setenv(settings.credential_env_var, "env-key")
        seen = []
        models = FakeModels(response=_response(types.Part(text="[]")))
        gateway = ModelGateway(
            settings=settings,
            client_factory=lambda api_key: seen.append(api_key) or FakeClient(models),
        )

        asyncio.run(gateway.request_suggestions("prompt"))
        monkeypatch.setenv(settings.credential_env_var, "rotated-key")
        asyncio.run(gateway.request_suggestions("prompt"))

        assert seen == ["env-key", "rotated-key"]

    def test_sdk_errors_are_mapped(self, settings):
        error = genai_errors.ServerError(503, {"error": {"message": "overloaded", "status": "UNAVAILABLE"}})
        gateway = _gateway(settings, FakeModels(error=error))

        with pytest.raises(TransportError) as exc_info:
            asyncio.run(gateway.request_image("prompt"))

        assert exc_info.value.error_type == "api_error"
        assert "overloaded" in exc_info.value.details["upstream_message"]

    def test_transport_errors_are_mapped(self, settings):
        gateway = _gateway(settings, FakeModels(error=httpx.ConnectError("refused")))

        with pytest.raises(TransportError) as exc_info:
            asyncio.run(gateway.request_summary("prompt"))

        assert exc_info.value.error_type == "connection_error"


class TestRequests:
    def test_suggestion_request_shape(self, settings, make_image_item):
        models = FakeModels(response=_response(types.Part(text='[{"name": "Sofa"}]')))
        gateway = _gateway(settings, models)
        image = make_image_item("room")

        raw = asyncio.run(gateway.request_suggestions("suggest things", image))

        assert raw == '[{"name": "Sofa"}]'
        call = models.calls[0]
        assert call["model"] == settings.text_model
        # image part first, then the instruction text
        assert call["contents"][0].inline_data.data == b"room"
        assert call["contents"][0].inline_data.mime_type == "image/png"
        assert call["contents"][1].text == "suggest things"
        config = call["config"]
        assert config.response_mime_type == "application/json"
        assert config.response_schema == SUGGESTION_SCHEMA
        assert config.max_output_tokens == settings.suggestion_max_tokens
        assert config.temperature == settings.suggestion_temperature
        assert config.thinking_config.thinking_budget == settings.suggestion_max_tokens // 2

    def test_summary_request_uses_design_turn_schema(self, settings):
        models = FakeModels(response=_response(types.Part(text="{}")))
        gateway = _gateway(settings, models)

        asyncio.run(gateway.request_summary("describe"))

        call = models.calls[0]
        assert len(call["contents"]) == 1
        assert call["config"].response_schema == DESIGN_TURN_SCHEMA
        assert call["config"].max_output_tokens == settings.summary_max_tokens

    def test_image_request_asks_for_image_modality(self, settings):
        png = b"\x89PNG fake"
        models = FakeModels(
            response=_response(
                types.Part(text="Here is your room."),
                types.Part.from_bytes(data=png, mime_type="image/png"),
            )
        )
        gateway = _gateway(settings, models)

        response = asyncio.run(gateway.request_image("render"))

        call = models.calls[0]
        assert call["model"] == settings.image_model
        assert call["config"].response_modalities == ["IMAGE"]
        assert call["config"].temperature == settings.image_temperature
        assert response.text == "Here is your room."
        assert len(response.images) == 1
        assert base64.b64decode(response.images[0].data_b64) == png

    def test_all_images_are_collected_in_order(self, settings):
        models = FakeModels(
            response=_response(
                types.Part.from_bytes(data=b"first", mime_type="image/png"),
                types.Part.from_bytes(data=b"second", mime_type="image/jpeg"),
            )
        )
        response = asyncio.run(_gateway(settings, models).request_image("render"))

        assert [base64.b64decode(i.data_b64) for i in response.images] == [b"first", b"second"]
        assert response.images[1].mime_type == "image/jpeg"

    def test_file_uri_parts_are_skipped_without_fetching(self, settings, monkeypatch):
        def no_network(*args, **kwargs):
            raise AssertionError("file URI must not be fetched")

        monkeypatch.setattr(httpx.Client, "send", no_network)
        monkeypatch.setattr(httpx.AsyncClient, "send", no_network)
        models = FakeModels(
            response=_response(
                types.Part(
                    file_data=types.FileData(
                        file_uri="https://files.example.com/room.png", mime_type="image/png"
                    )
                ),
                types.Part.from_bytes(data=b"inline", mime_type="image/png"),
            )
        )

        response = asyncio.run(_gateway(settings, models).request_image("render"))

        assert len(models.calls) == 1
        assert [base64.b64decode(i.data_b64) for i in response.images] == [b"inline"]

    def test_only_file_uri_parts_means_no_image(self, settings):
        models = FakeModels(
            response=_response(
                types.Part(file_data=types.FileData(file_uri="https://files.example.com/room.png"))
            )
        )

        response = asyncio.run(_gateway(settings, models).request_image("render"))

        assert response.images == []
        assert response.text is None

    def test_thought_parts_are_ignored(self, settings):
        models = FakeModels(
            response=_response(types.Part(text="thinking...", thought=True), types.Part(text="[]"))
        )

        assert asyncio.run(_gateway(settings, models).request_suggestions("p")) == "[]"

    def test_empty_candidates_give_empty_text(self, settings):
        models = FakeModels(response=types.GenerateContentResponse(candidates=[]))

        assert asyncio.run(_gateway(settings, models).request_suggestions("p")) == ""


def test_json_request_requires_schema():
    with pytest.raises(ValueError):
        ModelRequest.build(model="m", prompt="p", response_format="json")


class TestMockGateway:
    def test_suggestions_are_canned_json(self, settings):
        raw = asyncio.run(MockModelGateway(settings=settings).request_suggestions("p"))

        names = [item["name"] for item in json.loads(raw)]
        assert "Armchair" in names

    def test_summary_is_canned_json(self, settings):
        raw = asyncio.run(MockModelGateway(settings=settings).request_summary("p"))

        assert json.loads(raw)["summary"]

    def test_image_is_a_wide_placeholder(self, settings):
        response = asyncio.run(MockModelGateway(settings=settings).request_image("p"))

        image = Image.open(BytesIO(base64.b64decode(response.images[0].data_b64)))
        assert image.size == (1024, 576)
        assert response.images[0].mime_type == "image/png"
