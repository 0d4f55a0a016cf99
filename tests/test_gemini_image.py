"""Tests for the Imagen / Gemini image REST client."""

from __future__ import annotations

import base64
import json

import httpx
import pytest

from mediagen.errors import ApiError
from mediagen.services.providers.gemini_image import GeminiImageClient

API_KEY = "test-key-0123456789abcdef"


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _client(handler) -> GeminiImageClient:
    return GeminiImageClient(
        api_key=API_KEY,
        imagen_model="imagen-3.0-generate-002",
        edit_model="gemini-2.5-flash-image-preview",
        base_url="https://api.test/v1beta",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


async def test_generate_images_parses_predictions():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"predictions": [
            {"bytesBase64Encoded": _b64(b"one"), "mimeType": "image/jpeg"},
            {"raiFilteredReason": "filtered"},
            {"bytesBase64Encoded": _b64(b"three")},
        ]})

    images = await _client(handler).generate_images("a fox", aspect_ratio="16:9", number_of_images=3)

    assert [img.data for img in images] == [b"one", b"three"]
    assert images[0].alt == "a fox - Image 1"
    assert images[1].alt == "a fox - Image 3"
    assert images[1].mime_type == "image/jpeg"

    body = json.loads(captured[0].content)
    assert captured[0].url.path == "/v1beta/models/imagen-3.0-generate-002:predict"
    assert body["instances"] == [{"prompt": "a fox"}]
    assert body["parameters"]["sampleCount"] == 3
    assert body["parameters"]["aspectRatio"] == "16:9"


async def test_generate_images_empty_response():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    assert await _client(handler).generate_images("a fox") == []


async def test_generate_content_returns_first_inline_image():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [
            {"text": "Here is your image"},
            {"inlineData": {"mimeType": "image/png", "data": _b64(b"edited")}},
        ]}}]})

    parts = [{"inlineData": {"mimeType": "image/png", "data": _b64(b"src")}}, {"text": "add a hat"}]
    image = await _client(handler).generate_content(parts)

    assert image is not None
    assert image.data == b"edited"
    assert image.mime_type == "image/png"

    body = json.loads(captured[0].content)
    assert captured[0].url.path == "/v1beta/models/gemini-2.5-flash-image-preview:generateContent"
    assert body["contents"][0]["parts"] == parts
    assert body["generationConfig"]["responseModalities"] == ["IMAGE", "TEXT"]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": [{"text": "I cannot do that"}]}}]},
    ],
)
async def test_generate_content_without_image(payload):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    assert await _client(handler).generate_content([{"text": "x"}]) is None


async def test_error_envelope_becomes_api_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {
            "code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED",
        }})

    with pytest.raises(ApiError) as exc_info:
        await _client(handler).generate_images("a fox")
    assert exc_info.value.is_quota_exceeded


async def test_non_json_error_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad Gateway</html>")

    with pytest.raises(ApiError) as exc_info:
        await _client(handler).generate_images("a fox")
    assert exc_info.value.status_code == 502
    assert exc_info.value.reason is None
