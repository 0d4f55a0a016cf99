"""Gemini image generation provider.

Two synchronous endpoints:
- Imagen ``:predict`` for text-to-image (supports sampleCount / aspectRatio)
- Gemini ``:generateContent`` with IMAGE modality for image+text edits
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from mediagen.errors import ApiError
from mediagen.schemas.media import GeneratedImage
from mediagen.services.providers.common import mask_key, raise_for_api_error

logger = logging.getLogger(__name__)

_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"


class GeminiImageClient:
    """Async REST client for Imagen and Gemini image models."""

    def __init__(
        self,
        *,
        api_key: str,
        imagen_model: str,
        edit_model: str,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 180.0,
    ) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")
        self.imagen_model = imagen_model
        self.edit_model = edit_model
        self.endpoint = (base_url or _DEFAULT_ENDPOINT).rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._client = http_client
        self._own_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._own_client = True
        return self._client

    async def aclose(self) -> None:
        if self._own_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        resp = await self._get_client().post(url, params={"key": self._api_key}, json=body)
        raise_for_api_error(resp)
        return resp.json()

    async def generate_images(
        self,
        prompt: str,
        *,
        aspect_ratio: str = "1:1",
        number_of_images: int = 1,
        output_mime_type: str = "image/jpeg",
    ) -> list[GeneratedImage]:
        """Text-to-image via Imagen. Returns one entry per image with bytes."""
        url = f"{self.endpoint}/models/{self.imagen_model}:predict"
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": number_of_images,
                "aspectRatio": aspect_ratio,
                "outputOptions": {"mimeType": output_mime_type},
                "includeRaiReason": True,
            },
        }

        logger.info(
            "Imagen request: model=%s n=%d ratio=%s key=%s",
            self.imagen_model, number_of_images, aspect_ratio, mask_key(self._api_key),
        )
        result = await self._post(url, body)

        images: list[GeneratedImage] = []
        for i, prediction in enumerate(result.get("predictions") or []):
            b64 = prediction.get("bytesBase64Encoded")
            if not b64:
                if prediction.get("raiFilteredReason"):
                    logger.warning("Imagen image %d filtered: %s", i + 1, prediction["raiFilteredReason"])
                continue
            images.append(GeneratedImage(
                data=_decode(b64),
                mime_type=prediction.get("mimeType") or output_mime_type,
                alt=f"{prompt} - Image {i + 1}",
            ))
        return images

    async def generate_content(self, parts: list[dict[str, Any]]) -> GeneratedImage | None:
        """Image+text generation. Returns the first inline image, or None."""
        url = f"{self.endpoint}/models/{self.edit_model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
        }
        result = await self._post(url, body)
        return _extract_inline_image(result)


def _decode(b64: str) -> bytes:
    try:
        return base64.b64decode(b64)
    except ValueError as e:
        raise ApiError(f"Malformed image payload in response: {e}") from e


def _extract_inline_image(response: dict[str, Any]) -> GeneratedImage | None:
    """First inline image part of the first candidate."""
    candidates = response.get("candidates") or []
    if not candidates:
        return None

    for part in (candidates[0].get("content") or {}).get("parts") or []:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            return GeneratedImage(data=_decode(inline["data"]), mime_type=mime_type)
    return None
