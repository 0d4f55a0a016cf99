"""Gemini Veo video generation provider.

Veo runs as a long-running operation:
  1. POST models/{model}:predictLongRunning -> operation name
  2. GET  {operation name}                  -> done / error / response
  3. GET  video URI (API key appended)      -> raw media bytes

This client performs single calls only; waiting between polls is the job
poller's responsibility.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from mediagen.errors import ApiError
from mediagen.schemas.media import Artifact, GenerationRequest, infer_mime_type
from mediagen.services.job_poller import RemoteOperation
from mediagen.services.providers.common import mask_key, raise_for_api_error

logger = logging.getLogger(__name__)

_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"

NO_DOWNLOAD_LINK_MESSAGE = "Video generation finished, but no download link was provided."


class GeminiVeoClient:
    """Thin async REST client for Veo image-to-video jobs."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
        download_timeout: float = 120.0,
    ) -> None:
        if not api_key:
            raise ValueError("Gemini API key is required")
        self.model = model
        self.endpoint = (base_url or _DEFAULT_ENDPOINT).rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._download_timeout = download_timeout
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

    async def __aenter__(self) -> "GeminiVeoClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def submit_job(self, request: GenerationRequest) -> str:
        """Start a video job and return its operation name."""
        instance: dict[str, Any] = {"prompt": request.prompt}
        if request.image is not None:
            instance["image"] = {
                "bytesBase64Encoded": request.image.to_base64(),
                "mimeType": request.image.mime_type,
            }

        body = {
            "instances": [instance],
            "parameters": {
                "aspectRatio": request.aspect_ratio,
                "sampleCount": 1,
            },
        }

        url = f"{self.endpoint}/models/{self.model}:predictLongRunning"
        logger.info("Creating Veo job (model=%s, key=%s)", self.model, mask_key(self._api_key))

        resp = await self._get_client().post(url, params={"key": self._api_key}, json=body)
        raise_for_api_error(resp)
        result = resp.json()

        operation_name = result.get("name")
        if not operation_name:
            raise ApiError(f"Veo job creation returned no operation name: {result}")

        logger.info("Veo job created: %s", operation_name)
        return operation_name

    async def get_job(self, job_id: str) -> RemoteOperation:
        """Fetch the current state of an operation."""
        url = f"{self.endpoint}/{job_id}"
        resp = await self._get_client().get(url, params={"key": self._api_key})
        raise_for_api_error(resp)
        return _parse_operation(resp.json())

    async def download(self, uri: str) -> Artifact:
        """Download the finished video, streaming it into memory."""
        buffer = bytearray()
        client = self._get_client()
        async with client.stream(
            "GET",
            uri,
            params={"key": self._api_key},
            follow_redirects=True,
            timeout=self._download_timeout,
        ) as resp:
            if not resp.is_success:
                await resp.aread()
                raise_for_api_error(resp)
            async for chunk in resp.aiter_bytes(chunk_size=8192):
                buffer.extend(chunk)
            content_type = resp.headers.get("content-type")

        logger.info("Downloaded %d bytes from %s", len(buffer), uri.split("?", 1)[0])
        return Artifact(
            data=bytes(buffer),
            mime_type=infer_mime_type(uri, content_type),
            uri=uri,
        )


def _parse_operation(data: dict[str, Any]) -> RemoteOperation:
    """Map an operation payload to ``RemoteOperation``."""
    if not data.get("done"):
        return RemoteOperation(done=False)

    error = data.get("error")
    if error:
        return RemoteOperation(done=True, error=error.get("message") or "Unknown error")

    uri = _extract_video_uri(data.get("response") or {})
    if not uri:
        filtered = (
            (data.get("response") or {})
            .get("generateVideoResponse", {})
            .get("raiMediaFilteredReasons")
        )
        if filtered:
            return RemoteOperation(done=True, error="; ".join(filtered))
        logger.error("Unexpected operation response: %s", data)
        return RemoteOperation(done=True, error=NO_DOWNLOAD_LINK_MESSAGE)

    return RemoteOperation(done=True, artifact_uri=uri)


def _extract_video_uri(response: dict[str, Any]) -> str | None:
    """Extract the first video URI from a finished operation's response."""
    samples = (
        response.get("generateVideoResponse", {}).get("generatedSamples")
        or response.get("generatedVideos")
        or []
    )
    for sample in samples:
        uri = (sample.get("video") or {}).get("uri")
        if uri:
            return uri
    return None
