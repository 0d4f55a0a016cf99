"""Video generation service: Veo image-to-video via the async job poller.

Builds the request (the aspect ratio is also spelled out in the prompt),
then hands it to ``AsyncJobPoller.run`` which submits, polls, and downloads.
"""

from __future__ import annotations

import asyncio
import logging
from typing import get_args

from mediagen.config import get_settings
from mediagen.errors import SubmissionError
from mediagen.schemas.media import (
    Artifact,
    GenerationRequest,
    ReferenceImage,
    VideoAspectRatio,
)
from mediagen.services.job_poller import AsyncJobPoller, ProgressCallback, VideoBackend
from mediagen.services.providers.gemini_video import GeminiVeoClient

logger = logging.getLogger(__name__)

VIDEO_ASPECT_RATIOS = get_args(VideoAspectRatio)


def build_video_prompt(prompt: str, aspect_ratio: str) -> str:
    return f"{prompt} Generate the video in a {aspect_ratio} aspect ratio."


class VideoGenService:
    """Wires a Veo backend to a fresh ``AsyncJobPoller`` per video.

    ``interval`` and ``timeout`` default to VIDEO_POLL_INTERVAL and
    VIDEO_POLL_TIMEOUT; a timeout of 0 disables the cap.
    """

    def __init__(
        self,
        backend: VideoBackend | None = None,
        *,
        interval: float | None = None,
        timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        self._backend = backend
        self.interval = interval if interval is not None else settings.VIDEO_POLL_INTERVAL
        self.timeout = (timeout if timeout is not None else settings.video_poll_timeout) or None
        self.poller: AsyncJobPoller | None = None

    @property
    def backend(self) -> VideoBackend:
        if self._backend is None:
            settings = get_settings()
            self._backend = GeminiVeoClient(
                api_key=settings.GEMINI_API_KEY,
                model=settings.VIDEO_MODEL,
                base_url=settings.GEMINI_BASE_URL,
                timeout=settings.HTTP_TIMEOUT,
                download_timeout=settings.DOWNLOAD_TIMEOUT,
            )
        return self._backend

    def new_poller(self) -> AsyncJobPoller:
        return AsyncJobPoller(self.backend, interval=self.interval, timeout=self.timeout)

    async def generate_video(
        self,
        prompt: str,
        image: ReferenceImage | None,
        aspect_ratio: str = "16:9",
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Artifact:
        """Generate one video from ``image`` and ``prompt``."""
        prompt = (prompt or "").strip()
        if not prompt:
            raise SubmissionError("A prompt is required.", reason="invalid_prompt")
        if aspect_ratio not in VIDEO_ASPECT_RATIOS:
            raise SubmissionError(
                f"Unsupported video aspect ratio: {aspect_ratio}", reason="invalid_parameters"
            )

        request = GenerationRequest(
            prompt=build_video_prompt(prompt, aspect_ratio),
            image=image,
            aspect_ratio=aspect_ratio,
        )
        self.poller = self.new_poller()
        return await self.poller.run(request, on_progress=on_progress, cancel=cancel)

    async def aclose(self) -> None:
        close = getattr(self._backend, "aclose", None)
        if close is not None:
            await close()
