"""Studio session: explicit UI state plus the action handlers that use it.

The session holds what a front-end would otherwise keep as globals: the
reference photo, the gallery, the image being edited, and the video source.
Handlers receive the session as their first argument.

Each action may run only once at a time. A second concurrent call raises
ActionInProgressError; the action is released on every outcome so the
caller can re-enable its control.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator

from mediagen.errors import (
    ActionInProgressError,
    ApiError,
    GenerationError,
    SubmissionError,
)
from mediagen.schemas.media import Artifact, GeneratedImage, ReferenceImage
from mediagen.services.image_gen import ImageGenService
from mediagen.services.job_poller import Pending, ProgressCallback
from mediagen.services.video_gen import VideoGenService

logger = logging.getLogger(__name__)

GENERATE = "generate"
ADD_OBJECT = "add_object"
CREATE_VIDEO = "create_video"

QUOTA_MESSAGE = "API quota exceeded. Please check your plan and billing details."
GENERIC_MESSAGE = "An error occurred. Check the logs for details."


@dataclass
class StudioSession:
    images: ImageGenService = field(default_factory=ImageGenService)
    videos: VideoGenService = field(default_factory=VideoGenService)

    reference_image: ReferenceImage | None = None
    gallery: list[GeneratedImage] = field(default_factory=list)

    # add-object modal
    edit_index: int | None = None
    edit_object_image: ReferenceImage | None = None

    # create-video modal
    video_source: ReferenceImage | None = None
    last_video: Artifact | None = None

    in_flight: set[str] = field(default_factory=set)

    @property
    def aspect_ratio_locked(self) -> bool:
        """The aspect ratio choice is ignored while a reference photo is set."""
        return self.reference_image is not None

    def is_busy(self, action: str) -> bool:
        return action in self.in_flight

    async def aclose(self) -> None:
        await self.images.aclose()
        await self.videos.aclose()


@asynccontextmanager
async def _exclusive(session: StudioSession, action: str) -> AsyncIterator[None]:
    if action in session.in_flight:
        raise ActionInProgressError(action)
    session.in_flight.add(action)
    try:
        yield
    finally:
        session.in_flight.discard(action)


# -------------------- reference photo --------------------

def set_reference_image(session: StudioSession, image: ReferenceImage) -> None:
    session.reference_image = image


def clear_reference_image(session: StudioSession) -> None:
    session.reference_image = None


# -------------------- gallery generation --------------------

async def generate(
    session: StudioSession,
    prompt: str,
    aspect_ratio: str = "1:1",
    number_of_images: int = 1,
) -> list[GeneratedImage]:
    """Fill the gallery from the prompt, using the reference photo if one is set."""
    async with _exclusive(session, GENERATE):
        if session.reference_image is not None:
            images = await session.images.generate_from_image_and_text(
                prompt, session.reference_image, number_of_images,
            )
        else:
            images = await session.images.generate_from_text(
                prompt, aspect_ratio, number_of_images,
            )
        session.gallery = list(images)
        return images


# -------------------- add object modal --------------------

def open_add_object(session: StudioSession, index: int) -> None:
    if not 0 <= index < len(session.gallery):
        raise IndexError(f"No gallery image at position {index}")
    session.edit_index = index
    session.edit_object_image = None


def set_object_image(session: StudioSession, image: ReferenceImage | None) -> None:
    session.edit_object_image = image


def close_add_object(session: StudioSession) -> None:
    session.edit_index = None
    session.edit_object_image = None


async def add_object(session: StudioSession, prompt: str) -> GeneratedImage | None:
    """Edit the targeted gallery image in place.

    Returns the replacement, or None when the model produced no image.
    If the gallery was replaced while the edit ran, the result is returned
    but not placed.
    The modal state is cleared on every outcome.
    """
    if session.edit_index is None:
        raise SubmissionError("No image selected for editing.", reason="no_target")
    if not (prompt or "").strip():
        raise SubmissionError("Please enter a prompt to add an object.", reason="invalid_prompt")

    async with _exclusive(session, ADD_OBJECT):
        index = session.edit_index
        try:
            target = session.gallery[index]
            edited = await session.images.add_object(
                target.as_reference(), prompt, session.edit_object_image,
            )
            if edited is None:
                logger.warning("add_object: model returned no image for gallery[%d]", index)
                return None
            edited = edited.model_copy(update={"alt": target.alt})
            if index < len(session.gallery) and session.gallery[index] is target:
                session.gallery[index] = edited
            else:
                logger.info("add_object: gallery changed during edit, result not placed")
            return edited
        finally:
            close_add_object(session)


# -------------------- create video modal --------------------

def open_video(session: StudioSession, index: int) -> None:
    if not 0 <= index < len(session.gallery):
        raise IndexError(f"No gallery image at position {index}")
    session.video_source = session.gallery[index].as_reference()


def close_video(session: StudioSession) -> None:
    session.video_source = None


async def create_video(
    session: StudioSession,
    prompt: str,
    aspect_ratio: str = "16:9",
    on_progress: ProgressCallback | None = None,
    cancel: asyncio.Event | None = None,
) -> Artifact:
    """Generate a video from the selected source image."""
    async with _exclusive(session, CREATE_VIDEO):
        artifact = await session.videos.generate_video(
            prompt,
            session.video_source,
            aspect_ratio=aspect_ratio,
            on_progress=on_progress,
            cancel=cancel,
        )
        session.last_video = artifact
        return artifact


# -------------------- messages --------------------

def progress_message(status: Pending) -> str:
    return (
        "Processing video... Please wait. This may take a few minutes. "
        f"({status.elapsed_seconds}s elapsed)"
    )


def friendly_error_message(exc: BaseException) -> str:
    """User-facing text for a failed action."""
    if isinstance(exc, (SubmissionError, ApiError)) and exc.is_quota_exceeded:
        return QUOTA_MESSAGE
    if isinstance(exc, GenerationError) and str(exc):
        return str(exc)
    return GENERIC_MESSAGE
