"""Image generation service: text-to-image, image+text, and in-place object edits.

Text-only prompts go to Imagen, which returns several images per call.
Prompts with a reference photo go to the Gemini image model, which has no
candidate count, so one call is made per requested image.
"""

from __future__ import annotations

import logging
from typing import get_args

from mediagen.config import get_settings
from mediagen.errors import NoImagesGeneratedError, SubmissionError
from mediagen.schemas.media import GeneratedImage, ImageAspectRatio, ReferenceImage
from mediagen.services.providers.gemini_image import GeminiImageClient

logger = logging.getLogger(__name__)

ASPECT_RATIOS = get_args(ImageAspectRatio)
MAX_IMAGES = 4


def preserve_ratio_prompt(prompt: str, width: int | None = None, height: int | None = None) -> str:
    """Append the keep-aspect-ratio instruction used for every image edit."""
    if width and height:
        return (
            f"{prompt}. Preserve the original aspect ratio of the image ({width}x{height}). "
            "Do not crop the image."
        )
    return f"{prompt}. Preserve the original aspect ratio of the image. Do not crop the image."


def _require_prompt(prompt: str) -> str:
    prompt = (prompt or "").strip()
    if not prompt:
        raise SubmissionError("A prompt is required.", reason="invalid_prompt")
    return prompt


def _require_count(number_of_images: int) -> None:
    if not 1 <= number_of_images <= MAX_IMAGES:
        raise SubmissionError(
            f"Number of images must be between 1 and {MAX_IMAGES}.",
            reason="invalid_parameters",
        )


class ImageGenService:
    """Image generation on top of ``GeminiImageClient``."""

    def __init__(self, client: GeminiImageClient | None = None) -> None:
        self._client = client

    @property
    def client(self) -> GeminiImageClient:
        if self._client is None:
            settings = get_settings()
            self._client = GeminiImageClient(
                api_key=settings.GEMINI_API_KEY,
                imagen_model=settings.IMAGE_MODEL,
                edit_model=settings.IMAGE_EDIT_MODEL,
                base_url=settings.GEMINI_BASE_URL,
                timeout=settings.HTTP_TIMEOUT,
            )
        return self._client

    async def generate_from_text(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
        number_of_images: int = 1,
    ) -> list[GeneratedImage]:
        prompt = _require_prompt(prompt)
        _require_count(number_of_images)
        if aspect_ratio not in ASPECT_RATIOS:
            raise SubmissionError(
                f"Unsupported aspect ratio: {aspect_ratio}", reason="invalid_parameters"
            )

        images = await self.client.generate_images(
            prompt, aspect_ratio=aspect_ratio, number_of_images=number_of_images,
        )
        if not images:
            raise NoImagesGeneratedError(
                "No images were generated. Please try a different prompt or settings."
            )
        logger.info("image_gen: %d/%d images from text", len(images), number_of_images)
        return images

    async def generate_from_image_and_text(
        self,
        prompt: str,
        reference: ReferenceImage,
        number_of_images: int = 1,
    ) -> list[GeneratedImage]:
        prompt = _require_prompt(prompt)
        _require_count(number_of_images)

        text_part = {"text": preserve_ratio_prompt(prompt, reference.width, reference.height)}
        images: list[GeneratedImage] = []
        for i in range(number_of_images):
            image = await self.client.generate_content([reference.inline_part(), text_part])
            if image is None:
                logger.warning("image_gen: call %d returned no image part", i + 1)
                continue
            images.append(image.model_copy(update={"alt": f"{prompt} - Edited Image {i + 1}"}))

        if not images:
            raise NoImagesGeneratedError(
                "No images were generated from the reference photo. "
                "Please try a different prompt or image."
            )
        logger.info("image_gen: %d/%d images from reference", len(images), number_of_images)
        return images

    async def add_object(
        self,
        target: ReferenceImage,
        prompt: str,
        object_image: ReferenceImage | None = None,
    ) -> GeneratedImage | None:
        """Edit ``target`` in place; ``object_image`` is an optional second input."""
        prompt = _require_prompt(prompt)

        parts = [target.inline_part()]
        if object_image is not None:
            parts.append(object_image.inline_part())
        parts.append({"text": preserve_ratio_prompt(prompt, target.width, target.height)})

        return await self.client.generate_content(parts)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
