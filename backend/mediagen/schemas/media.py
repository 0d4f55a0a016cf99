"""Pydantic v2 schemas for media passed to and returned from the generation APIs."""

from __future__ import annotations

import base64
import binascii
import mimetypes
from io import BytesIO
from typing import Literal
from urllib.parse import urlparse

from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field

from mediagen.errors import SubmissionError

ImageAspectRatio = Literal["1:1", "3:4", "4:3", "16:9", "9:16"]
VideoAspectRatio = Literal["16:9", "9:16"]

DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


def image_size(data: bytes) -> tuple[int, int] | None:
    """Pixel dimensions read from the image header, or None if unreadable."""
    try:
        with Image.open(BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError):
        return None


class ReferenceImage(BaseModel):
    """An image supplied by the user, kept as raw bytes plus MIME type."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    width: int | None = None
    height: int | None = None

    @classmethod
    def from_data_url(
        cls,
        data_url: str | None,
        width: int | None = None,
        height: int | None = None,
    ) -> "ReferenceImage":
        """Parse a ``data:<mime>;base64,<payload>`` URL.

        Raises SubmissionError when the URL is absent, has no MIME prefix,
        or the payload is empty or not valid base64.
        """
        if not data_url:
            raise SubmissionError("No image data provided.", reason="invalid_image")

        head, sep, payload = data_url.partition(";base64,")
        mime_type = head.removeprefix("data:").strip()
        if not sep or not payload or not mime_type:
            raise SubmissionError(
                "Invalid image data. Could not extract base64 content.",
                reason="invalid_image",
            )

        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise SubmissionError(
                f"Invalid image data. Payload is not base64: {e}",
                reason="invalid_image",
            ) from e

        if width is None or height is None:
            width, height = image_size(data) or (width, height)
        return cls(data=data, mime_type=mime_type, width=width, height=height)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    def inline_part(self) -> dict:
        """Gemini ``inlineData`` content part for this image."""
        return {"inlineData": {"mimeType": self.mime_type, "data": self.to_base64()}}


class GenerationRequest(BaseModel):
    """Immutable video generation request: prompt, source image, aspect ratio."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    image: ReferenceImage | None = None
    aspect_ratio: VideoAspectRatio = "16:9"


class GeneratedImage(BaseModel):
    """One image returned by a generation call."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = "image/jpeg"
    alt: str = ""
    width: int | None = None
    height: int | None = None

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    def as_reference(self) -> ReferenceImage:
        """Reuse this image as input for a follow-up edit or video job."""
        width, height = self.width, self.height
        if width is None or height is None:
            width, height = image_size(self.data) or (width, height)
        return ReferenceImage(data=self.data, mime_type=self.mime_type, width=width, height=height)


class Artifact(BaseModel):
    """Final media bytes downloaded from a finished job. Owned by the caller."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str = DEFAULT_VIDEO_MIME_TYPE
    uri: str | None = Field(default=None, description="Where the bytes were fetched from")


def infer_mime_type(uri: str, content_type: str | None = None) -> str:
    """Pick a MIME type for a downloaded artifact.

    Prefers a specific ``Content-Type`` header, then the URI's extension,
    then ``video/mp4``.
    """
    if content_type:
        media_type = content_type.split(";", 1)[0].strip().lower()
        if media_type and media_type != "application/octet-stream":
            return media_type

    guessed, _ = mimetypes.guess_type(urlparse(uri).path)
    return guessed or DEFAULT_VIDEO_MIME_TYPE
