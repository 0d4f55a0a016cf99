"""Tests for media schemas: data URL parsing and MIME inference."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from conftest import PNG_BYTES
from mediagen.errors import SubmissionError
from mediagen.schemas.media import GeneratedImage, GenerationRequest, ReferenceImage, infer_mime_type


def test_from_data_url(png_data_url):
    image = ReferenceImage.from_data_url(png_data_url, width=1, height=1)

    assert image.data == PNG_BYTES
    assert image.mime_type == "image/png"
    assert image.to_data_url() == png_data_url


@pytest.mark.parametrize("data_url", [
    None,
    "",
    "data:image/png;base64,",
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAAB",
    ";base64,iVBORw0KGgo=",
    "data:image/png;base64,not*base64!",
])
def test_from_data_url_rejects_malformed(data_url):
    with pytest.raises(SubmissionError) as exc_info:
        ReferenceImage.from_data_url(data_url)
    assert exc_info.value.reason == "invalid_image"


def test_inline_part(png_image):
    part = png_image.inline_part()
    assert part["inlineData"]["mimeType"] == "image/png"
    assert part["inlineData"]["data"] == png_image.to_base64()


def test_request_is_immutable(png_image):
    request = GenerationRequest(prompt="a cat", image=png_image)
    with pytest.raises(ValidationError):
        request.prompt = "a dog"


def test_generated_image_as_reference():
    image = GeneratedImage(data=b"abc", mime_type="image/jpeg", alt="x")
    ref = image.as_reference()
    assert ref.data == b"abc"
    assert ref.mime_type == "image/jpeg"
    assert image.to_data_url() == "data:image/jpeg;base64,YWJj"
    assert (ref.width, ref.height) == (None, None)


def test_as_reference_reads_dimensions():
    ref = GeneratedImage(data=PNG_BYTES, mime_type="image/png").as_reference()
    assert (ref.width, ref.height) == (1, 1)


def test_as_reference_keeps_known_dimensions():
    ref = GeneratedImage(data=b"abc", width=640, height=480).as_reference()
    assert (ref.width, ref.height) == (640, 480)


def test_from_data_url_reads_dimensions(png_data_url):
    image = ReferenceImage.from_data_url(png_data_url)
    assert (image.width, image.height) == (1, 1)


@pytest.mark.parametrize("uri, content_type, expected", [
    ("https://x/a.mp4", None, "video/mp4"),
    ("https://x/a.mp4", "application/octet-stream", "video/mp4"),
    ("https://x/a.bin?alt=media", "video/webm; charset=binary", "video/webm"),
    ("https://x/files/abc:download?alt=media", None, "video/mp4"),
    ("https://x/clip.mov", "", "video/quicktime"),
])
def test_infer_mime_type(uri, content_type, expected):
    assert infer_mime_type(uri, content_type) == expected
