"""Pytest configuration helpers.

Puts ``backend/`` on ``sys.path`` so tests can import the ``mediagen``
package without installing it, and provides shared fakes for the remote
video service and the clock.
"""
import base64
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
BACKEND = os.path.join(ROOT, "backend")
if BACKEND not in sys.path:
    sys.path.insert(0, BACKEND)

from mediagen.schemas.media import Artifact, ReferenceImage, infer_mime_type  # noqa: E402
from mediagen.services.job_poller import RemoteOperation  # noqa: E402

# 1x1 transparent PNG
PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is awaited."""

    def __init__(self, start: float = 100.0, step: float | None = None):
        self.now = start
        self.step = step
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += self.step if self.step is not None else seconds


class FakeVideoBackend:
    """Scripted remote service: returns ``operations`` in order, one per poll."""

    def __init__(
        self,
        operations=(),
        *,
        payload: bytes = b"\x00\x01",
        submit_error: Exception | None = None,
        poll_error: Exception | None = None,
        download_error: Exception | None = None,
    ):
        self.operations = list(operations)
        self.payload = payload
        self.submit_error = submit_error
        self.poll_error = poll_error
        self.download_error = download_error
        self.submitted = []
        self.polled: list[str] = []
        self.downloaded: list[str] = []

    async def submit_job(self, request) -> str:
        self.submitted.append(request)
        if self.submit_error is not None:
            raise self.submit_error
        return "models/veo-2.0-generate-001/operations/op-1"

    async def get_job(self, job_id: str) -> RemoteOperation:
        self.polled.append(job_id)
        if self.poll_error is not None:
            raise self.poll_error
        return self.operations.pop(0)

    async def download(self, uri: str) -> Artifact:
        self.downloaded.append(uri)
        if self.download_error is not None:
            raise self.download_error
        return Artifact(data=self.payload, mime_type=infer_mime_type(uri), uri=uri)


def pending() -> RemoteOperation:
    return RemoteOperation(done=False)


def succeeded(uri: str = "https://x/a.mp4") -> RemoteOperation:
    return RemoteOperation(done=True, artifact_uri=uri)


def failed(message: str) -> RemoteOperation:
    return RemoteOperation(done=True, error=message)


@pytest.fixture
def png_image() -> ReferenceImage:
    return ReferenceImage(data=PNG_BYTES, mime_type="image/png", width=1, height=1)


@pytest.fixture
def png_data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
