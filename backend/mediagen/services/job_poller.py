"""Long-running job poller for asynchronous media generation.

Lifecycle of one remote job:
  IDLE --submit--> SUBMITTED --poll (not done)--> SUBMITTED
  SUBMITTED --poll (done, ok)--> SUCCEEDED --download--> COMPLETE
  SUBMITTED --poll (done, error)--> FAILED
  SUBMITTED --cancel--> CANCELLED

Polling uses a fixed interval with no backoff and no retries: network and
API failures propagate to the caller immediately.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, ClassVar, Protocol, Union

import httpx

from mediagen.errors import (
    ApiError,
    DownloadError,
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    PollError,
    SubmissionError,
)
from mediagen.schemas.media import Artifact, GenerationRequest

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


@dataclass(frozen=True)
class RemoteOperation:
    """Raw operation state as reported by the remote service."""
    done: bool
    error: str | None = None
    artifact_uri: str | None = None


@dataclass(frozen=True)
class JobHandle:
    """Opaque token for an in-flight job."""
    job_id: str
    submitted_at: float


@dataclass(frozen=True)
class Pending:
    elapsed_seconds: int
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class Succeeded:
    artifact_uri: str
    is_terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class Failed:
    message: str
    is_terminal: ClassVar[bool] = True


JobStatus = Union[Pending, Succeeded, Failed]

ProgressCallback = Callable[[Pending], Union[None, Awaitable[None]]]


class JobState(str, enum.Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    SUCCEEDED = "succeeded"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


class VideoBackend(Protocol):
    """Remote service contract consumed by the poller."""

    async def submit_job(self, request: GenerationRequest) -> str: ...

    async def get_job(self, job_id: str) -> RemoteOperation: ...

    async def download(self, uri: str) -> Artifact: ...


def validate_request(request: GenerationRequest) -> None:
    """Reject malformed requests before anything is sent."""
    if request.image is None or not request.image.data:
        raise SubmissionError(
            "Invalid image data. Could not extract base64 content.",
            reason="invalid_image",
        )
    if not request.image.mime_type:
        raise SubmissionError("Image MIME type is missing.", reason="invalid_image")
    if not request.prompt or not request.prompt.strip():
        raise SubmissionError("A prompt is required.", reason="invalid_prompt")


class AsyncJobPoller:
    """Submit a generation job, poll it to a terminal status, fetch the artifact.

    ``clock`` and ``sleep`` are injectable so tests can drive time without
    waiting. ``timeout`` caps the total wait in seconds; ``None`` disables it.
    """

    def __init__(
        self,
        backend: VideoBackend,
        *,
        interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        self.backend = backend
        self.interval = interval
        self.timeout = timeout
        self.state = JobState.IDLE
        self._clock = clock
        self._sleep = sleep
        self._finished: set[str] = set()
        self._last_elapsed: dict[str, int] = {}

    async def submit(self, request: GenerationRequest) -> JobHandle:
        """Send the request. Raises SubmissionError on bad input or rejection."""
        validate_request(request)

        try:
            job_id = await self.backend.submit_job(request)
        except ApiError as e:
            raise SubmissionError.from_api_error(e) from e
        except httpx.HTTPError as e:
            raise SubmissionError(f"Network error during submission: {e}", reason="network") from e

        handle = JobHandle(job_id=job_id, submitted_at=self._clock())
        self.state = JobState.SUBMITTED
        self._last_elapsed[job_id] = 0
        return handle

    async def poll(self, handle: JobHandle) -> JobStatus:
        """Perform one status check."""
        if handle.job_id in self._finished:
            raise RuntimeError(f"Job {handle.job_id} already reached a terminal state")

        try:
            op = await self.backend.get_job(handle.job_id)
        except (ApiError, httpx.HTTPError) as e:
            self._finish(handle)
            self.state = JobState.FAILED
            raise PollError(f"Status check failed for {handle.job_id}: {e}") from e

        if not op.done:
            return Pending(elapsed_seconds=self._elapsed(handle))

        self._finish(handle)
        if op.error or not op.artifact_uri:
            self.state = JobState.FAILED
            return Failed(message=op.error or "Unknown error")

        self.state = JobState.SUCCEEDED
        return Succeeded(artifact_uri=op.artifact_uri)

    async def run(
        self,
        request: GenerationRequest,
        on_progress: ProgressCallback | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Artifact:
        """Submit, poll until terminal, and return the downloaded artifact.

        ``on_progress`` receives ``Pending`` once per non-terminal poll.
        Setting ``cancel`` abandons the job with JobCancelledError.
        """
        handle = await self.submit(request)
        status = await self._wait_for_terminal(handle, on_progress, cancel)

        if isinstance(status, Failed):
            logger.error("Job %s failed: %s", handle.job_id, status.message)
            raise JobFailedError(status.message)

        try:
            artifact = await self.backend.download(status.artifact_uri)
        except (ApiError, httpx.HTTPError) as e:
            self.state = JobState.FAILED
            raise DownloadError(f"Failed to download video: {e}") from e

        self.state = JobState.COMPLETE
        logger.info(
            "Job %s complete (%d bytes, %s)",
            handle.job_id, len(artifact.data), artifact.mime_type,
        )
        return artifact

    async def _wait_for_terminal(
        self,
        handle: JobHandle,
        on_progress: ProgressCallback | None,
        cancel: asyncio.Event | None,
    ) -> JobStatus:
        while True:
            if cancel is not None and cancel.is_set():
                self._finish(handle)
                self.state = JobState.CANCELLED
                logger.info("Job %s cancelled by caller", handle.job_id)
                raise JobCancelledError(f"Job {handle.job_id} was cancelled")

            status = await self.poll(handle)
            if status.is_terminal:
                return status

            if self.timeout is not None and self._clock() - handle.submitted_at >= self.timeout:
                self._finish(handle)
                self.state = JobState.FAILED
                raise JobTimeoutError(
                    f"Job {handle.job_id} did not finish within {self.timeout:g}s"
                )

            logger.debug("Job %s pending (%ds elapsed)", handle.job_id, status.elapsed_seconds)
            if on_progress is not None:
                result = on_progress(status)
                if inspect.isawaitable(result):
                    await result

            await self._pause(cancel)

    async def _pause(self, cancel: asyncio.Event | None) -> None:
        """Wait one interval; a set ``cancel`` event ends the wait early."""
        if cancel is None:
            await self._sleep(self.interval)
            return

        sleeper = asyncio.ensure_future(self._sleep(self.interval))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not sleeper.done():
                sleeper.cancel()
        if sleeper.done() and not sleeper.cancelled():
            sleeper.result()

    def _elapsed(self, handle: JobHandle) -> int:
        elapsed = max(0, round(self._clock() - handle.submitted_at))
        elapsed = max(elapsed, self._last_elapsed.get(handle.job_id, 0))
        self._last_elapsed[handle.job_id] = elapsed
        return elapsed

    def _finish(self, handle: JobHandle) -> None:
        self._finished.add(handle.job_id)
        self._last_elapsed.pop(handle.job_id, None)
