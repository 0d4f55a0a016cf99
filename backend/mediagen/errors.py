"""Error taxonomy for image and video generation.

Every error raised to callers derives from ``GenerationError`` so the session
layer can render a single user-visible message and restore its controls.
``ApiError`` is the structured failure raised by the provider clients; the job
poller wraps it into the phase-specific errors below.
"""

from __future__ import annotations

QUOTA_EXCEEDED_REASON = "RESOURCE_EXHAUSTED"


class GenerationError(Exception):
    """Base class for all generation failures."""


class ApiError(GenerationError):
    """Non-success response from the remote API.

    Carries the HTTP status and the Google error ``status`` string (for
    example ``RESOURCE_EXHAUSTED`` or ``PERMISSION_DENIED``) as ``reason``.
    """

    def __init__(self, message: str, *, status_code: int | None = None, reason: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason

    @property
    def is_quota_exceeded(self) -> bool:
        return self.reason == QUOTA_EXCEEDED_REASON or self.status_code == 429


class SubmissionError(GenerationError):
    """Request was malformed or the service rejected it."""

    def __init__(self, message: str, *, reason: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.status_code = status_code

    @property
    def is_quota_exceeded(self) -> bool:
        return self.reason == QUOTA_EXCEEDED_REASON or self.status_code == 429

    @classmethod
    def from_api_error(cls, err: ApiError) -> "SubmissionError":
        return cls(err.message, reason=err.reason, status_code=err.status_code)


class PollError(GenerationError):
    """Status check failed (network or API error). Not retried."""


class JobFailedError(GenerationError):
    """The service reported a terminal failure for the job."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DownloadError(GenerationError):
    """Fetching the artifact failed after the job succeeded."""


class JobCancelledError(GenerationError):
    """The caller abandoned the job before it reached a terminal status."""


class JobTimeoutError(GenerationError):
    """The job did not reach a terminal status within the polling cap."""


class NoImagesGeneratedError(GenerationError):
    """The model answered but returned no usable image."""


class ActionInProgressError(GenerationError):
    """A second invocation of an action was attempted while one is in flight."""

    def __init__(self, action: str):
        super().__init__(f"'{action}' is already in progress")
        self.action = action
