"""
Defines custom exception types for avcompose.

Low-level components (the media probe, the object store adapter, the job
message parser) raise narrow exceptions that describe *what* went wrong. The
processor converts them, at the point of failure, into a single `JobError`
that also records *which job* and *which operation* failed. The `JobError`
travels unchanged up to the dispatcher, which only logs it and feeds metrics.

All custom exceptions inherit from the base `AvComposeException`.
"""
from enum import Enum
from typing import Optional


class AvComposeException(Exception):
    """Base class for all custom exceptions in avcompose."""

    pass


class ConfigurationError(AvComposeException):
    """Raised when settings from the YAML file or the environment are invalid."""

    pass


class MalformedJobError(AvComposeException):
    """
    Raised when a queue message cannot be turned into a `JobDescriptor`.

    Covers bodies that are not JSON, JSON that is not an object, missing or
    empty fields, and job ids that are not safe to use as a directory name.
    Such messages are dropped by the dispatcher and never reach the processor.
    """

    pass


# --- Media Probe Specific Exceptions ---
class ProbeError(AvComposeException):
    """
    Raised when dimensions or duration cannot be extracted from a media file.

    This covers undecodable image headers, a failing ffprobe process, output
    that is not the expected JSON shape, and videos without a video stream.
    """

    pass


# --- Object Store Specific Exceptions ---
class StorageError(AvComposeException):
    """Raised when an object cannot be downloaded from or uploaded to the store."""

    pass


class ObjectNotFoundError(StorageError):
    """Raised when the requested bucket/key does not exist."""

    pass


# --- Job Failures ---
class ErrorKind(str, Enum):
    """The failure taxonomy used for logging and the `jobs_failed_total` metric."""

    SYSTEM = "system"  # Workspace creation or removal.
    STORAGE = "storage"  # Download or upload.
    PROBE = "probe"  # Media metadata extraction.
    ENCODE = "encode"  # The ffmpeg subprocess.


class JobError(AvComposeException):
    """
    A classified failure of one job.

    The kind is fixed when the error is created and is never reconstructed by
    inspecting the cause afterwards.

    Attributes:
        kind: The `ErrorKind` of the failure.
        job_id: The id of the job that failed.
        operation: The step that failed, e.g. "download_visual" or "encode_video".
        cause: The underlying exception, if any.
        output: Captured combined stdout/stderr of a failed subprocess.
    """

    def __init__(
        self,
        kind: ErrorKind,
        job_id: str,
        operation: str,
        cause: Optional[BaseException] = None,
        output: Optional[str] = None,
    ):
        self.kind = kind
        self.job_id = job_id
        self.operation = operation
        self.cause = cause
        self.output = output
        super().__init__(str(self))

    def __str__(self) -> str:
        message = f"[{self.kind.value}] job={self.job_id} op={self.operation}"
        if self.cause is not None:
            message += f": {self.cause}"
        return message
