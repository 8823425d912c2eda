"""
Defines the job descriptor parsed from a queue message and the models that
describe how a single run of that job ended.
"""
import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..config.common import JOB_ID_PATTERN, OUTPUT_OBJECT_NAME
from .exceptions import JobError, MalformedJobError

_JOB_ID_RE = re.compile(JOB_ID_PATTERN)

# The visual asset field was renamed between producer generations; "media"
# is the current name, "image" the older one.
_VISUAL_FIELDS = ("media", "image")


@dataclass(frozen=True)
class JobDescriptor:
    """
    One request to compose a visual asset and an audio track into a video.

    Attributes:
        id: Unique job id, also used as the workspace name and output key prefix.
        bucket: Bucket holding both inputs and receiving the output.
        visual_asset_key: Object key of the image or video clip.
        audio_key: Object key of the audio track.
    """

    id: str
    bucket: str
    visual_asset_key: str
    audio_key: str

    def __post_init__(self):
        for name in ("id", "bucket", "visual_asset_key", "audio_key"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise MalformedJobError(f"Job field '{name}' must be a non-empty string")
        if not _JOB_ID_RE.fullmatch(self.id) or self.id in (".", ".."):
            raise MalformedJobError(f"Job id {self.id!r} is not filesystem-safe")

    @classmethod
    def from_message(cls, body: Union[bytes, str]) -> "JobDescriptor":
        """
        Deserialises a queue message body.

        Expected shape: `{"uuid": ..., "media" | "image": ..., "audio": ...,
        "bucket": ...}`.

        Raises:
            MalformedJobError: For anything that is not a complete, valid job.
        """
        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError) as e:
            raise MalformedJobError(f"Job message is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise MalformedJobError("Job message must be a JSON object")

        visual = next((payload[f] for f in _VISUAL_FIELDS if payload.get(f)), None)
        return cls(
            id=payload.get("uuid"),
            bucket=payload.get("bucket"),
            visual_asset_key=visual,
            audio_key=payload.get("audio"),
        )

    @property
    def output_key(self) -> str:
        return f"{self.id}/{OUTPUT_OBJECT_NAME}"


class JobState(str, Enum):
    CREATED = "created"
    FETCHING_INPUTS = "fetching_inputs"
    PROBING = "probing"
    PLANNING = "planning"
    ENCODING = "encoding"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class JobOutcome:
    """How one processor run ended. `error` is set exactly when `state` is FAILED."""

    job_id: str
    state: JobState
    elapsed: float
    resolution: Optional[str] = None
    output_key: Optional[str] = None
    error: Optional[JobError] = None

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.DONE

    def as_log_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"state": self.state.value, "elapsed": round(self.elapsed, 3)}
        if self.error is not None:
            fields.update(error_type=self.error.kind.value, operation=self.error.operation)
        if self.resolution:
            fields["resolution"] = self.resolution
        return fields
