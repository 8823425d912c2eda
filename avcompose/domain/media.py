"""
Media analysis: what kind of visual asset a job carries, how large it is and
how long it runs.

Still images are measured by decoding only their header with Pillow. Videos
and audio tracks are measured with `ffprobe`, called through the
ffmpeg-python `ffmpeg.probe` helper, which returns the parsed JSON report of
the container format and its streams.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import ffmpeg
from loguru import logger
from PIL import Image, UnidentifiedImageError

from ..config.video import FFPROBE_BIN, IMAGE_EXTENSIONS
from .exceptions import ProbeError


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaInfo:
    """
    Probed properties of the visual asset of a job.

    Attributes:
        kind: IMAGE or VIDEO.
        width: Width of the image, or of the first video stream, in pixels.
        height: Height in pixels.
        duration: Container duration in seconds; always 0.0 for images.
        has_audio: Whether the container carries at least one audio stream.
    """

    kind: MediaKind
    width: int
    height: int
    duration: float = 0.0
    has_audio: bool = False


def parse_duration(value: Any) -> float:
    """
    Parses the `format.duration` field of an ffprobe report.

    ffprobe prints the duration as a decimal string (e.g. "12.345000"). A
    missing or unparsable value is not an error here; it yields 0.0 and the
    caller decides whether an unknown duration is acceptable.
    """
    if value is None:
        return 0.0
    try:
        duration = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Could not parse duration value: {value!r}")
        return 0.0
    # float() accepts "nan" and "inf", neither of which is a usable duration.
    if duration != duration or duration in (float("inf"), float("-inf")) or duration < 0:
        logger.warning(f"Ignoring invalid duration value: {value!r}")
        return 0.0
    return duration


def is_image(path: Path) -> bool:
    return path.suffix.lower() in IMAGE_EXTENSIONS


class MediaProber:
    """
    Extracts `MediaInfo` and audio durations from local files.

    Args:
        ffprobe_bin: The ffprobe executable, a name on PATH or an absolute path.
    """

    def __init__(self, ffprobe_bin: str = FFPROBE_BIN):
        self.ffprobe_bin = ffprobe_bin

    def probe_media(self, path: Path) -> MediaInfo:
        """Chooses the image or video variant by file extension."""
        if is_image(path):
            return self.probe_image(path)
        return self.probe_video(path)

    def probe_image(self, path: Path) -> MediaInfo:
        """
        Reads the pixel dimensions from the image header.

        `Image.open` is lazy: it parses the header and stops, the pixel data is
        only decoded on `load()`, which is never called here.

        Raises:
            ProbeError: If the file cannot be opened or its header is not a
                        recognised image format.
        """
        try:
            with Image.open(path) as img:
                width, height = img.size
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ProbeError(f"Cannot decode image header of {path.name}: {e}") from e

        if width <= 0 or height <= 0:
            raise ProbeError(f"Image {path.name} has invalid dimensions {width}x{height}")
        return MediaInfo(kind=MediaKind.IMAGE, width=width, height=height)

    def probe_video(self, path: Path) -> MediaInfo:
        """
        Reads dimensions, duration and audio presence with ffprobe.

        The first video stream provides the dimensions. The container duration
        is parsed leniently (see `parse_duration`).

        Raises:
            ProbeError: If ffprobe fails, its report has an unexpected shape, or
                        the file has no usable video stream.
        """
        report = self._run_probe(path)

        streams = report.get("streams", [])
        if not isinstance(streams, list):
            raise ProbeError(f"ffprobe report for {path.name} has no stream list")

        video_stream: Optional[Dict[str, Any]] = None
        has_audio = False
        for stream in streams:
            if not isinstance(stream, dict):
                raise ProbeError(f"ffprobe report for {path.name} has a malformed stream entry")
            codec_type = stream.get("codec_type")
            if codec_type == "video" and video_stream is None:
                video_stream = stream
            elif codec_type == "audio":
                has_audio = True

        if video_stream is None:
            raise ProbeError(f"No video stream found in {path.name}")

        try:
            width = int(video_stream.get("width", 0))
            height = int(video_stream.get("height", 0))
        except (TypeError, ValueError) as e:
            raise ProbeError(f"Video stream of {path.name} has malformed dimensions") from e
        if width <= 0 or height <= 0:
            raise ProbeError(f"Video stream of {path.name} has invalid dimensions {width}x{height}")

        info = MediaInfo(
            kind=MediaKind.VIDEO,
            width=width,
            height=height,
            duration=parse_duration(report["format"].get("duration")),
            has_audio=has_audio,
        )
        logger.debug(f"Probed {path.name}: {info}")
        return info

    def probe_audio_duration(self, path: Path) -> float:
        """Returns only the container duration of an audio file, 0.0 if unknown."""
        report = self._run_probe(path)
        return parse_duration(report["format"].get("duration"))

    def _run_probe(self, path: Path) -> Dict[str, Any]:
        """
        Runs ffprobe and checks the outer shape of its JSON report.

        Returns:
            The report, guaranteed to be a dict whose "format" entry is a dict.
        """
        try:
            report = ffmpeg.probe(str(path), cmd=self.ffprobe_bin, v="quiet")
        except ffmpeg.Error as e:
            stderr = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
            raise ProbeError(f"ffprobe failed for {path.name}: {stderr.strip() or e}") from e
        except ValueError as e:
            # json.JSONDecodeError is a ValueError.
            raise ProbeError(f"ffprobe output for {path.name} is not valid JSON: {e}") from e
        except OSError as e:
            raise ProbeError(f"Could not run {self.ffprobe_bin}: {e}") from e

        if not isinstance(report, dict):
            raise ProbeError(f"ffprobe output for {path.name} is not a JSON object")
        report.setdefault("format", {})
        if not isinstance(report["format"], dict):
            raise ProbeError(f"ffprobe report for {path.name} has a malformed format section")
        return report
