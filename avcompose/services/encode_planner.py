"""
Builds the ffmpeg invocation that composes a visual asset and an audio track.

The planner never runs anything. It returns an `EncodePlan`, an inert
description of the tool and its ordered argument list, which the processor
executes in the job workspace.

Two branches exist, chosen by the probed media kind:

- Image + audio: the still image is looped for the length of the audio track
  and resized straight to the target size.
- Video + audio: the clip is fitted into the target box with letterbox or
  pillarbox padding. A clip shorter than the audio is repeated whole until it
  covers the audio, and the audio is padded with silence so neither track runs
  out first. The output is cut at the longer of the two durations.

Both branches share one output contract: H.264 video, AAC audio at 192 kbps,
yuv420p, TV-range BT.709, and the output path is always overwritten.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from loguru import logger

from ..config.audio import AUDIO_BITRATE, AUDIO_ENCODER
from ..config.video import (
    CANONICAL_RESOLUTIONS,
    COLOR_RANGE,
    COLORSPACE,
    FFMPEG_BIN,
    IMAGE_TUNE,
    PIXEL_FORMAT,
    VIDEO_CRF,
    VIDEO_ENCODER,
    VIDEO_PRESET,
)
from ..domain.media import MediaInfo, MediaKind
from ..domain.resolution import CanonicalResolution, select_resolution


@dataclass(frozen=True)
class EncodePlan:
    """
    A fully determined encode step.

    Attributes:
        tool: The executable to run.
        args: The ordered argument list, without the tool itself.
        target: The output resolution.
        duration: Length the output is cut to, in seconds.
        loops: How many times the visual input is played (1 = no repetition).
    """

    tool: str
    args: Tuple[str, ...]
    target: CanonicalResolution
    duration: float
    loops: int = 1

    @property
    def command(self) -> List[str]:
        return [self.tool, *self.args]


def loop_count(video_duration: float, audio_duration: float) -> int:
    """
    Returns how many whole plays of the video cover the audio track.

    Uses integer division plus one, so `loops * video_duration >= audio_duration`
    always holds. When the audio is not longer than the video, or the video
    duration is unknown (0), the video is played once.
    """
    if video_duration <= 0 or video_duration >= audio_duration:
        return 1
    return int(audio_duration // video_duration) + 1


def format_seconds(seconds: float) -> str:
    return f"{seconds:.2f}"


def _output_args(output_path: Path, duration: float) -> List[str]:
    # Shared tail of every plan: audio codec, pixel format, colour tagging, cut, overwrite.
    return [
        "-c:a", AUDIO_ENCODER,
        "-b:a", AUDIO_BITRATE,
        "-pix_fmt", PIXEL_FORMAT,
        "-color_range", COLOR_RANGE,
        "-colorspace", COLORSPACE,
        "-t", format_seconds(duration),
        "-y",
        str(output_path),
    ]


class EncodePlanner:
    """
    Creates `EncodePlan`s for both composition branches.

    Args:
        ffmpeg_bin: The ffmpeg executable to put in the plans.
        resolutions: The canonical resolution table, in tie-break order.
    """

    def __init__(
        self,
        ffmpeg_bin: str = FFMPEG_BIN,
        resolutions: Sequence[CanonicalResolution] = CANONICAL_RESOLUTIONS,
    ):
        self.ffmpeg_bin = ffmpeg_bin
        self.resolutions = tuple(resolutions)

    def plan(
        self,
        media_path: Path,
        audio_path: Path,
        output_path: Path,
        media_info: MediaInfo,
        audio_duration: float,
    ) -> EncodePlan:
        if media_info.kind is MediaKind.IMAGE:
            return self.plan_image(media_path, audio_path, output_path, media_info, audio_duration)
        return self.plan_video(media_path, audio_path, output_path, media_info, audio_duration)

    def plan_image(
        self,
        image_path: Path,
        audio_path: Path,
        output_path: Path,
        media_info: MediaInfo,
        audio_duration: float,
    ) -> EncodePlan:
        """Loops one image for the whole audio track, resized to the target."""
        target = select_resolution(media_info.width, media_info.height, self.resolutions)
        args = [
            "-loop", "1",
            "-i", str(image_path),
            "-i", str(audio_path),
            "-vf", f"scale={target.scale}",
            "-c:v", VIDEO_ENCODER,
            "-tune", IMAGE_TUNE,
            *_output_args(output_path, audio_duration),
        ]
        return EncodePlan(self.ffmpeg_bin, tuple(args), target, audio_duration)

    def plan_video(
        self,
        video_path: Path,
        audio_path: Path,
        output_path: Path,
        media_info: MediaInfo,
        audio_duration: float,
    ) -> EncodePlan:
        """
        Fits the clip into the target box and reconciles the two durations.

        The clip is repeated with `-stream_loop`, which replays the whole input
        file; `loops - 1` extra plays give `loops` plays in total. Timestamps
        are rebased after looping so the composed stream starts at zero.
        """
        target = select_resolution(media_info.width, media_info.height, self.resolutions)
        video_duration = media_info.duration
        max_duration = max(video_duration, audio_duration)
        loops = loop_count(video_duration, audio_duration)

        if video_duration <= 0:
            logger.warning(
                f"Video duration of {video_path.name} is unknown; the clip will not be looped."
            )

        fit = (
            f"scale={target.scale}:force_original_aspect_ratio=decrease,"
            f"pad={target.scale}:(ow-iw)/2:(oh-ih)/2"
        )
        filter_graph = f"[0:v]{fit},setpts=PTS-STARTPTS[v];[1:a]apad[a]"

        args: List[str] = []
        if loops > 1:
            args += ["-stream_loop", str(loops - 1)]
        args += [
            "-i", str(video_path),
            "-i", str(audio_path),
            "-filter_complex", filter_graph,
            "-map", "[v]",
            "-map", "[a]",
            "-c:v", VIDEO_ENCODER,
            "-preset", VIDEO_PRESET,
            "-crf", str(VIDEO_CRF),
            *_output_args(output_path, max_duration),
        ]
        return EncodePlan(self.ffmpeg_bin, tuple(args), target, max_duration, loops)
