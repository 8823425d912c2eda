from pathlib import Path

import pytest

from avcompose.domain.media import MediaInfo, MediaKind
from avcompose.services.encode_planner import EncodePlanner, loop_count


@pytest.fixture()
def planner():
    return EncodePlanner("ffmpeg")


def args_after(args, flag):
    return args[args.index(flag) + 1]


def test_image_plan(planner):
    info = MediaInfo(MediaKind.IMAGE, 4000, 3000)
    plan = planner.plan(Path("w/visual.png"), Path("w/audio.mp3"), Path("w/output.mp4"), info, 12.3)

    assert plan.tool == "ffmpeg"
    assert plan.command[0] == "ffmpeg"
    assert plan.target.label == "1:1"
    assert plan.duration == 12.3
    assert plan.loops == 1
    args = list(plan.args)
    assert args[:2] == ["-loop", "1"]
    assert args_after(args, "-vf") == "scale=1080:1080"
    assert args_after(args, "-tune") == "stillimage"
    assert args_after(args, "-c:v") == "libx264"
    assert args_after(args, "-c:a") == "aac"
    assert args_after(args, "-b:a") == "192k"
    assert args_after(args, "-pix_fmt") == "yuv420p"
    assert args_after(args, "-color_range") == "tv"
    assert args_after(args, "-colorspace") == "bt709"
    assert args_after(args, "-t") == "12.30"
    assert args[-2:] == ["-y", "w/output.mp4"]
    assert "pad" not in args_after(args, "-vf")


def test_short_video_is_looped_to_cover_audio(planner):
    info = MediaInfo(MediaKind.VIDEO, 640, 360, duration=5.0, has_audio=False)
    plan = planner.plan(Path("visual.mp4"), Path("audio.mp3"), Path("output.mp4"), info, 20.0)

    assert plan.loops == 5
    assert plan.duration == 20.0
    assert (plan.target.width, plan.target.height) == (640, 360)
    args = list(plan.args)
    assert args[:4] == ["-stream_loop", "4", "-i", "visual.mp4"]
    assert args_after(args, "-filter_complex") == (
        "[0:v]scale=640:360:force_original_aspect_ratio=decrease,"
        "pad=640:360:(ow-iw)/2:(oh-ih)/2,setpts=PTS-STARTPTS[v];[1:a]apad[a]"
    )
    assert args[args.index("-map") + 1] == "[v]"
    assert args_after(args, "-preset") == "medium"
    assert args_after(args, "-crf") == "23"
    assert args_after(args, "-t") == "20.00"


def test_long_video_is_not_looped(planner):
    info = MediaInfo(MediaKind.VIDEO, 1920, 1080, duration=30.0, has_audio=True)
    plan = planner.plan(Path("visual.mov"), Path("audio.wav"), Path("output.mp4"), info, 12.0)

    assert plan.loops == 1
    assert plan.duration == 30.0
    assert plan.target.label == "720p"
    args = list(plan.args)
    assert "-stream_loop" not in args
    assert args[:2] == ["-i", "visual.mov"]
    assert args_after(args, "-t") == "30.00"


def test_unknown_video_duration_is_not_looped(planner):
    info = MediaInfo(MediaKind.VIDEO, 1080, 1920, duration=0.0)
    plan = planner.plan(Path("v.mp4"), Path("a.mp3"), Path("o.mp4"), info, 8.0)
    assert plan.loops == 1
    assert plan.duration == 8.0
    assert plan.target.label == "9:16"


@pytest.mark.parametrize(
    "video,audio,expected",
    [(5.0, 20.0, 5), (3.0, 10.0, 4), (7.5, 7.6, 2), (10.0, 10.0, 1), (12.0, 3.0, 1), (0.0, 3.0, 1)],
)
def test_loop_count(video, audio, expected):
    assert loop_count(video, audio) == expected


def test_loops_always_cover_audio():
    for video in (0.04, 0.5, 1.0, 2.7, 5.0, 9.99, 33.3):
        for audio in (0.1, 1.0, 4.2, 20.0, 61.7, 3600.0):
            loops = loop_count(video, audio)
            assert loops * video >= audio or video >= audio
