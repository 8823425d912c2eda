"""
Configuration settings related to video processing.

This module defines the canonical output resolutions, the file extensions that
are treated as still images, and the fixed encoder parameters shared by every
encode command.
"""
from ..domain.resolution import CanonicalResolution

# --- Source Identification ---
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")

# --- Canonical Output Resolutions ---
# Table order is the tie-break order when two entries are equally close to a
# source aspect ratio. Loaded once at import and shared read-only by all jobs.
CANONICAL_RESOLUTIONS = (
    CanonicalResolution(854, 480, "480p"),
    CanonicalResolution(1280, 720, "720p"),
    CanonicalResolution(1920, 1080, "1080p"),
    CanonicalResolution(2560, 1440, "2K"),
    CanonicalResolution(3840, 2160, "4K"),
    CanonicalResolution(1080, 1080, "1:1"),
    CanonicalResolution(1080, 1920, "9:16"),
    CanonicalResolution(1080, 1350, "4:5"),
)

# --- Encoder Settings ---
FFMPEG_BIN = "ffmpeg"
FFPROBE_BIN = "ffprobe"
VIDEO_ENCODER = "libx264"
PIXEL_FORMAT = "yuv420p"
COLOR_RANGE = "tv"
COLORSPACE = "bt709"

# Still images get a tune for static content; clips use a balanced preset.
IMAGE_TUNE = "stillimage"
VIDEO_PRESET = "medium"
VIDEO_CRF = 23
