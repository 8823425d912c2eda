"""
Configuration settings related to the audio track of the produced video.
"""

# ======================================================================================
# Audio Encoding Parameters
# ======================================================================================

# Every output carries AAC at a fixed bitrate, whatever the source audio codec.
AUDIO_ENCODER = "aac"
AUDIO_BITRATE = "192k"
