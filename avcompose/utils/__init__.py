"""
Utilities Package for avcompose.

Modules:
    - ffmpeg_utils.py: Running external commands with captured output.
    - format_utils.py: Human-readable sizes and durations for log messages.
    - tool_check.py: Start-up verification of ffmpeg and ffprobe.
"""
