"""
The domain layer: the concepts of a composition job independent of queues,
object stores and process wiring.

Modules:
    exceptions.py: The exception hierarchy and the tagged `JobError`.
    job.py: `JobDescriptor` parsed from queue messages, `JobState` and `JobOutcome`.
    media.py: `MediaInfo` and the `MediaProber` wrapping Pillow and ffprobe.
    resolution.py: `CanonicalResolution` and nearest-aspect-ratio selection.
"""
