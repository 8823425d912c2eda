"""
avcompose: a queue-driven worker that muxes an image or video clip with an
audio track into an MP4 sized to a canonical resolution.
"""

__version__ = "1.0.0"
