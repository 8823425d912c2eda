"""
Canonical output resolutions and the selection of the one closest to a source.
"""
from dataclasses import dataclass, field
from typing import Sequence


@dataclass(frozen=True)
class CanonicalResolution:
    """A standard output size. `aspect_ratio` is derived from the dimensions."""

    width: int
    height: int
    label: str
    aspect_ratio: float = field(init=False, compare=False)

    def __post_init__(self):
        # Frozen dataclass, so the derived field is set through object.__setattr__.
        object.__setattr__(self, "aspect_ratio", self.width / self.height)

    @property
    def scale(self) -> str:
        """The `W:H` pair used in ffmpeg scale and pad filters."""
        return f"{self.width}:{self.height}"


def format_resolution(
    width: int, height: int, table: Sequence[CanonicalResolution] = ()
) -> str:
    """
    Returns the label for a pair of dimensions.

    Known table sizes get their label ("1080p", "9:16", ...). Anything else is
    rendered as "<width>x<height>".
    """
    for entry in table:
        if entry.width == width and entry.height == height:
            return entry.label
    return f"{width}x{height}"


def select_resolution(
    width: int, height: int, table: Sequence[CanonicalResolution]
) -> CanonicalResolution:
    """
    Picks the output resolution for a source of the given size.

    The table entry whose aspect ratio is nearest to `width / height` wins; on
    equal distance the earlier entry is kept. When the source is smaller than
    that entry in both dimensions the source size is returned instead, so
    small inputs are never upscaled.

    Args:
        width: Source width in pixels.
        height: Source height in pixels.
        table: The canonical resolutions, in tie-break order.

    Returns:
        The chosen `CanonicalResolution`.

    Raises:
        ValueError: If a dimension is not positive or the table is empty.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {width}x{height}")
    if not table:
        raise ValueError("The canonical resolution table is empty")

    ratio = width / height
    best = table[0]
    best_diff = abs(ratio - best.aspect_ratio)
    for entry in table[1:]:
        diff = abs(ratio - entry.aspect_ratio)
        if diff < best_diff:
            best, best_diff = entry, diff

    if width < best.width and height < best.height:
        return CanonicalResolution(width, height, format_resolution(width, height, table))
    return best
