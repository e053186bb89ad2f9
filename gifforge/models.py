"""Shared data types used across GifForge."""

import math
from dataclasses import dataclass

_FIELDS_BY_COUNT = {
    1: ("seconds",),
    2: ("minutes", "seconds"),
    3: ("hours", "minutes", "seconds"),
}


class ParseError(ValueError):
    """Raised when user-supplied text cannot be parsed.

    ``kind`` is ``"format"`` when the overall shape is wrong (e.g. too many
    ``:``-separated components) and ``"component"`` when a single field is not
    a valid number. ``field`` names the offending field, if any.
    """

    def __init__(self, message: str, kind: str = "component", field: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.field = field


def _parse_component(text: str, field: str) -> int:
    if not text.isdigit() or not text.isascii():
        raise ParseError(f"Failed to parse {field}: {text!r}", kind="component", field=field)
    return int(text)


@dataclass(frozen=True)
class Duration:
    """A clock time as hours/minutes/seconds.

    Minutes and seconds are not normalised: ``Duration(0, 0, 90)`` is valid
    and renders as ``0:0:90``.
    """

    h: int = 0
    m: int = 0
    s: int = 0

    @classmethod
    def parse(cls, text: str) -> "Duration":
        """Parse ``S``, ``M:S`` or ``H:M:S``."""
        parts = text.strip().split(":")
        fields = _FIELDS_BY_COUNT.get(len(parts))
        if fields is None:
            raise ParseError(f"Invalid duration format: {text!r}", kind="format")

        values = dict.fromkeys(("hours", "minutes", "seconds"), 0)
        for part, field in zip(parts, fields):
            values[field] = _parse_component(part, field)
        return cls(h=values["hours"], m=values["minutes"], s=values["seconds"])

    @classmethod
    def from_seconds(cls, seconds: float) -> "Duration":
        """Build a Duration from a (fractional) second count, flooring it."""
        if seconds < 0:
            raise ValueError(f"Duration cannot be negative: {seconds}")
        total = math.floor(seconds)
        return cls(h=total // 3600, m=(total % 3600) // 60, s=total % 60)

    def to_seconds(self) -> int:
        return self.h * 3600 + self.m * 60 + self.s

    def format(self) -> str:
        return f"{self.h}:{self.m}:{self.s}"

    def __str__(self) -> str:
        return self.format()

    # Ordering is by total seconds; equality stays field-wise.
    def __lt__(self, other: "Duration") -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.to_seconds() < other.to_seconds()

    def __le__(self, other: "Duration") -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.to_seconds() <= other.to_seconds()

    def __gt__(self, other: "Duration") -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.to_seconds() > other.to_seconds()

    def __ge__(self, other: "Duration") -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self.to_seconds() >= other.to_seconds()


@dataclass(frozen=True)
class ProbeResult:
    """Metadata extracted from a media file via ffprobe."""

    width: int
    height: int
    duration: Duration
    fps: float


@dataclass(frozen=True)
class ClipWindow:
    """The time window, rate and output width of a conversion."""

    start: Duration
    end: Duration
    fps: float
    output_width: int

    @property
    def frame_count(self) -> float:
        return (self.end.to_seconds() - self.start.to_seconds()) * self.fps


@dataclass(frozen=True)
class ConversionPlan:
    """Everything the three ffmpeg passes need, fixed before the first runs."""

    start: Duration
    end: Duration
    fps: float
    start_frame: int
    end_frame: float
    output_width: int

    @property
    def window(self) -> ClipWindow:
        return ClipWindow(
            start=self.start, end=self.end, fps=self.fps, output_width=self.output_width
        )
