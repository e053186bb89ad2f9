"""Conversion planner — turns probe metadata and user answers into ffmpeg filter graphs.

Answers arrive as already-trimmed strings; an empty string means "use the
default". The planner works in two steps because the frame range is chosen
after the user has seen the thumbnails:

1. :func:`resolve_window` fixes start/end time, FPS and output width.
2. :func:`resolve_plan` adds the frame range.
"""

import math
from pathlib import Path

from gifforge.models import ClipWindow, ConversionPlan, Duration, ParseError, ProbeResult


class ValidationError(ValueError):
    """Raised when a derived plan breaks one or more of its invariants."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Invalid conversion plan: " + "; ".join(problems))


def format_number(value: float) -> str:
    """Render a number for a filter graph, dropping a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_int(text: str, field: str) -> int:
    try:
        return int(text)
    except ValueError:
        raise ParseError(f"{field} is not a number: {text!r}", field=field) from None


def _parse_float(text: str, field: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise ParseError(f"{field} is not a number: {text!r}", field=field) from None
    if not math.isfinite(value):
        raise ParseError(f"{field} is not a finite number: {text!r}", field=field)
    return value


def resolve_window(
    probe: ProbeResult,
    start_text: str = "",
    end_text: str = "",
    fps_text: str = "",
    width_text: str = "",
    honor_overrides: bool = True,
) -> ClipWindow:
    """Apply defaults and overrides to the user's time/FPS/width answers.

    The FPS and width answers are always parsed so typos are reported, but
    they only replace the probed values when ``honor_overrides`` is set.
    """
    start = Duration.parse(start_text) if start_text else Duration()
    end = Duration.parse(end_text) if end_text else probe.duration

    fps = probe.fps
    if fps_text:
        fps_override = _parse_float(fps_text, "fps")
        if honor_overrides:
            fps = fps_override

    width = probe.width
    if width_text:
        width_override = _parse_int(width_text, "width")
        if honor_overrides:
            width = width_override

    return ClipWindow(start=start, end=end, fps=fps, output_width=width)


def resolve_plan(
    window: ClipWindow, start_frame_text: str = "", end_frame_text: str = ""
) -> ConversionPlan:
    """Add the frame range to a window; defaults span the whole window."""
    start_frame = _parse_int(start_frame_text, "start frame") if start_frame_text else 1
    if end_frame_text:
        end_frame = _parse_float(end_frame_text, "end frame")
    else:
        end_frame = window.frame_count

    return ConversionPlan(
        start=window.start,
        end=window.end,
        fps=window.fps,
        start_frame=start_frame,
        end_frame=end_frame,
        output_width=window.output_width,
    )


def _window_problems(window: ClipWindow) -> list[str]:
    problems: list[str] = []
    if window.start > window.end:
        problems.append(f"start {window.start} is after end {window.end}")
    if window.fps <= 0:
        problems.append(f"fps must be positive, got {format_number(window.fps)}")
    if window.output_width <= 0:
        problems.append(f"width must be positive, got {window.output_width}")
    return problems


def validate_window(window: ClipWindow) -> None:
    problems = _window_problems(window)
    if problems:
        raise ValidationError(problems)


def validate_plan(plan: ConversionPlan) -> None:
    """Reject a plan that ffmpeg would fail on, before anything is run."""
    problems = _window_problems(plan.window)
    if plan.start_frame > plan.end_frame:
        problems.append(
            f"start frame {plan.start_frame} is after end frame {format_number(plan.end_frame)}"
        )
    if problems:
        raise ValidationError(problems)


def thumbnail_filter(window: ClipWindow, thumbnail_width: int = 600) -> str:
    return f"fps={format_number(window.fps)},scale={thumbnail_width}:-1:flags=lanczos"


def _trim_scale_chain(plan: ConversionPlan) -> str:
    return (
        f"fps={format_number(plan.fps)},"
        f"trim=start_frame={plan.start_frame}:end_frame={format_number(plan.end_frame)},"
        f"setpts=PTS-STARTPTS,"
        f"scale={plan.output_width}:-1:flags=lanczos"
    )


def palette_filter(plan: ConversionPlan) -> str:
    return f"{_trim_scale_chain(plan)},palettegen=stats_mode=diff"


def paletteuse_filter(plan: ConversionPlan, dither: str = "bayer", bayer_scale: int = 3) -> str:
    use = f"paletteuse=dither={dither}"
    if dither == "bayer":
        use += f":bayer_scale={bayer_scale}"
    return f"{_trim_scale_chain(plan)}[x];[x][1:v]{use}"


def output_path_for(input_path: Path) -> Path:
    """``clips/holiday.final.mp4`` -> ``clips/holiday.gif``."""
    input_path = Path(input_path)
    stem = input_path.name.split(".")[0] or "output"
    return input_path.parent / f"{stem}.gif"
