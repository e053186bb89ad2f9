"""Tests for the conversion planner — defaults, overrides, validation, filter graphs."""

from pathlib import Path

import pytest

from conftest import make_probe
from gifforge.models import ConversionPlan, Duration, ParseError
from gifforge.planner import (
    ValidationError,
    format_number,
    output_path_for,
    palette_filter,
    paletteuse_filter,
    resolve_plan,
    resolve_window,
    thumbnail_filter,
    validate_plan,
    validate_window,
)


def _plan(**overrides) -> ConversionPlan:
    values = dict(
        start=Duration(0, 0, 1),
        end=Duration(0, 0, 4),
        fps=30.0,
        start_frame=1,
        end_frame=90.0,
        output_width=480,
    )
    values.update(overrides)
    return ConversionPlan(**values)


class TestFormatNumber:
    def test_integral_float(self):
        assert format_number(30.0) == "30"

    def test_fractional(self):
        assert format_number(29.97) == "29.97"

    def test_int(self):
        assert format_number(300) == "300"


class TestResolveWindow:
    def test_defaults(self):
        window = resolve_window(make_probe(10, 30.0))
        assert window.start == Duration(0, 0, 0)
        assert window.end == Duration(0, 0, 10)
        assert window.fps == 30.0
        assert window.output_width == 1920
        assert window.frame_count == 300

    def test_explicit_times(self):
        window = resolve_window(make_probe(), start_text="2", end_text="0:8")
        assert window.start == Duration(0, 0, 2)
        assert window.end == Duration(0, 0, 8)
        assert window.frame_count == 180

    def test_overrides_honored(self):
        window = resolve_window(make_probe(), fps_text="12.5", width_text="480")
        assert window.fps == 12.5
        assert window.output_width == 480

    def test_overrides_ignored(self):
        window = resolve_window(
            make_probe(), fps_text="12", width_text="480", honor_overrides=False
        )
        assert window.fps == 30.0
        assert window.output_width == 1920

    def test_ignored_override_still_parsed(self):
        with pytest.raises(ParseError, match="fps"):
            resolve_window(make_probe(), fps_text="fast", honor_overrides=False)

    def test_bad_width(self):
        with pytest.raises(ParseError) as exc:
            resolve_window(make_probe(), width_text="wide")
        assert exc.value.field == "width"

    def test_bad_time(self):
        with pytest.raises(ParseError, match="minutes"):
            resolve_window(make_probe(), start_text="a:10")


class TestResolvePlan:
    def test_default_frame_range(self):
        window = resolve_window(make_probe(10, 30.0))
        plan = resolve_plan(window)
        assert plan.start_frame == 1
        assert plan.end_frame == 300

    def test_explicit_frames(self):
        window = resolve_window(make_probe())
        plan = resolve_plan(window, start_frame_text="15", end_frame_text="120")
        assert plan.start_frame == 15
        assert plan.end_frame == 120.0

    def test_non_numeric_frame_is_parse_error(self):
        window = resolve_window(make_probe())
        with pytest.raises(ParseError) as exc:
            resolve_plan(window, start_frame_text="first")
        assert exc.value.field == "start frame"

    def test_non_numeric_end_frame(self):
        window = resolve_window(make_probe())
        with pytest.raises(ParseError, match="end frame"):
            resolve_plan(window, end_frame_text="last")


class TestValidation:
    def test_valid_plan_passes(self):
        validate_plan(_plan())

    def test_start_after_end(self):
        with pytest.raises(ValidationError, match="start 0:0:9 is after end 0:0:4"):
            validate_plan(_plan(start=Duration(0, 0, 9)))

    def test_frames_reversed(self):
        with pytest.raises(ValidationError, match="start frame 50 is after end frame 10"):
            validate_plan(_plan(start_frame=50, end_frame=10.0))

    def test_collects_every_problem(self):
        with pytest.raises(ValidationError) as exc:
            validate_plan(_plan(fps=0.0, output_width=-1))
        assert len(exc.value.problems) == 2

    def test_window_checked_without_frames(self):
        window = resolve_window(make_probe(), fps_text="-5")
        with pytest.raises(ValidationError, match="fps must be positive"):
            validate_window(window)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_plan(_plan(output_width=0))


class TestFilters:
    def test_thumbnail_filter_uses_fixed_width(self):
        window = _plan(output_width=480).window
        assert thumbnail_filter(window) == "fps=30,scale=600:-1:flags=lanczos"

    def test_palette_filter(self):
        assert palette_filter(_plan()) == (
            "fps=30,trim=start_frame=1:end_frame=90,setpts=PTS-STARTPTS,"
            "scale=480:-1:flags=lanczos,palettegen=stats_mode=diff"
        )

    def test_paletteuse_filter(self):
        assert paletteuse_filter(_plan(fps=29.97)) == (
            "fps=29.97,trim=start_frame=1:end_frame=90,setpts=PTS-STARTPTS,"
            "scale=480:-1:flags=lanczos[x];[x][1:v]paletteuse=dither=bayer:bayer_scale=3"
        )

    def test_paletteuse_other_dither(self):
        assert paletteuse_filter(_plan(), dither="sierra2_4a").endswith(
            "paletteuse=dither=sierra2_4a"
        )


class TestOutputPath:
    def test_next_to_input(self):
        assert output_path_for(Path("clips/holiday.mp4")) == Path("clips/holiday.gif")

    def test_text_before_first_dot(self):
        assert output_path_for(Path("clips/holiday.final.mp4")) == Path("clips/holiday.gif")

    def test_dotfile(self):
        assert output_path_for(Path(".mp4")) == Path("output.gif")
