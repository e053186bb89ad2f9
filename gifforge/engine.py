"""Orchestrator — runs the probe/thumbnail/palette/encode pipeline for one video."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from gifforge import ffutil, planner
from gifforge.manifest import ConvertConfig
from gifforge.models import ConversionPlan, ProbeResult

logger = logging.getLogger(__name__)

# ask(key, message) -> answer; an empty answer accepts the default.
Ask = Callable[[str, str], str]


class Stage(str, Enum):
    PROBED = "probed"
    THUMBNAILS = "thumbnails"
    PALETTE = "palette"
    ENCODED = "encoded"
    CLEANED_UP = "cleaned_up"


@dataclass
class EngineResult:
    output_path: Path
    probe: ProbeResult | None = None
    plan: ConversionPlan | None = None
    thumbnail_dir: Path | None = None
    stages: list[Stage] = field(default_factory=list)


def answers_from(mapping: dict) -> Ask:
    """Build an ``ask`` callable that answers from a dict (web UI, tests)."""

    def ask(key: str, message: str) -> str:
        value = mapping.get(key)
        return "" if value is None else str(value)

    return ask


def convert(
    input_path: Path,
    ask: Ask,
    config: ConvertConfig | None = None,
    on_progress: Callable[[str, float], None] | None = None,
    on_probe: Callable[[ProbeResult], None] | None = None,
) -> EngineResult:
    """Execute the full conversion pipeline.

    Stages run strictly in order and each ffmpeg pass must succeed before
    the next starts. On failure the exception propagates and temporary files
    are left in place.

    Args:
        input_path: Source video.
        ask: Callback(key, message) returning the user's answer.
        config: Conversion settings; defaults to ``ConvertConfig()``.
        on_progress: Optional callback(stage_name, fraction_complete).
        on_probe: Optional callback invoked with the probe result before
            the first question is asked.
    """
    config = config or ConvertConfig()
    input_path = Path(input_path)

    def _progress(stage: str, frac: float) -> None:
        if on_progress:
            on_progress(stage, frac)

    def _ask(key: str, message: str) -> str:
        return ask(key, message).strip()

    result = EngineResult(output_path=planner.output_path_for(input_path))

    ffutil.check_ffmpeg()

    # --- Probe ---
    _progress("Probing video metadata", 0.0)
    probe = ffutil.probe(input_path)
    result.probe = probe
    result.stages.append(Stage.PROBED)
    logger.info(
        "Probed %s: %dx%d, %s, %s fps",
        input_path, probe.width, probe.height, probe.duration, planner.format_number(probe.fps),
    )
    if on_probe:
        on_probe(probe)

    window = planner.resolve_window(
        probe,
        start_text=_ask("start", "Start time (hh:mm:ss, Enter=0:0:0): "),
        end_text=_ask("end", f"End time (hh:mm:ss, Enter={probe.duration}): "),
        fps_text=_ask("fps", f"FPS (Enter={planner.format_number(probe.fps)}): "),
        width_text=_ask("width", f"Width in pixels (Enter={probe.width}): "),
        honor_overrides=config.honor_overrides,
    )
    planner.validate_window(window)

    # --- Thumbnails ---
    _progress("Extracting thumbnails", 0.1)
    result.thumbnail_dir = ffutil.extract_thumbnails(input_path, window, config)
    result.stages.append(Stage.THUMBNAILS)
    logger.info("Thumbnails written to %s", result.thumbnail_dir)

    plan = planner.resolve_plan(
        window,
        start_frame_text=_ask("start_frame", "Start frame (Enter=1): "),
        end_frame_text=_ask(
            "end_frame",
            f"End frame (Enter={planner.format_number(window.frame_count)}): ",
        ),
    )
    planner.validate_plan(plan)
    result.plan = plan
    logger.debug("Plan: %s", plan)

    # --- Palette ---
    _progress("Generating palette", 0.4)
    ffutil.generate_palette(input_path, plan, config)
    result.stages.append(Stage.PALETTE)

    # --- Encode ---
    _progress("Encoding GIF", 0.6)
    ffutil.encode_gif(input_path, plan, result.output_path, config)
    result.stages.append(Stage.ENCODED)

    # --- Cleanup ---
    if config.keep_temp:
        logger.info("Keeping %s and %s", config.palette_path, config.work_dir)
    else:
        _progress("Cleaning up", 0.95)
        ffutil.remove_temp_files(config)
        result.stages.append(Stage.CLEANED_UP)

    _progress("Done", 1.0)
    return result
