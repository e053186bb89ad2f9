"""FFmpeg/ffprobe subprocess helpers."""

import json
import logging
import shutil
import subprocess
from pathlib import Path

from gifforge.manifest import ConvertConfig
from gifforge.models import ClipWindow, ConversionPlan, Duration, ProbeResult
from gifforge import planner

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(RuntimeError):
    pass


class ProbeError(ValueError):
    """Raised when ffprobe output lacks a usable video stream."""
    pass


class ExternalToolError(RuntimeError):
    """Raised when ffmpeg/ffprobe exits non-zero; carries its stderr."""

    def __init__(self, tool: str, returncode: int, stderr: str):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no output"
        super().__init__(f"{tool} failed (rc={returncode}): {detail}")


def check_ffmpeg() -> None:
    """Raise FFmpegNotFoundError if ffmpeg/ffprobe are not on PATH."""
    for cmd in ("ffmpeg", "ffprobe"):
        if shutil.which(cmd) is None:
            raise FFmpegNotFoundError(f"{cmd} not found on PATH")


def parse_frame_rate(text: str) -> float:
    """Parse an ffprobe rational such as ``30000/1001`` into a float."""
    parts = text.split("/")
    if len(parts) != 2:
        raise ProbeError(f"Invalid FPS format: {text!r}")
    try:
        num, den = float(parts[0]), float(parts[1])
    except ValueError:
        raise ProbeError(f"Invalid FPS format: {text!r}") from None
    if den == 0:
        raise ProbeError(f"Invalid FPS denominator: {text!r}")
    return num / den


def parse_probe(data: dict, input_path: Path) -> ProbeResult:
    """Turn ffprobe's JSON document into a ProbeResult."""
    video_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "video"), None
    )
    if video_stream is None:
        raise ProbeError(f"No video stream found in {input_path}")

    width = video_stream.get("width")
    height = video_stream.get("height")
    if width is None:
        raise ProbeError(f"Width not found in {input_path}")
    if height is None:
        raise ProbeError(f"Height not found in {input_path}")

    try:
        seconds = float(data["format"]["duration"])
    except (KeyError, TypeError, ValueError):
        raise ProbeError(f"Invalid duration in {input_path}") from None

    return ProbeResult(
        width=int(width),
        height=int(height),
        duration=Duration.from_seconds(seconds),
        fps=parse_frame_rate(video_stream.get("r_frame_rate", "")),
    )


def probe(input_path: Path) -> ProbeResult:
    """Extract media metadata via ffprobe."""
    cmd = [
        "ffprobe",
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        str(input_path),
    ]
    logger.debug("Running %s", " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise ExternalToolError("ffprobe", result.returncode, result.stderr or "")

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(f"Failed to parse ffprobe output for {input_path}: {e}") from e

    return parse_probe(data, input_path)


def run_ffmpeg(args: list[str], loglevel: str = "warning") -> None:
    """Run ffmpeg quietly; raise ExternalToolError on a non-zero exit."""
    cmd = ["ffmpeg", "-hide_banner", "-nostats", "-v", loglevel, *args]
    logger.debug("Running %s", " ".join(cmd))
    result = subprocess.run(cmd, capture_output=True, text=True)
    if result.returncode != 0:
        raise ExternalToolError("ffmpeg", result.returncode, result.stderr or "")


def _window_args(input_path: Path, start: Duration, end: Duration) -> list[str]:
    return ["-ss", str(start), "-to", str(end), "-i", str(input_path)]


def extract_thumbnails(
    input_path: Path, window: ClipWindow, config: ConvertConfig
) -> Path:
    """Write numbered JPEG frames of the window into ``config.work_dir``."""
    work_dir = config.work_dir
    work_dir.mkdir(parents=True, exist_ok=True)
    # Frames left from an earlier, longer window would outnumber this one.
    for stale in work_dir.glob("*.jpg"):
        stale.unlink()

    args = [
        *_window_args(input_path, window.start, window.end),
        "-fps_mode", "vfr",
        "-lavfi", planner.thumbnail_filter(window, config.thumbnail_width),
        "-q:v", str(config.thumbnail_quality),
        "-y",
        str(work_dir / "%04d.jpg"),
    ]
    run_ffmpeg(args, loglevel=config.loglevel)
    return work_dir


def generate_palette(
    input_path: Path, plan: ConversionPlan, config: ConvertConfig
) -> Path:
    """Compute a palette image for the planned frame range."""
    args = [
        *_window_args(input_path, plan.start, plan.end),
        "-fps_mode", "vfr",
        "-lavfi", planner.palette_filter(plan),
        "-y",
        str(config.palette_path),
    ]
    run_ffmpeg(args, loglevel=config.loglevel)
    return config.palette_path


def encode_gif(
    input_path: Path, plan: ConversionPlan, output_path: Path, config: ConvertConfig
) -> Path:
    """Encode the planned frame range with the generated palette."""
    args = [
        *_window_args(input_path, plan.start, plan.end),
        "-i", str(config.palette_path),
        "-fps_mode", "vfr",
        "-lavfi", planner.paletteuse_filter(plan, config.dither, config.bayer_scale),
        "-y",
        str(output_path),
    ]
    run_ffmpeg(args, loglevel=config.loglevel)
    return output_path


def list_thumbnails(work_dir: Path) -> list[str]:
    """Return the extracted frame file names in frame order."""
    if not work_dir.is_dir():
        return []
    return sorted(p.name for p in work_dir.glob("*.jpg"))


def remove_temp_files(config: ConvertConfig) -> None:
    """Delete the palette image and the thumbnail directory."""
    if config.palette_path.exists():
        config.palette_path.unlink()
    if config.work_dir.exists():
        shutil.rmtree(config.work_dir)
