"""Shared test fixtures."""

import importlib.util
import shutil
from pathlib import Path

import pytest

from gifforge.manifest import ConvertConfig
from gifforge.models import Duration, ProbeResult

SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"

PROBE_JSON = {
    "format": {"duration": "10.0"},
    "streams": [
        {
            "codec_type": "audio",
            "codec_name": "aac",
            "r_frame_rate": "0/0",
        },
        {
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1920,
            "height": 1080,
            "r_frame_rate": "30/1",
        },
    ],
}


def make_probe(seconds: int = 10, fps: float = 30.0) -> ProbeResult:
    return ProbeResult(
        width=1920,
        height=1080,
        duration=Duration.from_seconds(seconds),
        fps=fps,
    )


@pytest.fixture
def tmp_config(tmp_path: Path) -> ConvertConfig:
    return ConvertConfig(
        work_dir=tmp_path / "output_frames",
        palette_path=tmp_path / "palette.png",
    )


@pytest.fixture
def synthetic_video(tmp_path: Path) -> Path:
    """A real 10 s / 30 fps clip; skips when ffmpeg is not installed."""
    if shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None:
        pytest.skip("ffmpeg not available")

    spec = importlib.util.spec_from_file_location(
        "generate_test_video", SCRIPTS_DIR / "generate_test_video.py"
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.generate_test_video(tmp_path / "clip.sample.mp4")
