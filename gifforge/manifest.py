"""Conversion settings — the knobs shared by the CLI, web UI and engine."""

import json
from dataclasses import dataclass, fields
from pathlib import Path


@dataclass
class ConvertConfig:
    """Configuration for a single video-to-GIF conversion.

    ``honor_overrides`` controls whether the FPS and width typed by the user
    replace the probed values. When false, the answers are still parsed but
    the probed FPS and width are always used.
    """

    honor_overrides: bool = True
    thumbnail_width: int = 600
    thumbnail_quality: int = 15
    work_dir: Path = Path("output_frames")
    palette_path: Path = Path("palette.png")
    dither: str = "bayer"
    bayer_scale: int = 3
    loglevel: str = "warning"
    keep_temp: bool = False

    def __post_init__(self) -> None:
        self.work_dir = Path(self.work_dir)
        self.palette_path = Path(self.palette_path)


def load_config(path: str | Path) -> ConvertConfig:
    """Load conversion settings from a JSON file."""
    path = Path(path)
    data = json.loads(path.read_text())

    if not isinstance(data, dict):
        raise ValueError("Config must be a JSON object")

    known = {f.name for f in fields(ConvertConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    return ConvertConfig(**data)
