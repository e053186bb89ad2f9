#!/usr/bin/env python3
"""Generate a synthetic test video for GifForge pipeline testing.

Produces a 10-second, 30 fps, 320x240 video with no audio track:
  0-4s   ffmpeg test pattern
  4-7s   red
  7-10s  blue
"""

import subprocess
import sys
from pathlib import Path


def generate_test_video(output: Path, duration: int = 10, fps: int = 30) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)

    first = max(duration - 6, 1)
    video_filter = (
        f"testsrc=s=320x240:d={first}:r={fps}[v0];"
        f"color=c=red:s=320x240:d=3:r={fps}[v1];"
        f"color=c=blue:s=320x240:d=3:r={fps}[v2];"
        "[v0][v1][v2]concat=n=3:v=1:a=0,format=yuv420p[vout]"
    )

    cmd = [
        "ffmpeg", "-y",
        "-hide_banner", "-v", "error",
        "-filter_complex", video_filter,
        "-map", "[vout]",
        "-c:v", "libx264",
        str(output),
    ]
    subprocess.run(cmd, check=True)
    return output


if __name__ == "__main__":
    out = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("tests/fixtures/synthetic.mp4")
    generate_test_video(out)
    print(f"Generated: {out}")
