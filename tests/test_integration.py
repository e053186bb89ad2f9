"""End-to-end conversion against a real ffmpeg (skipped when it is not installed)."""

from gifforge.engine import Stage, answers_from, convert
from gifforge.ffutil import probe
from gifforge.models import Duration


class TestRealConversion:
    def test_probe_synthetic(self, synthetic_video):
        result = probe(synthetic_video)
        assert (result.width, result.height) == (320, 240)
        assert result.duration == Duration(0, 0, 10)
        assert result.fps == 30.0

    def test_convert_segment(self, synthetic_video, tmp_config):
        answers = {"start": "0:1", "end": "0:3", "fps": "10", "width": "160"}

        result = convert(synthetic_video, answers_from(answers), config=tmp_config)

        assert result.output_path == synthetic_video.parent / "clip.gif"
        assert result.output_path.read_bytes()[:6] in (b"GIF87a", b"GIF89a")
        assert result.plan.end_frame == 20
        assert result.stages[-1] == Stage.CLEANED_UP
        assert not tmp_config.work_dir.exists()
        assert not tmp_config.palette_path.exists()
