"""Web UI routes for GifForge."""

import logging
import uuid
from dataclasses import asdict
from pathlib import Path

from flask import (
    Blueprint,
    current_app,
    jsonify,
    render_template,
    request,
    send_file,
    send_from_directory,
)

from gifforge import ffutil, planner
from gifforge.engine import answers_from, convert
from gifforge.ffutil import ExternalToolError, FFmpegNotFoundError
from gifforge.manifest import ConvertConfig

bp = Blueprint("web", __name__, template_folder="templates")

logger = logging.getLogger(__name__)

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}

_WINDOW_KEYS = ("start", "end", "fps", "width")


def _job_config(job: dict, options: dict) -> ConvertConfig:
    honor_overrides = options.get("honor_overrides", True)
    if not isinstance(honor_overrides, bool):
        raise ValueError(f"honor_overrides must be true or false, got {honor_overrides!r}")
    return ConvertConfig(
        honor_overrides=honor_overrides,
        work_dir=job["dir"] / "frames",
        palette_path=job["dir"] / "palette.png",
    )


def _failure(job: dict | None, exc: Exception):
    """Map a pipeline exception onto a JSON error response."""
    if isinstance(exc, ExternalToolError):
        message = f"{exc.tool} failed: {exc.stderr[-500:]}" if exc.stderr else str(exc)
        status = 500
    elif isinstance(exc, (FFmpegNotFoundError, OSError)):
        message, status = str(exc), 500
    else:
        message, status = str(exc), 400
    if job is not None:
        job["status"] = "error"
        job["error"] = message
    logger.warning("Job failed: %s", message)
    return jsonify({"error": message}), status


def _answer(options: dict, key: str) -> str:
    value = options.get(key)
    return "" if value is None else str(value).strip()


def _get_probe(job: dict):
    if job.get("probe") is None:
        job["probe"] = ffutil.probe(job["input_path"])
    return job["probe"]


@bp.route("/")
def index():
    return render_template("index.html")


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(f.filename).suffix or ".mp4"
    input_path = job_dir / f"input{ext}"
    f.save(input_path)

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": f.filename,
        "status": "uploaded",
    }

    return jsonify({"job_id": job_id, "filename": f.filename})


@bp.route("/api/jobs/<job_id>/probe")
def probe_job(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    try:
        probe = _get_probe(job)
    except (ValueError, ExternalToolError, OSError) as e:
        return _failure(None, e)

    return jsonify({
        "width": probe.width,
        "height": probe.height,
        "duration": str(probe.duration),
        "fps": probe.fps,
    })


@bp.route("/api/jobs/<job_id>/thumbnails", methods=["POST"])
def make_thumbnails(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    options = request.get_json(silent=True) or {}

    try:
        config = _job_config(job, options)
        ffutil.check_ffmpeg()
        probe = _get_probe(job)
        window = planner.resolve_window(
            probe,
            *(_answer(options, key) for key in _WINDOW_KEYS),
            honor_overrides=config.honor_overrides,
        )
        planner.validate_window(window)
        ffutil.extract_thumbnails(job["input_path"], window, config)
    except (ValueError, ExternalToolError, FFmpegNotFoundError, OSError) as e:
        return _failure(None, e)

    return jsonify({
        "frames": ffutil.list_thumbnails(config.work_dir),
        "frame_count": window.frame_count,
    })


@bp.route("/api/jobs/<job_id>/thumbnails/<name>")
def thumbnail(job_id: str, name: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404
    return send_from_directory(_jobs[job_id]["dir"] / "frames", name)


@bp.route("/api/jobs/<job_id>/convert", methods=["POST"])
def start_convert(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    options = request.get_json(silent=True) or {}

    job["status"] = "processing"
    job["error"] = None
    try:
        config = _job_config(job, options)
        result = convert(job["input_path"], answers_from(options), config=config)
    except (ValueError, ExternalToolError, FFmpegNotFoundError, OSError) as e:
        return _failure(job, e)

    plan = result.plan
    job["result"] = {
        "output_path": str(result.output_path),
        "start": str(plan.start),
        "end": str(plan.end),
        "fps": plan.fps,
        "start_frame": plan.start_frame,
        "end_frame": plan.end_frame,
        "output_width": plan.output_width,
        "stages": [s.value for s in result.stages],
    }
    job["status"] = "done"
    return jsonify({"status": "done", "result": job["result"]})


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    output_path = Path(job["result"]["output_path"])
    return send_file(output_path, mimetype="image/gif", as_attachment=False)


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    if job_id not in _jobs:
        return jsonify({"error": "Job not found"}), 404

    job = _jobs[job_id]
    resp = {"status": job["status"], "filename": job.get("filename")}
    if job.get("probe") is not None:
        probe = job["probe"]
        resp["probe"] = {**asdict(probe), "duration": str(probe.duration)}
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)
