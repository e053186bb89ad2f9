"""Thin CLI entry point — asks the questions on the console and calls the engine."""

import argparse
import logging
import sys
from pathlib import Path

from gifforge import planner
from gifforge.engine import convert
from gifforge.ffutil import ExternalToolError, FFmpegNotFoundError, ProbeError
from gifforge.manifest import ConvertConfig, load_config
from gifforge.models import ParseError, ProbeResult
from gifforge.planner import ValidationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gifforge",
        description="GifForge — turn a segment of a video into an animated GIF.",
    )
    sub = parser.add_subparsers(dest="command")

    conv = sub.add_parser("convert", help="Convert a video segment to GIF")
    conv.add_argument("video", nargs="*", type=Path, help="Input video file")
    conv.add_argument("--config", "-c", type=Path, help="Path to a JSON config file")
    conv.add_argument(
        "--ignore-overrides",
        action="store_true",
        help="Always use the probed FPS and width, even if others are entered",
    )
    conv.add_argument("--keep-temp", action="store_true", help="Keep thumbnails and palette")
    conv.add_argument("--verbose", "-v", action="store_true", help="Log ffmpeg commands")

    serve = sub.add_parser("serve", help="Launch the web UI")
    serve.add_argument("--port", type=int, default=8321, help="Port to listen on")
    serve.add_argument("--host", type=str, default="127.0.0.1", help="Host to bind to")

    return parser


def _console_ask(key: str, message: str) -> str:
    # Closed stdin accepts the default, like an empty line.
    try:
        return input(message)
    except EOFError:
        print()
        return ""


def _print_probe(input_path: Path, probe: ProbeResult) -> None:
    print(f"Input file: {input_path}")
    print(f"Resolution: {probe.width}x{probe.height}")
    print(f"Duration: {probe.duration}")
    print(f"FPS: {planner.format_number(probe.fps)}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from gifforge.web import create_app
        app = create_app()
        print(f"GifForge web UI: http://{args.host}:{args.port}")
        app.run(host=args.host, port=args.port, debug=False)
        return

    # Anything but exactly one input prints usage and exits cleanly.
    if len(args.video) != 1:
        parser.print_usage()
        sys.exit(0)

    video = args.video[0]

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else ConvertConfig()
        if args.ignore_overrides:
            config.honor_overrides = False
        if args.keep_temp:
            config.keep_temp = True

        def on_progress(stage: str, frac: float) -> None:
            print(f"  [{frac:3.0%}] {stage}")

        result = convert(
            video,
            ask=_console_ask,
            config=config,
            on_progress=on_progress,
            on_probe=lambda probe: _print_probe(video, probe),
        )
    except ExternalToolError as e:
        print(f"Error: {e.tool} failed (rc={e.returncode})", file=sys.stderr)
        if e.stderr:
            print(e.stderr.rstrip(), file=sys.stderr)
        sys.exit(1)
    except (
        ParseError, ProbeError, ValidationError, FFmpegNotFoundError, OSError, ValueError
    ) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print()
    print(f"Done! Output: {result.output_path}")
    if result.plan:
        plan = result.plan
        print(f"  Range: {plan.start} -> {plan.end} at {planner.format_number(plan.fps)} fps")
        print(f"  Frames: {plan.start_frame} -> {planner.format_number(plan.end_frame)}")
