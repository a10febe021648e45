#!/usr/bin/env python3
"""Command-line interface for the chart geometry engine."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from datetime import datetime, timezone

from catalyst_chart.commands.chart_config import (VALID_LOG_LEVELS,
                                                  load_chart_config,
                                                  load_events, load_samples)
from catalyst_chart.exceptions import ChartError, ConfigError
from catalyst_chart.geometry import ChartGeometryEngine
from catalyst_chart.types import (ChartConfig, CrosshairMode, Scene,
                                  TimeRange, Viewport)


def parse_now(value: str | None) -> datetime:
    """Parse an ISO 8601 instant; the current time when omitted."""
    if value is None:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ConfigError(f"Invalid --now value '{value}': {e}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _build_scene(args: argparse.Namespace) -> tuple[ChartGeometryEngine, Scene]:
    config = load_chart_config(args.config) if args.config else ChartConfig()
    configure_logging(args.log_level or config.log_level)

    samples = load_samples(args.samples)
    events = load_events(args.events) if args.events else []
    try:
        viewport = Viewport(width=args.width, height=args.height, split_ratio=args.split)
    except ValueError as e:
        raise ConfigError(f"Invalid viewport: {e}") from e

    engine = ChartGeometryEngine(config)
    scene = engine.build_scene(
        samples,
        events,
        viewport,
        args.range,
        parse_now(args.now),
        previous_close=args.previous_close,
    )
    return engine, scene


def cmd_scene(args: argparse.Namespace) -> int:
    """Lay out a chart and print the scene as JSON."""
    _, scene = _build_scene(args)
    print(scene.model_dump_json(indent=2))
    return 0


def cmd_crosshair(args: argparse.Namespace) -> int:
    """Lay out a chart and print what a pointer position resolves to."""
    engine, scene = _build_scene(args)
    result = engine.resolve_crosshair(args.x, args.y, scene, CrosshairMode(args.mode))
    print(result.model_dump_json(indent=2))
    return 0


def _add_scene_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--samples", required=True, help="JSON file with past price samples"
    )
    parser.add_argument("--events", help="JSON file with future events")
    parser.add_argument(
        "--range",
        default=TimeRange.INTRADAY.value,
        choices=[time_range.value for time_range in TimeRange],
        help="Time range of the past region (default: 1D)",
    )
    parser.add_argument(
        "--width", type=float, default=800.0, help="Viewport width in pixels"
    )
    parser.add_argument(
        "--height", type=float, default=400.0, help="Viewport height in pixels"
    )
    parser.add_argument(
        "--split",
        type=float,
        default=0.6,
        help="Fraction of the width given to the past (default: 0.6)",
    )
    parser.add_argument(
        "--now", help="Current instant as ISO 8601 (default: system clock)"
    )
    parser.add_argument("--config", help="Path to YAML configuration file")
    parser.add_argument(
        "--previous-close", type=float, help="Previous close drawn as a guide line"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=sorted(VALID_LOG_LEVELS),
        help="Override the configured log level",
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Chart coordinate and geometry engine",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scene command
    scene_parser = subparsers.add_parser("scene", help="Build a chart scene")
    _add_scene_arguments(scene_parser)

    # Crosshair command
    crosshair_parser = subparsers.add_parser(
        "crosshair", help="Resolve a pointer position against a chart scene"
    )
    _add_scene_arguments(crosshair_parser)
    crosshair_parser.add_argument(
        "--x", type=float, required=True, help="Pointer X in pixels"
    )
    crosshair_parser.add_argument(
        "--y", type=float, required=True, help="Pointer Y in pixels"
    )
    crosshair_parser.add_argument(
        "--mode",
        default=CrosshairMode.SNAP.value,
        choices=[mode.value for mode in CrosshairMode],
        help="Snap to samples or track the curve (default: snap)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "scene":
            return cmd_scene(args)
        elif args.command == "crosshair":
            return cmd_crosshair(args)
    except ChartError as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
