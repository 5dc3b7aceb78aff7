"""
Command-line interface for hlrdraw.

Provides commands for rendering scenes to SVG, listing the built-in samples
and writing a default configuration file.
"""

import argparse
import sys

from hlrdraw.config import save_default_config
from hlrdraw.tracer import configure_tracer, get_tracer


def build_parser():
    parser = argparse.ArgumentParser(
        prog="hlrdraw",
        description="hlrdraw: hidden-line line-art rendering of analytic 3D scenes to SVG",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Render command
    render_parser = subparsers.add_parser("render", help="Render a scene to SVG")
    source = render_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--scene", "-s",
        default=None,
        help="Path to YAML scene file",
    )
    source.add_argument(
        "--sample",
        default=None,
        help="Name of a built-in sample scene",
    )
    render_parser.add_argument(
        "--out", "-o",
        required=True,
        help="Output SVG path",
    )
    render_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    render_parser.add_argument(
        "--stats",
        default=None,
        help="Path to write render stats as JSON",
    )
    render_parser.add_argument(
        "--workers", "-j",
        type=int,
        default=None,
        help="Thread-pool width (overrides config)",
    )
    render_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    render_parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    render_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    render_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )

    # Samples command
    subparsers.add_parser("samples", help="List built-in sample scenes")

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="hlrdraw_config.yaml",
        help="Output path for config file",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    # Handle commands
    if args.command == "render":
        return handle_render(args)
    elif args.command == "samples":
        return handle_samples(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def configure_from_args(args, tracing):
    """Configure tracing from the command line, falling back to the config file."""
    if args.trace:
        configure_tracer(
            enabled=True,
            level=args.trace_level,
            file_path=args.trace_file,
            json_output=args.trace_json,
        )
    else:
        configure_tracer(
            enabled=tracing.enabled,
            level=tracing.level,
            file_path=tracing.file_path,
            json_output=tracing.json_output,
        )


def handle_render(args):
    """Handle the render command."""
    tracer = get_tracer()

    try:
        from hlrdraw.config import load_config
        from hlrdraw.io.samples import get_sample
        from hlrdraw.io.scene_file import load_scene
        from hlrdraw.pipeline import render_scene_file

        config = load_config(args.config)
        configure_from_args(args, config.tracing.normalized())

        with tracer.span("cli_render", module="cli"):
            if args.workers is not None:
                config.workers = args.workers
            scene = get_sample(args.sample) if args.sample else load_scene(args.scene)
            result = render_scene_file(scene, args.out, config=config, stats_path=args.stats)

        stats = result.stats
        print(f"\nRender completed successfully.")
        print(f"  Primitives: {stats.primitives}")
        print(f"  Outline curves: {stats.outline_curves}")
        print(f"  Intersection curves: {stats.intersection_curves}")
        print(f"  Pieces: {stats.pieces} ({stats.visible_pieces} visible, {stats.hidden_pieces} hidden)")
        print(f"\nSVG saved to: {args.out}")
        if args.stats:
            print(f"Stats saved to: {args.stats}")

        return 0

    except Exception as e:
        tracer.event(f"Render failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1

    finally:
        tracer.config.close()


def handle_samples(args):
    """Handle the samples command."""
    from hlrdraw.io.samples import list_samples

    for name, title in list_samples():
        print(f"{name:<20} {title}")
    return 0


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
