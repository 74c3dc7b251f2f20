#!/usr/bin/env python
"""
E20 Blend Simulator CLI - Emission indices and exhaust smoke for ethanol blends

Usage:
    python main.py [options]

Examples:
    python main.py -p 10                       # Emission report for E10
    python main.py --table                     # E0..E20 table
    python main.py -p 20 --record e20.gif      # Headless smoke recording
    python main.py --preview                   # Live window (needs pygame)
"""

import argparse
import logging
import sys

from e20sim.core import (
    MIN_PERCENTAGE, MAX_PERCENTAGE, METRICS,
    EmissionInterpolator, FrameRecorder, MetricReport,
    ProfileManager, SimulationSystem, SimulatorConfig,
    SimulatorError, clamp_percentage, load_config, record_simulation,
)
from e20sim.core.preview import PreviewCanvas, PreviewConfig, PreviewWindow, check_pygame_available


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Emission indices and exhaust smoke for ethanol/gasoline blends (E0-E20)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Emission indices:
  co2  - Carbon dioxide
  co   - Carbon monoxide
  hc   - Unburned hydrocarbons
  pm   - Particulate matter
  (100 = pure gasoline baseline)

Examples:
  %(prog)s -p 10                          # Report for E10
  %(prog)s --table --step 2.5             # Table at 2.5% steps
  %(prog)s -p 15 --record smoke.gif --duration 5000
  %(prog)s --record sweep.gif --sweep     # Blend sweeps E0 -> E20 during the recording
  %(prog)s --config my_engine.yaml --table
  %(prog)s --list-profiles
        """
    )

    parser.add_argument(
        '-p', '--percentage',
        type=float,
        default=None,
        help=f'Ethanol blend percentage ({MIN_PERCENTAGE}-{MAX_PERCENTAGE}, clamped and truncated to a whole percent)'
    )

    parser.add_argument(
        '--table',
        action='store_true',
        help='Print the emission table across the whole blend range'
    )

    parser.add_argument(
        '--step',
        type=float,
        default=1.0,
        help='Percentage step for --table (default: 1)'
    )

    parser.add_argument(
        '--record',
        type=str,
        default=None,
        metavar='GIF',
        help='Record the particle field headlessly to a GIF'
    )

    parser.add_argument(
        '--frames-dir',
        type=str,
        default=None,
        help='Also write recorded frames as PNGs into this directory'
    )

    parser.add_argument(
        '--sweep',
        action='store_true',
        help='While recording, sweep the blend from E0 to E20'
    )

    parser.add_argument(
        '--duration',
        type=float,
        default=3000.0,
        help='Simulated milliseconds to record (default: 3000)'
    )

    parser.add_argument(
        '--fps',
        type=int,
        default=20,
        help='Frames per simulated second (default: 20)'
    )

    parser.add_argument(
        '--width',
        type=int,
        default=None,
        help='Viewport width in pixels'
    )

    parser.add_argument(
        '--height',
        type=int,
        default=None,
        help='Viewport height in pixels'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for reproducible particle runs'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='YAML simulator config file'
    )

    parser.add_argument(
        '--profile',
        type=str,
        default=None,
        help='Named profile (built-in or from ~/.e20sim/presets)'
    )

    parser.add_argument(
        '--list-profiles',
        action='store_true',
        help='List available profiles and exit'
    )

    parser.add_argument(
        '--preview',
        action='store_true',
        help='Open the live preview window (requires pygame)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    return parser


def resolve_config(args) -> SimulatorConfig:
    """Pick the config from --config / --profile and apply CLI overrides"""
    if args.config:
        config = load_config(args.config)
    elif args.profile:
        config = ProfileManager().get(args.profile)
        if config is None:
            raise SimulatorError(f"Unknown profile: {args.profile}")
    else:
        config = SimulatorConfig()

    if args.seed is not None:
        config.seed = args.seed
    if args.width is not None:
        config.viewport_width = args.width
    if args.height is not None:
        config.viewport_height = args.height
    return config


def print_report(report: MetricReport) -> None:
    print(f"\nE{report.percentage:g} blend ({report.tier.value} efficiency)")
    print("-" * 44)
    for metric in METRICS:
        value = getattr(report.values, metric)
        level = report.levels[metric].value
        print(f"  {metric.upper():<4} {value:>5g}%  {level:<7} {report.format_reduction(metric)}")
    print(f"\nEngine vibration period: {report.vibration_period:.3f}s")


def print_table(config: SimulatorConfig, step: float) -> None:
    interpolator = EmissionInterpolator(config.emission_profile())
    print(f"\nProfile: {config.name}")
    print(f"{'Blend':>6}  " + "  ".join(f"{m.upper():>4}" for m in METRICS))
    for percentage, values in interpolator.table(step):
        row = "  ".join(f"{getattr(values, m):>4g}" for m in METRICS)
        print(f"{'E' + format(percentage, 'g'):>6}  {row}")


def run_recording(args, config: SimulatorConfig) -> None:
    width = args.width or 480
    height = args.height or 270
    recorder = FrameRecorder(width, height)
    system = SimulationSystem(config, renderer=recorder, viewport_width=recorder.viewport_width)
    if args.percentage is not None:
        system.on_parameter_input(args.percentage)

    schedule = None
    if args.sweep:
        # One step per percentage point, evenly spread over the recording
        schedule = {
            args.duration * p / (MAX_PERCENTAGE + 1): p
            for p in range(MIN_PERCENTAGE, MAX_PERCENTAGE + 1)
        }

    print(f"Recording {args.duration:g} ms at {args.fps} fps (E{system.percentage})...")
    with system:
        count = record_simulation(system, recorder, args.duration, fps=args.fps, schedule=schedule)

    output = recorder.to_gif(args.record, duration=int(round(1000 / args.fps)))
    print(f"Created: {output} ({count} frames)")

    if args.frames_dir:
        paths = recorder.to_frames(args.frames_dir)
        print(f"Frames: {len(paths)} PNGs in {args.frames_dir}")


def run_preview(args, config: SimulatorConfig) -> None:
    if not check_pygame_available():
        print("Error: Preview requires pygame. Install with: pip install pygame")
        sys.exit(1)

    preview_config = PreviewConfig(
        window_width=args.width or config.viewport_width,
        window_height=args.height or config.viewport_height,
    )
    canvas = PreviewCanvas(preview_config.window_width, preview_config.window_height)
    system = SimulationSystem(config, renderer=canvas, viewport_width=canvas.viewport_width)
    if args.percentage is not None:
        system.on_parameter_input(args.percentage)

    print("Controls: LEFT/RIGHT=blend, 0-9/E=jump, SPACE=pause, H=help, ESC=quit")
    PreviewWindow(system, canvas, preview_config).run()
    print("Preview closed.")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.list_profiles:
            manager = ProfileManager()
            print("\nAvailable profiles:")
            for name in manager.list_all():
                profile = manager.get(name)
                origin = "built-in" if manager.is_builtin(name) else "user"
                print(f"  {name:<16} [{origin}] {profile.description}")
            return

        config = resolve_config(args)

        if args.table:
            print_table(config, args.step)
            return

        if args.record:
            run_recording(args, config)
            return

        if args.preview:
            run_preview(args, config)
            return

        percentage = args.percentage if args.percentage is not None else config.initial_percentage
        # Same whole-percent rule as the slider and keyboard input
        percentage = clamp_percentage(percentage)
        interpolator = EmissionInterpolator(config.emission_profile())
        print_report(MetricReport.build(percentage, interpolator.compute(percentage)))

    except (SimulatorError, OSError, ValueError) as e:
        print(f"Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
