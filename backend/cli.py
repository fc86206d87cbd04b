"""
SMS60 command line tools

  python cli.py set-to X Y      reference, then move to X/Y mm
  python cli.py run TARGETS.csv visit every target of a CSV file
  python cli.py info            print controller identity and position

The port comes from --port or the SMS60_PORT environment variable;
"mock" runs against the simulator.
"""

import argparse
import math
import os
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core import config
from core.targets import load_targets_from_csv
from core.types import Axis
from hardware.stage import Sms60
from workflows.sequence import TargetSequence, write_results_csv

MIN_COORDINATE = 0.1   # mm
MAX_COORDINATE = 50.0  # mm

EXIT_OK = 0
EXIT_ARGUMENT_COUNT = 1
EXIT_BAD_X = 2
EXIT_BAD_Y = 3
EXIT_OUT_OF_RANGE = 4
EXIT_NO_CONNECTION = 5
EXIT_BAD_TARGETS = 6


def _parse_coordinate(token: str):
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _connect(port):
    if not port:
        print(f"No port given, use --port or set {config.DEFAULT_PORT_ENV}!")
        return None
    print("Connecting instrument ...")
    try:
        stage = Sms60.connect(port)
    except ConnectionError as e:
        print(f"Connection failed: {e}")
        return None
    print("done.")
    print()
    return stage


def cmd_set_to(args) -> int:
    if len(args.coordinates) != 2:
        print("You must provide exactly 2 coordinate values (in mm)!")
        return EXIT_ARGUMENT_COUNT
    x = _parse_coordinate(args.coordinates[0])
    if x is None:
        print(f"'{args.coordinates[0]}' is not a number!")
        return EXIT_BAD_X
    y = _parse_coordinate(args.coordinates[1])
    if y is None:
        print(f"'{args.coordinates[1]}' is not a number!")
        return EXIT_BAD_Y
    if not (MIN_COORDINATE <= x <= MAX_COORDINATE and MIN_COORDINATE <= y <= MAX_COORDINATE):
        print(f"Coordinate values must be in the range [{MIN_COORDINATE} mm, {MAX_COORDINATE} mm]!")
        return EXIT_OUT_OF_RANGE

    stage = _connect(args.port)
    if stage is None:
        return EXIT_NO_CONNECTION
    with stage:
        print(f"Instrument {stage.instrument_type}, referencing ...")
        stage.move_to_reference()
        print("done.")
        print()
        print(f"Moving to {x} mm / {y} mm ...")
        stage.go_to(x, y)
        print("done.")
    return EXIT_OK


def cmd_run(args) -> int:
    try:
        targets = load_targets_from_csv(args.targets)
    except OSError as e:
        print(f"Cannot read targets: {e}")
        return EXIT_BAD_TARGETS
    print(f"Number of targets: {targets.number_of_points}")

    stage = _connect(args.port)
    if stage is None:
        return EXIT_NO_CONNECTION
    with stage:
        sequence = TargetSequence(stage, targets, hold_time=args.hold)
        sequence.on_result = lambda r: print(",".join(str(v) for v in r.to_csv_row()))
        results = sequence.run()
    if args.output:
        write_results_csv(results, args.output)
        print(f"Results written to {args.output}")
    return EXIT_OK


def _print_position(stage: Sms60) -> None:
    for axis in (Axis.X, Axis.Y):
        counter = stage.get_counter(axis)
        print(f"{axis}-axis: {counter} steps  =>  {stage.get_position(axis):.5f} mm")
    print("---")


def cmd_info(args) -> int:
    stage = _connect(args.port)
    if stage is None:
        return EXIT_NO_CONNECTION
    with stage:
        if args.speed is not None:
            for axis in stage.physical_axes:
                stage.set_speed(axis, args.speed)
        print(f"Type:         {stage.instrument_type}")
        print(f"Manufacturer: {stage.manufacturer}")
        print(f"Firmware:     {stage.firmware_version}")
        print(f"#Axes:        {stage.number_of_axes}")
        print(f"X-axis speed: {stage.get_speed(Axis.X)}")
        print(f"Y-axis speed: {stage.get_speed(Axis.Y)}")
        print()
        _print_position(stage)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Control an OWIS SMS60 two-axis stage")
    parser.add_argument(
        "--port",
        default=os.environ.get(config.DEFAULT_PORT_ENV),
        help=f"Serial port (e.g. COM1, /dev/ttyUSB0) or 'mock'; default ${config.DEFAULT_PORT_ENV}",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    set_to = sub.add_parser("set-to", help="Reference, then move to X/Y in mm")
    set_to.add_argument("coordinates", nargs="*", help="X and Y in mm")
    set_to.set_defaults(func=cmd_set_to)

    run = sub.add_parser("run", help="Visit every target of a CSV file")
    run.add_argument("targets", help="File with one 'x,y' pair (mm) per line")
    run.add_argument("--hold", type=float, default=1.0, help="Hold time at each target in s")
    run.add_argument("--output", help="Write 'index,x,y' results to this CSV file")
    run.set_defaults(func=cmd_run)

    info = sub.add_parser("info", help="Print controller identity, speeds and position")
    info.add_argument("--speed", type=int, help="Set both axis speeds first")
    info.set_defaults(func=cmd_info)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
