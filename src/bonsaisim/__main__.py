"""Command-line interface."""
import argparse
from typing import Optional, Sequence

from bonsaisim.config import DEFAULT_OUTPUT_PATH, SimulationConfig
from bonsaisim.controller.simulation import Bonsai
from bonsaisim.logging_config import LEVEL_NAMES, setup_logging
from bonsaisim.model.io import ImageWriter


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bonsaisim", description="Grow a plant and photograph its light field.")
    parser.add_argument("--steps", type=int, default=100, help="number of simulation steps")
    parser.add_argument("--dt", type=float, default=60.0, help="simulated seconds per step")
    parser.add_argument("--resolution", type=int, default=250, help="rows of each radiance sphere")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_PATH, help="directory for the photos")
    parser.add_argument("--log-level", default="INFO", type=str.upper, choices=LEVEL_NAMES)
    parser.add_argument("--log-file", default=None, help="optional log file")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file)

    config = SimulationConfig(dt=args.dt, resolution=args.resolution, output_dir=args.output_dir)
    bonsai = Bonsai(config=config, writer=ImageWriter.save_radiance_sphere)
    bonsai.run(args.steps)


if __name__ == "__main__":
    main()
