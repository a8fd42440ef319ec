#!/usr/bin/env python3
"""
===============================================================================
SATSIM - COMMAND-LINE ENTRY POINT
===============================================================================
Loads one or more satellite definitions, propagates them with the adaptive
RKF45 integrator and reports (optionally saves) their state histories.

USAGE:
    satsim config/leo_circular.yaml --duration 5400
    satsim config/*.yaml --duration 600 --tolerance 1e-8 --drag
    satsim config/constellation.yaml --no-j2 --output-dir output

OUTPUTS:
    <output-dir>/<name>.csv   - State history of each satellite

DEPENDENCIES:
    numpy, pandas, pyyaml
===============================================================================
"""

import argparse
import logging
import os
import sys
import time

import pandas as pd

from satsim.core.constants import RAD2DEG
from satsim.core.exceptions import SatsimError
from satsim.simulation.config_loader import load_satellites
from satsim.simulation.runner import propagate_adaptive

logger = logging.getLogger("satsim.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="satsim",
        description="Satellite orbit and attitude propagation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  satsim sat.yaml --duration 5400             One orbit, J2 on
  satsim a.yaml b.json --drag                 Two satellites with drag
  satsim sat.yaml --output-dir output         Save CSV histories
        """
    )
    parser.add_argument("configs", nargs="+", metavar="CONFIG",
                        help="Satellite definition file(s), YAML or JSON")
    parser.add_argument("--duration", type=float, default=5400.0,
                        help="Simulated time span in seconds (default: 5400)")
    parser.add_argument("--tolerance", type=float, default=1e-7,
                        help="RKF45 local error tolerance (default: 1e-7)")
    parser.add_argument("--initial-step", type=float, default=1.0,
                        help="First trial step in seconds (default: 1)")
    parser.add_argument("--j2", dest="perturbation", action="store_true", default=True,
                        help="Include the J2 perturbation (default)")
    parser.add_argument("--no-j2", dest="perturbation", action="store_false",
                        help="Point-mass gravity only")
    parser.add_argument("--drag", action="store_true",
                        help="Include atmospheric drag")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Directory for CSV state histories")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging")
    return parser


def summarize(history: pd.DataFrame) -> None:
    """Log the start/end radius and energy drift of one history."""
    first = history.iloc[0]
    last = history.iloc[-1]
    drift = (last["energy"] - first["energy"]) / abs(first["energy"])
    logger.info(
        "%s: t=%.1f s  r=%.3f km -> %.3f km  rel. energy change %.3e  "
        "RPY=(%.2f, %.2f, %.2f) deg",
        first["name"], last["time"], first["radius"] / 1000.0,
        last["radius"] / 1000.0, drift,
        last["Roll"] * RAD2DEG, last["Pitch"] * RAD2DEG, last["Yaw"] * RAD2DEG,
    )


def main(argv=None) -> int:
    """
    Main entry point.  Returns the process exit code.
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    run_start = time.time()
    try:
        satellites = [sat for path in args.configs for sat in load_satellites(path)]
        if args.output_dir:
            os.makedirs(args.output_dir, exist_ok=True)

        for sat in satellites:
            history = propagate_adaptive(
                sat, args.duration, args.tolerance, args.initial_step,
                perturbation=args.perturbation, atmospheric_drag=args.drag,
            )
            summarize(history)

            if args.output_dir:
                csv_path = os.path.join(args.output_dir, f"{sat.get_name()}.csv")
                history.to_csv(csv_path, index=False)
                logger.info("History saved to %s", csv_path)
    except SatsimError as exc:
        logger.error("%s", exc)
        return 1

    logger.info("Propagated %d satellite(s) in %.1f s",
                len(satellites), time.time() - run_start)
    return 0


if __name__ == '__main__':
    sys.exit(main())
