#!/usr/bin/env python3
"""
orbitmag
Main entry point for geomagnetic field runs.

Computes the geomagnetic field components along the orbit of an Earth
orbiting satellite and writes them as a fixed-width table. Field models are
valid for orbits up to about 600 km.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from skyfield.api import load

from orbitmag.config import Config, load_config, with_overrides
from orbitmag.exceptions import ConfigurationError, OrbitmagError
from orbitmag.models.elements import (
    OrbitalElements,
    load_elements,
    parse_elements,
    select_closest
)
from orbitmag.models.frames import GeodeticTransformer
from orbitmag.output import write_table
from orbitmag.pipeline import FieldSample, SamplingPipeline
from orbitmag.utils.logging import setup_logging
from orbitmag.utils.time import parse_epoch

logger = logging.getLogger("orbitmag")


def resolve_elements(config: Config, ts=None) -> OrbitalElements:
    """Element set for the run: inline lines, else the closest set in the TLE file."""
    ts = ts or load.timescale()
    if config.input.tle:
        elements = parse_elements(config.input.tle, ts)
        return select_closest(elements, config.run.start)
    elements = load_elements(config.input.tle_path, ts)
    return select_closest(elements, config.run.start, config.input.satellite)


class GeomagneticFieldRun:
    """One batch run from element set to output table."""

    def __init__(self, config: Config):
        """
        Initialize the run.

        Args:
            config: Validated run configuration
        """
        self.config = config
        self.ts = load.timescale()
        self.elements = resolve_elements(config, self.ts)
        self.pipeline = SamplingPipeline(config, self.elements,
                                         transformer=GeodeticTransformer(self.ts))
        self.log_summary()

    @property
    def source(self) -> str:
        if self.config.input.tle:
            return "inline element set"
        return str(self.config.input.tle_path)

    def log_summary(self):
        """Log the run parameters."""
        logger.info(f"Calculation of Geomagnetic Field for {self.config.input.satellite}")
        logger.info(f"The TLE file used is {self.source}")
        logger.info(f"The duration in seconds is: {self.config.run.duration_s}")
        logger.info(f"The timestep in seconds is: {self.config.run.timestep_s}")
        logger.info(f"The initial date is: {self.pipeline.start.isoformat()}")
        logger.info(f"The final   date is: {self.pipeline.end.isoformat()}")
        logger.info(f"The TLE used is:\n{self.elements}")

    def run(self) -> List[FieldSample]:
        """Run the pipeline and write the output table."""
        samples = self.pipeline.run()
        path = write_table(self.config.output.path, samples,
                           legacy_z_column=self.config.output.legacy_z_column)
        logger.info(f"Check the output file: {path}")
        return samples


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Geomagnetic field along a satellite orbit"
    )
    parser.add_argument("--config", type=Path, help="Path to YAML configuration file")
    parser.add_argument("--duration", type=float, help="Run duration in seconds")
    parser.add_argument("--timestep", type=float, help="Sampling timestep in seconds")
    parser.add_argument("--start", help="Start epoch, ISO-8601 (default: element set epoch)")
    parser.add_argument("--tle", type=Path, help="Two-line element file")
    parser.add_argument("--satellite", help="Satellite designator, e.g. 39412U")
    parser.add_argument("--output", help="Output file name")
    parser.add_argument("--output-dir", help="Output directory")
    parser.add_argument("--field-model", choices=['dipole', 'igrf'], help="Field model")
    parser.add_argument("--per-sample-epoch", action="store_true", default=None,
                        help="Recompute the field model epoch at every sample")
    parser.add_argument("--legacy-z-column", action="store_true", default=None,
                        help="Write the Y component in the Z column, as older tables did")
    parser.add_argument("--skip-bad-samples", action="store_true", default=None,
                        help="Drop samples whose geodetic transform fails")
    parser.add_argument("--log-level", help="Logging level")
    return parser.parse_args(argv)


def build_config(args) -> Config:
    """Load the configuration file and apply command line overrides."""
    config = load_config(args.config) if args.config else Config()

    start = None
    if args.start:
        try:
            start = parse_epoch(args.start)
        except ValueError as e:
            raise ConfigurationError(f"Invalid start epoch {args.start!r}: {e}") from e

    return with_overrides(
        config,
        run_duration_s=args.duration,
        run_timestep_s=args.timestep,
        run_start=start,
        run_skip_bad_samples=args.skip_bad_samples,
        input_tle_dir=str(args.tle.parent) if args.tle else None,
        input_tle_file=args.tle.name if args.tle else None,
        input_satellite=args.satellite,
        output_file=args.output,
        output_dir=args.output_dir,
        output_legacy_z_column=args.legacy_z_column,
        geomag_model=args.field_model,
        geomag_epoch='per_sample' if args.per_sample_epoch else None,
        logging_level=args.log_level,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)

    try:
        config = build_config(args)
        setup_logging("orbitmag", config.logging.level, config.logging.file)
        GeomagneticFieldRun(config).run()
    except OrbitmagError as e:
        logger.error(f"Fatal error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
