"""
Sampling pipeline: orbit stepping, geodetic transform and field evaluation.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional

from orbitmag.config import Config
from orbitmag.exceptions import TransformError
from orbitmag.models.elements import OrbitalElements
from orbitmag.models.frames import GeodeticFix, GeodeticTransformer
from orbitmag.models.magnetic_field import FieldElements, MagneticFieldModel
from orbitmag.models.orbit import OrbitPropagator, SpacecraftState
from orbitmag.utils.time import decimal_year, shifted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSample:
    """One output row."""
    epoch: datetime
    decimal_year: float
    fix: GeodeticFix
    field: FieldElements


class SamplingPipeline:
    """Walks an orbit at fixed steps and evaluates the field at each sample."""

    def __init__(self, config: Config, elements: OrbitalElements,
                 field_model: Optional[MagneticFieldModel] = None,
                 transformer: Optional[GeodeticTransformer] = None,
                 propagator: Optional[OrbitPropagator] = None):
        """
        Args:
            config: Run configuration
            elements: Element set to propagate
            field_model: Field model provider, built from config if omitted
            transformer: Geodetic transformer, WGS84 if omitted
            propagator: Orbit propagator, SGP4 over elements if omitted
        """
        self.config = config
        self.elements = elements
        self.field_model = field_model or MagneticFieldModel(config.geomag.model)
        self.transformer = transformer or GeodeticTransformer()
        self.propagator = propagator or OrbitPropagator(elements)

    @property
    def start(self) -> datetime:
        """Configured start epoch, or the element set's own epoch."""
        return self.config.run.start or self.elements.epoch

    @property
    def end(self) -> datetime:
        return shifted(self.start, self.config.run.duration_s)

    def sample(self, start: datetime, end: datetime, timestep_s: float) -> List[SpacecraftState]:
        """
        Collect propagated states from start to end at fixed steps.

        Raises:
            ValueError: If timestep_s <= 0 or end precedes start
            PropagationError: If the orbit model cannot reach an epoch
        """
        if timestep_s <= 0:
            raise ValueError("Timestep must be positive")
        if end < start:
            raise ValueError("End epoch must not precede start epoch")

        states: List[SpacecraftState] = []

        def collect(state: SpacecraftState, is_last: bool) -> None:
            states.append(state)

        self.propagator.propagate(start, end, timestep_s, collect)
        return states

    def evaluate(self, states: List[SpacecraftState]) -> List[FieldSample]:
        """
        Transform each state to a geodetic fix and evaluate the field there.

        The field epoch is fixed at the first state's decimal year unless the
        per-sample policy is configured.

        Raises:
            TransformError: On a bad sample, unless skip_bad_samples is set
        """
        if not states:
            return []

        per_sample = self.config.geomag.epoch == 'per_sample'
        run_year = decimal_year(states[0].epoch)
        max_alt = self.config.geomag.max_altitude_km

        samples = []
        warned_altitude = False
        for state in states:
            try:
                fix = self.transformer.to_geodetic(state)
            except TransformError as e:
                if not self.config.run.skip_bad_samples:
                    raise
                logger.warning(f"Skipping sample: {e}")
                continue

            if fix.altitude_km > max_alt and not warned_altitude:
                logger.warning(
                    f"Altitude {fix.altitude_km:.1f} km exceeds the field model "
                    f"validity bound of {max_alt:.0f} km"
                )
                warned_altitude = True

            year = decimal_year(state.epoch) if per_sample else run_year
            evaluate = self.field_model.for_year(year)
            samples.append(FieldSample(
                epoch=state.epoch,
                decimal_year=year,
                fix=fix,
                field=evaluate(fix.longitude_deg, fix.latitude_deg, fix.altitude_km),
            ))
        return samples

    def run(self) -> List[FieldSample]:
        """Sample the configured window and return the ordered rows."""
        states = self.sample(self.start, self.end, self.config.run.timestep_s)
        logger.info(f"Propagated {len(states)} states")
        return self.evaluate(states)
