from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Callable, List

import numpy as np
from sgp4.api import SGP4_ERRORS, jday

from orbitmag.exceptions import PropagationError
from orbitmag.models.elements import OrbitalElements
from orbitmag.models.frames import InertialPosition
from orbitmag.utils.time import EPOCH_RESOLUTION_S, seconds_between, shifted, to_utc

logger = logging.getLogger(__name__)

# Trailing steps shorter than this are merged into the final sample [s]
MERGE_THRESHOLD_S = EPOCH_RESOLUTION_S / 2


@dataclass(frozen=True)
class SpacecraftState:
    """Spacecraft orbital state."""
    epoch: datetime
    position: InertialPosition  # TEME [km]
    velocity: np.ndarray        # TEME [km/s]


StepHandler = Callable[[SpacecraftState, bool], None]


def step_offsets(duration_s: float, step_s: float) -> List[float]:
    """
    Sample offsets from the start of a fixed-step run.

    Offsets are multiples of step_s below duration_s, followed by duration_s
    itself, so a fractional trailing step still yields a final sample.
    A zero duration gives the single offset 0. Steps and non-zero durations
    must be at least EPOCH_RESOLUTION_S so that every offset maps to a
    distinct epoch.
    """
    if step_s < EPOCH_RESOLUTION_S:
        raise ValueError(f"Timestep must be at least {EPOCH_RESOLUTION_S} s")
    if duration_s < 0:
        raise ValueError("End epoch must not precede start epoch")
    if 0 < duration_s < EPOCH_RESOLUTION_S:
        raise ValueError(f"Duration must be zero or at least {EPOCH_RESOLUTION_S} s")

    offsets = [0.0]
    k = 1
    while duration_s - k * step_s >= MERGE_THRESHOLD_S:
        offsets.append(k * step_s)
        k += 1
    if duration_s > 0:
        offsets.append(duration_s)
    return offsets


class OrbitPropagator:
    """SGP4/SDP4 propagator over a single element set."""

    def __init__(self, elements: OrbitalElements):
        self.elements = elements
        self.satrec = elements.satellite.model

    def state_at(self, epoch: datetime) -> SpacecraftState:
        """
        Propagate to a single epoch.

        Raises:
            PropagationError: If SGP4 reports an error or a non-finite state
        """
        epoch = to_utc(epoch)
        seconds = epoch.second + epoch.microsecond / 1e6
        jd, fr = jday(epoch.year, epoch.month, epoch.day,
                      epoch.hour, epoch.minute, seconds)
        error, r, v = self.satrec.sgp4(jd, fr)
        if error != 0:
            reason = SGP4_ERRORS.get(error, f"SGP4 error code {error}")
            raise PropagationError(epoch, reason)

        position = np.array(r, dtype=float)
        velocity = np.array(v, dtype=float)
        if not (np.all(np.isfinite(position)) and np.all(np.isfinite(velocity))):
            raise PropagationError(epoch, "non-finite state vector")

        return SpacecraftState(
            epoch=epoch,
            position=InertialPosition(vector_km=position, epoch=epoch),
            velocity=velocity,
        )

    def propagate(self, start: datetime, end: datetime, step_s: float,
                  handler: StepHandler) -> None:
        """
        Drive handler at fixed steps from start to end.

        handler(state, is_last) is called in increasing time order; the last
        call lands exactly on end and is flagged is_last.

        Args:
            start: First sample epoch
            end: Last sample epoch, not before start
            step_s: Step size [s]
            handler: Callback receiving each state
        """
        start = to_utc(start)
        end = to_utc(end)
        offsets = step_offsets(seconds_between(start, end), step_s)
        logger.debug(f"Propagating {len(offsets)} steps of {step_s} s from {start.isoformat()}")

        last = len(offsets) - 1
        for i, offset in enumerate(offsets):
            epoch = end if i == last else shifted(start, offset)
            handler(self.state_at(epoch), i == last)
