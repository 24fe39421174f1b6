from datetime import datetime, timedelta, timezone
import math

import numpy as np
import pytest

from orbitmag.exceptions import PropagationError
from orbitmag.models.frames import InertialPosition
from orbitmag.models.orbit import OrbitPropagator, step_offsets

START = datetime(2013, 12, 9, 3, 5, 40, tzinfo=timezone.utc)


@pytest.mark.parametrize("duration, step", [
    (6000.0, 20.0),
    (65.0, 20.0),
    (1.0, 0.3),
    (86400.0, 60.0),
    (10.0, 20.0),
])
def test_step_count(duration, step):
    offsets = step_offsets(duration, step)
    assert len(offsets) == math.ceil(duration / step) + 1
    assert offsets[0] == 0.0
    assert offsets[-1] == duration
    assert all(b > a for a, b in zip(offsets, offsets[1:]))


def test_fractional_trailing_step_is_reported():
    assert step_offsets(65.0, 20.0) == [0.0, 20.0, 40.0, 60.0, 65.0]


def test_zero_duration_gives_single_offset():
    assert step_offsets(0.0, 20.0) == [0.0]


def test_duration_shorter_than_step_gives_two_offsets():
    assert step_offsets(5.0, 20.0) == [0.0, 5.0]


@pytest.mark.parametrize("duration, step", [(100.0, 0.0), (100.0, -1.0), (-1.0, 20.0),
                                            (1e-6, 1e-7), (5e-7, 20.0)])
def test_invalid_stepping_rejected(duration, step):
    with pytest.raises(ValueError):
        step_offsets(duration, step)


def test_propagate_drives_handler_in_order(ardusat):
    calls = []
    end = START + timedelta(seconds=130)
    OrbitPropagator(ardusat).propagate(START, end, 20.0, lambda s, last: calls.append((s, last)))

    epochs = [state.epoch for state, _ in calls]
    assert len(calls) == 8
    assert epochs[0] == START
    assert epochs[-1] == end
    assert all(b > a for a, b in zip(epochs, epochs[1:]))
    assert [last for _, last in calls] == [False] * 7 + [True]


def test_one_microsecond_duration_keeps_start_and_end():
    assert step_offsets(1e-6, 20.0) == [0.0, 1e-6]


def test_microsecond_steps_give_distinct_epochs(ardusat):
    calls = []
    end = START + timedelta(microseconds=2)
    OrbitPropagator(ardusat).propagate(START, end, 1e-6, lambda s, last: calls.append(s))

    epochs = [state.epoch for state in calls]
    assert epochs == [START, START + timedelta(microseconds=1), end]


def test_sub_microsecond_step_rejected(ardusat):
    end = START + timedelta(microseconds=2)
    with pytest.raises(ValueError):
        OrbitPropagator(ardusat).propagate(START, end, 1e-7, lambda s, last: None)


def test_propagate_single_state_when_start_equals_end(ardusat):
    calls = []
    OrbitPropagator(ardusat).propagate(START, START, 20.0, lambda s, last: calls.append((s, last)))
    assert len(calls) == 1
    assert calls[0][1] is True


def test_state_is_inertial_and_leo(ardusat):
    state = OrbitPropagator(ardusat).state_at(START)
    assert isinstance(state.position, InertialPosition)
    assert state.position.epoch == state.epoch == START
    radius = np.linalg.norm(state.position.vector_km)
    speed = np.linalg.norm(state.velocity)
    assert 6700.0 < radius < 6850.0
    assert 7.5 < speed < 7.8


def test_naive_epoch_is_treated_as_utc(ardusat):
    propagator = OrbitPropagator(ardusat)
    naive = propagator.state_at(START.replace(tzinfo=None))
    aware = propagator.state_at(START)
    assert naive.epoch == aware.epoch
    np.testing.assert_allclose(naive.position.vector_km, aware.position.vector_km)


class FailingSatrec:
    def sgp4(self, jd, fr):
        nan = float('nan')
        return 6, (nan, nan, nan), (nan, nan, nan)


class NanSatrec:
    def sgp4(self, jd, fr):
        nan = float('nan')
        return 0, (nan, 0.0, 0.0), (0.0, 0.0, 0.0)


def test_sgp4_error_raises_propagation_error(ardusat):
    propagator = OrbitPropagator(ardusat)
    propagator.satrec = FailingSatrec()
    with pytest.raises(PropagationError) as excinfo:
        propagator.state_at(START)
    assert excinfo.value.epoch == START
    assert "decayed" in excinfo.value.reason


def test_non_finite_state_raises_propagation_error(ardusat):
    propagator = OrbitPropagator(ardusat)
    propagator.satrec = NanSatrec()
    with pytest.raises(PropagationError):
        propagator.state_at(START)
