"""
Reference frame and geodesy transforms.

SGP4 produces positions in TEME, an inertially oriented frame tied to the
element set theory. Geodetic coordinates are only meaningful for a position
expressed in a frame that rotates with the Earth, so the conversion is two
explicit steps:

    InertialPosition --to_earth_fixed()--> EarthFixedPosition
    EarthFixedPosition --project_to_ellipsoid()--> GeodeticFix

The two position types are distinct and the projection refuses anything but
an EarthFixedPosition.
"""

from dataclasses import dataclass
from datetime import datetime
import math

import numpy as np
from skyfield.api import load, wgs84
from skyfield.framelib import itrs
from skyfield.sgp4lib import TEME

from orbitmag.exceptions import TransformError
from orbitmag.utils.validation import validate_vector

MAX_ITERATIONS = 20
LATITUDE_TOLERANCE_RAD = 1e-12


@dataclass(frozen=True)
class InertialPosition:
    """Position in the TEME frame."""
    vector_km: np.ndarray  # [x, y, z] km
    epoch: datetime


@dataclass(frozen=True)
class EarthFixedPosition:
    """Position in the ITRS (Earth-fixed) frame."""
    vector_km: np.ndarray  # [x, y, z] km
    epoch: datetime


@dataclass(frozen=True)
class GeodeticFix:
    """Geodetic coordinates above the reference ellipsoid."""
    altitude_km: float
    latitude_deg: float
    longitude_deg: float  # (-180, 180]


@dataclass(frozen=True)
class Ellipsoid:
    """Oblate spheroid given by equatorial radius and flattening."""
    radius_m: float
    flattening: float

    @classmethod
    def from_geoid(cls, geoid) -> 'Ellipsoid':
        return cls(radius_m=geoid.radius.m, flattening=1.0 / geoid.inverse_flattening)

    @property
    def e2(self) -> float:
        """First eccentricity squared."""
        return self.flattening * (2.0 - self.flattening)


WGS84 = Ellipsoid.from_geoid(wgs84)


def to_earth_fixed(position: InertialPosition, ts=None) -> EarthFixedPosition:
    """
    Rotate a TEME position into ITRS at its own epoch.

    Applies Earth rotation, precession, nutation and polar motion through
    skyfield's frame rotations (TEME -> GCRS -> ITRS).
    """
    if not isinstance(position, InertialPosition):
        raise TypeError(f"Expected InertialPosition, got {type(position).__name__}")
    ts = ts or load.timescale()
    t = ts.from_datetime(position.epoch)

    # rotation_at(t) maps GCRS into the frame; its transpose maps back
    r_gcrs = TEME.rotation_at(t).T @ np.asarray(position.vector_km, dtype=float)
    r_itrs = itrs.rotation_at(t) @ r_gcrs
    return EarthFixedPosition(vector_km=r_itrs, epoch=position.epoch)


def project_to_ellipsoid(position: EarthFixedPosition,
                         ellipsoid: Ellipsoid = WGS84) -> GeodeticFix:
    """
    Project an Earth-fixed position onto the reference ellipsoid.

    Latitude is found by fixed-point iteration on the geodetic latitude;
    altitude uses the form that stays finite at the poles.

    Args:
        position: Position in ITRS
        ellipsoid: Reference ellipsoid, WGS84 by default

    Returns:
        Geodetic fix with altitude in km and angles in degrees

    Raises:
        TypeError: If given an inertial position
        TransformError: On a degenerate position or non-convergence
    """
    if not isinstance(position, EarthFixedPosition):
        raise TypeError(
            f"Ellipsoid projection needs an EarthFixedPosition, got "
            f"{type(position).__name__}; rotate with to_earth_fixed() first"
        )
    if not validate_vector(position.vector_km):
        raise TransformError(position.epoch, f"degenerate position {position.vector_km!r}")

    x, y, z = (float(c) * 1000.0 for c in position.vector_km)
    a = ellipsoid.radius_m
    e2 = ellipsoid.e2

    lon = math.atan2(y, x)
    p = math.hypot(x, y)

    lat = math.atan2(z, p * (1.0 - e2))
    for _ in range(MAX_ITERATIONS):
        sin_lat = math.sin(lat)
        n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
        new_lat = math.atan2(z + n * e2 * sin_lat, p)
        if abs(new_lat - lat) < LATITUDE_TOLERANCE_RAD:
            lat = new_lat
            break
        lat = new_lat
    else:
        raise TransformError(position.epoch, "geodetic latitude did not converge")

    sin_lat = math.sin(lat)
    n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
    height_m = p * math.cos(lat) + z * sin_lat - n * (1.0 - e2 * sin_lat * sin_lat)

    lon_deg = math.degrees(lon)
    if lon_deg <= -180.0:
        lon_deg += 360.0
    return GeodeticFix(
        altitude_km=height_m / 1000.0,
        latitude_deg=math.degrees(lat),
        longitude_deg=lon_deg,
    )


class GeodeticTransformer:
    """Turns propagated states into geodetic fixes."""

    def __init__(self, ts=None, ellipsoid: Ellipsoid = WGS84):
        self.ts = ts or load.timescale()
        self.ellipsoid = ellipsoid

    def to_geodetic(self, state) -> GeodeticFix:
        """Convert one SpacecraftState to altitude/latitude/longitude."""
        earth_fixed = to_earth_fixed(state.position, self.ts)
        return project_to_ellipsoid(earth_fixed, self.ellipsoid)

