from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import math
import logging
from typing import Callable, Dict

import numpy as np

from orbitmag.exceptions import ConfigurationError
from orbitmag.models.frames import WGS84
from orbitmag.utils.time import is_leap_year

logger = logging.getLogger(__name__)

# Geomagnetic reference radius [km]
REFERENCE_RADIUS_KM = 6371.2

# IGRF-13 degree-1 Gauss coefficients at 2020.0 [nT] and secular variation [nT/yr]
DIPOLE_EPOCH = 2020.0
DIPOLE_G10, DIPOLE_G11, DIPOLE_H11 = -29404.8, -1450.9, 4652.5
DIPOLE_SV_G10, DIPOLE_SV_G11, DIPOLE_SV_H11 = 5.7, 7.4, -25.9


@dataclass(frozen=True)
class FieldElements:
    """Geomagnetic field vector and derived elements at one point."""
    x_nt: float  # north
    y_nt: float  # east
    z_nt: float  # down
    horizontal_nt: float
    total_nt: float
    inclination_deg: float
    declination_deg: float

    @classmethod
    def from_components(cls, x: float, y: float, z: float) -> 'FieldElements':
        h = math.hypot(x, y)
        return cls(
            x_nt=x,
            y_nt=y,
            z_nt=z,
            horizontal_nt=h,
            total_nt=math.hypot(h, z),
            inclination_deg=math.degrees(math.atan2(z, h)),
            declination_deg=math.degrees(math.atan2(y, x)),
        )


# (longitude_deg, latitude_deg, altitude_km) -> FieldElements
FieldEvaluator = Callable[[float, float, float], FieldElements]


def geodetic_to_geocentric(latitude_deg: float, altitude_km: float):
    """
    Geocentric radius [km] and latitude [rad] of a geodetic point.

    Returns:
        (radius_km, geocentric_latitude_rad, geodetic_latitude_rad)
    """
    a = WGS84.radius_m / 1000.0
    e2 = WGS84.e2
    lat = math.radians(latitude_deg)
    sin_lat = math.sin(lat)
    n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
    rho = (n + altitude_km) * math.cos(lat)
    z = (n * (1.0 - e2) + altitude_km) * sin_lat
    return math.hypot(rho, z), math.atan2(z, rho), lat


class DipoleField:
    """
    Centred tilted dipole, the degree-1 part of the IGRF expansion.

    Coefficients are extrapolated linearly from the 2020.0 values.
    """

    def __init__(self, decimal_year: float):
        self.decimal_year = decimal_year
        dt = decimal_year - DIPOLE_EPOCH
        self.g10 = DIPOLE_G10 + DIPOLE_SV_G10 * dt
        self.g11 = DIPOLE_G11 + DIPOLE_SV_G11 * dt
        self.h11 = DIPOLE_H11 + DIPOLE_SV_H11 * dt

    def __call__(self, longitude_deg: float, latitude_deg: float,
                 altitude_km: float) -> FieldElements:
        r, lat_gc, lat_gd = geodetic_to_geocentric(latitude_deg, altitude_km)
        theta = math.pi / 2.0 - lat_gc
        phi = math.radians(longitude_deg)
        ratio3 = (REFERENCE_RADIUS_KM / r) ** 3

        sin_t, cos_t = math.sin(theta), math.cos(theta)
        equatorial = self.g11 * math.cos(phi) + self.h11 * math.sin(phi)

        b_r = 2.0 * ratio3 * (self.g10 * cos_t + equatorial * sin_t)
        b_theta = ratio3 * (self.g10 * sin_t - equatorial * cos_t)
        b_phi = ratio3 * (self.g11 * math.sin(phi) - self.h11 * math.cos(phi))

        # Local geocentric north/east/down
        x_gc, y, z_gc = -b_theta, b_phi, -b_r

        # Rotate into the geodetic horizon
        delta = lat_gd - lat_gc
        x = x_gc * math.cos(delta) + z_gc * math.sin(delta)
        z = z_gc * math.cos(delta) - x_gc * math.sin(delta)
        return FieldElements.from_components(x, y, z)


def decimal_year_to_datetime(decimal_year: float) -> datetime:
    """Inverse of the day-based decimal year, to the nearest day start."""
    year = int(math.floor(decimal_year))
    days = 366 if is_leap_year(year) else 365
    day_in_year = int(round((decimal_year - year) * days))
    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day_in_year)


class IgrfField:
    """IGRF spherical harmonic model through the igrf package."""

    def __init__(self, decimal_year: float):
        try:
            import igrf
        except ImportError as e:
            raise ConfigurationError(
                "The 'igrf' field model needs the igrf package: pip install orbitmag[igrf]"
            ) from e
        self._igrf = igrf
        self.decimal_year = decimal_year
        self.date = decimal_year_to_datetime(decimal_year).replace(tzinfo=None)

    def __call__(self, longitude_deg: float, latitude_deg: float,
                 altitude_km: float) -> FieldElements:
        mag = self._igrf.igrf(self.date, glat=latitude_deg, glon=longitude_deg,
                              alt_km=altitude_km)
        x = float(np.squeeze(mag["north"].values))
        y = float(np.squeeze(mag["east"].values))
        z = float(np.squeeze(mag["down"].values))
        return FieldElements.from_components(x, y, z)


_MODELS = {
    'dipole': DipoleField,
    'igrf': IgrfField,
}


class MagneticFieldModel:
    def __init__(self, model_type: str = 'dipole'):
        """
        Initialize magnetic field model.

        Args:
            model_type: 'dipole' or 'igrf'
        """
        if model_type not in _MODELS:
            raise ConfigurationError(f"Unknown field model: {model_type}")
        self.model_type = model_type
        self._cache: Dict[float, FieldEvaluator] = {}

    def for_year(self, decimal_year: float) -> FieldEvaluator:
        """Field evaluator for the given epoch, built once per decimal year."""
        evaluator = self._cache.get(decimal_year)
        if evaluator is None:
            logger.debug(f"Building {self.model_type} field model for {decimal_year:.4f}")
            evaluator = _MODELS[self.model_type](decimal_year)
            self._cache[decimal_year] = evaluator
        return evaluator
