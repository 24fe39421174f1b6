"""
Physical models for geomagnetic field runs.
"""

from .elements import OrbitalElements, load_elements, parse_elements, select_closest
from .frames import (
    EarthFixedPosition,
    GeodeticFix,
    GeodeticTransformer,
    InertialPosition,
    project_to_ellipsoid,
    to_earth_fixed
)
from .magnetic_field import FieldElements, MagneticFieldModel
from .orbit import OrbitPropagator, SpacecraftState

__all__ = [
    'OrbitalElements',
    'load_elements',
    'parse_elements',
    'select_closest',
    'EarthFixedPosition',
    'GeodeticFix',
    'GeodeticTransformer',
    'InertialPosition',
    'project_to_ellipsoid',
    'to_earth_fixed',
    'FieldElements',
    'MagneticFieldModel',
    'OrbitPropagator',
    'SpacecraftState'
]
