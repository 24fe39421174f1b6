"""
orbitmag: geomagnetic field along a low-Earth orbit.

Propagates a satellite from its two-line element set, converts each sample
to a geodetic fix and tabulates the local geomagnetic field.
"""

__version__ = "0.1.0"
