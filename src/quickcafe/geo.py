"""Great-circle distance helpers."""

import math
from collections.abc import Sequence

import numpy as np

from quickcafe.entities import Coordinates

EARTH_RADIUS_METERS = 6_371_000.0
METERS_PER_DEGREE_LAT = 111_320.0


def haversine_meters(
    origin: Coordinates, lats: Sequence[float], lngs: Sequence[float]
) -> np.ndarray:
    """Distances in meters from origin to each (lat, lng) point."""
    lat1 = np.radians(origin.lat)
    lat2 = np.radians(np.asarray(lats, dtype=float))
    dlat = lat2 - lat1
    dlng = np.radians(np.asarray(lngs, dtype=float) - origin.lng)

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def bounding_box(center: Coordinates, radius_meters: float) -> tuple[float, float, float, float]:
    """Return (min_lat, max_lat, min_lng, max_lng) enclosing the radius.

    The longitude span is widened to the full range near the poles.
    """
    dlat = radius_meters / METERS_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(center.lat))
    dlng = 180.0 if cos_lat < 1e-6 else min(180.0, dlat / cos_lat)
    return (
        max(-90.0, center.lat - dlat),
        min(90.0, center.lat + dlat),
        center.lng - dlng,
        center.lng + dlng,
    )
