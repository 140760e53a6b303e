"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Sequence

from shapely.geometry import LineString

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance in metres between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def bbox_diagonal_m(bbox: Sequence[float]) -> float:
    """Great-circle length between the south-west and north-east corners of ``[minLon, minLat, maxLon, maxLat]``."""

    min_lon, min_lat, max_lon, max_lat = bbox[:4]
    return haversine_m(min_lat, min_lon, max_lat, max_lon)


def bbox_from_geometry(coordinates: Sequence[Sequence[float]]) -> tuple[float, float, float, float]:
    """Planar bounding box of a ``[lon, lat, (ele)]`` line."""

    if len(coordinates) == 1:
        lon, lat = coordinates[0][0], coordinates[0][1]
        return (lon, lat, lon, lat)
    line = LineString([(point[0], point[1]) for point in coordinates])
    min_lon, min_lat, max_lon, max_lat = line.bounds
    return (min_lon, min_lat, max_lon, max_lat)


def compute_ascent_descent(coordinates: Sequence[Sequence[float]]) -> tuple[float, float]:
    """Sum elevation gain and loss along a ``[lon, lat, ele]`` line.

    Only consecutive pairs where both points carry an elevation contribute;
    a point without elevation is skipped and comparison resumes at the next
    pair that has data on both sides.
    """

    ascent = 0.0
    descent = 0.0
    for previous, current in zip(coordinates, coordinates[1:]):
        if len(previous) < 3 or len(current) < 3:
            continue
        if previous[2] is None or current[2] is None:
            continue
        delta = current[2] - previous[2]
        if delta > 0:
            ascent += delta
        else:
            descent += -delta
    return ascent, descent
