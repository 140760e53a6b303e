"""GeoJSON export utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List

from ...models.domain import RouteResult
from ...persistence.filesystem import FileStorage


def route_result_to_feature(result: RouteResult) -> Dict[str, Any]:
    """Convert a selected route into a GeoJSON ``LineString`` feature.

    Coordinates keep the provider's ``[lon, lat, elevation]`` order.
    """
    candidate = result.candidate
    return {
        "type": "Feature",
        "bbox": list(candidate.bbox),
        "geometry": {
            "type": "LineString",
            "coordinates": candidate.geometry,
        },
        "properties": {
            "seed": candidate.seed,
            "fingerprint": result.fingerprint,
            "distance_m": candidate.distance_m,
            "duration_s": candidate.duration_s,
            "ascent_m": candidate.ascent_m,
            "descent_m": candidate.descent_m,
            "ascent_per_km": round(candidate.ascent_per_km, 2),
            "hilliness": result.hilliness_label,
            "target_distance_m": result.target_distance_m,
            "instructions": [step.instruction for step in candidate.steps],
        },
    }


def route_result_to_feature_collection(result: RouteResult) -> Dict[str, Any]:
    features: List[Dict[str, Any]] = [route_result_to_feature(result)]
    return {
        "type": "FeatureCollection",
        "bbox": list(result.candidate.bbox),
        "features": features,
    }


def save_route_geojson(result: RouteResult, storage: FileStorage | None = None) -> Path:
    """Write the route under ``<data_root>/exports`` and return the file path."""
    storage = storage or FileStorage()
    path = storage.export_path(prefix=f"route_{result.fingerprint}")
    storage.write_json(path, route_result_to_feature_collection(result))
    return path
