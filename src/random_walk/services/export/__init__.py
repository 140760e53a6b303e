"""Export services."""

from .geojson import (
    route_result_to_feature,
    route_result_to_feature_collection,
    save_route_geojson,
)

__all__ = [
    "route_result_to_feature",
    "route_result_to_feature_collection",
    "save_route_geojson",
]
