"""Fake OpenRouteService responses shared by the route generation tests."""

from __future__ import annotations

import json
from typing import Callable

import httpx

from random_walk.services.routing.ors_client import ORSClient

ORIGIN_LAT = 37.7749
ORIGIN_LNG = -122.4194

# (d_lat, d_lng) offsets of a small closed loop, ~170 m across.
_LOOP_OFFSETS = [
    (0.0, 0.0),
    (0.0005, 0.0),
    (0.001, 0.0),
    (0.0015, 0.0005),
    (0.0015, 0.001),
    (0.001, 0.0015),
    (0.0005, 0.0015),
    (0.0, 0.001),
    (0.0, 0.0005),
    (0.0, 0.0),
]


def loop_coordinates(
    lat: float = ORIGIN_LAT,
    lng: float = ORIGIN_LNG,
    elevations: list[float] | None = None,
    shift: float = 0.0,
) -> list[list[float]]:
    coords = []
    for idx, (d_lat, d_lng) in enumerate(_LOOP_OFFSETS):
        point = [round(lng + d_lng + shift, 6), round(lat + d_lat + shift, 6)]
        if elevations is not None:
            point.append(elevations[idx % len(elevations)])
        coords.append(point)
    return coords


def ors_payload(
    coordinates: list[list[float]] | None = None,
    distance: float = 2010.0,
    duration: float = 1500.0,
    ascent: float | None = None,
    descent: float | None = None,
    bbox: list[float] | None = None,
) -> dict:
    coordinates = coordinates or loop_coordinates(elevations=[10.0])
    lngs = [point[0] for point in coordinates]
    lats = [point[1] for point in coordinates]
    properties: dict = {
        "summary": {"distance": distance, "duration": duration},
        "segments": [
            {
                "steps": [
                    {"instruction": "Head north", "distance": distance / 2, "duration": duration / 2},
                    {"instruction": "Turn right", "distance": distance / 2, "duration": duration / 2},
                ]
            },
            {"steps": [{"instruction": "Arrive", "distance": 0, "duration": 0}]},
        ],
    }
    if ascent is not None:
        properties["ascent"] = ascent
    if descent is not None:
        properties["descent"] = descent
    return {
        "type": "FeatureCollection",
        "bbox": bbox or [min(lngs), min(lats), 0, max(lngs), max(lats), 50],
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "LineString", "coordinates": coordinates},
                "properties": properties,
            }
        ],
    }


class ProviderStub:
    """Records every request body and answers through ``handler(body)``."""

    def __init__(self, handler: Callable[[dict], httpx.Response]) -> None:
        self.handler = handler
        self.bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.bodies.append(body)
        return self.handler(body)

    @property
    def seeds(self) -> list[int]:
        return [body["options"]["round_trip"]["seed"] for body in self.bodies]

    def client(self) -> ORSClient:
        return ORSClient(api_key="test-key", base_url="https://ors.test/route", transport=httpx.MockTransport(self))


def respond(payload: dict | None = None, status: int = 200) -> Callable[[dict], httpx.Response]:
    return lambda body: httpx.Response(status, json=payload if payload is not None else {})
