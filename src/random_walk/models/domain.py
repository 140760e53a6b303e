"""Domain models for walking route candidates and results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

BBox = tuple[float, float, float, float]


class HillinessPreference(str, Enum):
    """Requested steepness of the generated loop."""

    NO_HILL = "no_hill"
    LITTLE_HILL = "little_hill"
    DAMON_HILL = "damon_hill"


@dataclass(slots=True, frozen=True)
class HillinessRange:
    min: float
    max: float
    midpoint: float


@dataclass(slots=True)
class RouteStep:
    instruction: str
    distance_m: float
    duration_s: float


@dataclass(slots=True)
class RouteCandidate:
    """One round trip returned by the directions provider.

    ``geometry`` holds ``[lon, lat]`` or ``[lon, lat, elevation]`` points in
    travel order. ``score`` stays 0 until a scoring pass writes it;
    ``math.inf`` marks a rejected candidate.
    """

    seed: int
    distance_m: float
    duration_s: float
    ascent_m: float
    descent_m: float
    geometry: List[List[float]]
    bbox: BBox
    steps: List[RouteStep] = field(default_factory=list)
    score: float = 0.0

    @property
    def ascent_per_km(self) -> float:
        return ascent_per_km(self.ascent_m, self.distance_m)

    @property
    def is_rejected(self) -> bool:
        return math.isinf(self.score)


def ascent_per_km(ascent_m: float, distance_m: float) -> float:
    """Ascent normalised by length, with a 100 m floor on the divisor."""
    return ascent_m / max(distance_m / 1000.0, 0.1)


@dataclass(slots=True)
class RouteRequest:
    """Validated request handed to the core by the HTTP layer."""

    lat: float
    lng: float
    minutes: float
    hilliness: HillinessPreference
    seed: Optional[int] = None
    locked_seeds: frozenset[int] = frozenset()


@dataclass(slots=True)
class RouteResult:
    candidate: RouteCandidate
    hilliness_label: str
    target_distance_m: float
    fingerprint: str
