"""Candidate scoring and best-route selection."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from ...config import settings
from ...models.domain import HillinessPreference, HillinessRange, RouteCandidate
from ..geospatial import bbox_diagonal_m, haversine_m

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScoringThresholds:
    tolerance_fraction: float = settings.distance_tolerance_fraction
    bbox_factor: float = settings.bbox_diagonal_max_factor
    start_end_max_m: float = settings.start_end_max_distance_m


STRICT_THRESHOLDS = ScoringThresholds()
RELAXED_THRESHOLDS = ScoringThresholds(
    tolerance_fraction=settings.relaxed_distance_tolerance_fraction,
    bbox_factor=settings.relaxed_bbox_diagonal_max_factor,
)


def hilliness_ranges() -> dict[HillinessPreference, HillinessRange]:
    return {
        HillinessPreference(name): HillinessRange(min=band.min, max=band.max, midpoint=band.midpoint)
        for name, band in settings.hilliness_ranges.items()
    }


def distance_deviation(distance_m: float, target_distance_m: float, tolerance_fraction: float) -> float:
    """Percent off target, or 0 while inside the tolerance band."""
    tolerance = tolerance_fraction * target_distance_m
    if target_distance_m - tolerance <= distance_m <= target_distance_m + tolerance:
        return 0.0
    return abs(distance_m - target_distance_m) / target_distance_m * 100


def score_candidate(
    candidate: RouteCandidate,
    preference: HillinessPreference,
    target_distance_m: float,
    origin_lat: float,
    origin_lng: float,
    tolerance_fraction: float = STRICT_THRESHOLDS.tolerance_fraction,
    bbox_factor: float = STRICT_THRESHOLDS.bbox_factor,
    start_end_max_m: float = STRICT_THRESHOLDS.start_end_max_m,
    ranges: Mapping[HillinessPreference, HillinessRange] | None = None,
) -> float:
    """Fitness of ``candidate`` for the request; lower is better, ``math.inf`` rejects.

    Does not touch ``candidate.score``.
    """
    deviation = distance_deviation(candidate.distance_m, target_distance_m, tolerance_fraction)

    if preference is HillinessPreference.NO_HILL:
        # Ascent dominates; distance only breaks ties.
        score = candidate.ascent_per_km * 10 + deviation
    else:
        band = (ranges or hilliness_ranges())[preference]
        score = abs(candidate.ascent_per_km - band.midpoint) + deviation

    first = candidate.geometry[0]
    last = candidate.geometry[-1]
    start_dist = haversine_m(origin_lat, origin_lng, first[1], first[0])
    end_dist = haversine_m(origin_lat, origin_lng, last[1], last[0])
    if start_dist > start_end_max_m or end_dist > start_end_max_m:
        score = math.inf

    expected_radius = target_distance_m / (2 * math.pi)
    if bbox_diagonal_m(candidate.bbox) > bbox_factor * expected_radius:
        score = math.inf

    return score


def select_best(
    candidates: Sequence[RouteCandidate],
    preference: HillinessPreference,
    target_distance_m: float,
    origin_lat: float,
    origin_lng: float,
    thresholds: ScoringThresholds = STRICT_THRESHOLDS,
) -> RouteCandidate | None:
    """Score every candidate in place and return the lowest finite score.

    Returns ``None`` when every candidate is rejected. Ties keep the earlier
    candidate.
    """
    ranges = hilliness_ranges()
    best: RouteCandidate | None = None
    for candidate in candidates:
        candidate.score = score_candidate(
            candidate,
            preference,
            target_distance_m,
            origin_lat,
            origin_lng,
            tolerance_fraction=thresholds.tolerance_fraction,
            bbox_factor=thresholds.bbox_factor,
            start_end_max_m=thresholds.start_end_max_m,
            ranges=ranges,
        )
        if math.isfinite(candidate.score) and (best is None or candidate.score < best.score):
            best = candidate
    return best


def select_with_fallback(
    candidates: Sequence[RouteCandidate],
    preference: HillinessPreference,
    target_distance_m: float,
    origin_lat: float,
    origin_lng: float,
    strict: ScoringThresholds = STRICT_THRESHOLDS,
    relaxed: ScoringThresholds = RELAXED_THRESHOLDS,
) -> tuple[RouteCandidate | None, str | None]:
    """Strict pass, then one relaxed pass over the same candidates.

    Returns the chosen candidate and the name of the pass that produced it.
    """
    best = select_best(candidates, preference, target_distance_m, origin_lat, origin_lng, strict)
    if best is not None:
        return best, "strict"

    logger.warning(f"All {len(candidates)} candidates rejected under strict thresholds; retrying relaxed")
    best = select_best(candidates, preference, target_distance_m, origin_lat, origin_lng, relaxed)
    if best is not None:
        return best, "relaxed"
    return None, None


def rejected_count(candidates: Iterable[RouteCandidate]) -> int:
    return sum(1 for candidate in candidates if candidate.is_rejected)


def hilliness_label(ascent_per_km: float) -> str:
    """Human-friendly steepness label for the stats panel."""
    if ascent_per_km <= 10:
        return "Flat 🟢"
    if ascent_per_km <= 25:
        return "Rolling 🟡"
    if ascent_per_km <= 40:
        return "Hilly 🟠"
    return "Very Hilly 🔴"
