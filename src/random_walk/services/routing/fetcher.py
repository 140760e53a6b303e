"""Concurrent acquisition of round-trip route candidates."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from pydantic import ValidationError

from ...config import settings
from ...models.domain import HillinessPreference, RouteCandidate, RouteStep
from ...schemas.routing import ProviderRouteCollection
from ..geospatial import bbox_from_geometry, compute_ascent_descent
from .errors import (
    ProviderError,
    RouteErrorKind,
    RouteGenerationError,
    classify_exception,
    representative_error,
)
from .ors_client import ORSClient

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FetchOutcome:
    """Result of one seed's fetch task: exactly one of ``candidate``/``error`` is set."""

    seed: int
    candidate: RouteCandidate | None = None
    error: RouteGenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.candidate is not None


def preference_hints(preference: HillinessPreference) -> dict[str, Any]:
    """Provider options that bias the round trip toward the requested steepness."""
    if preference is HillinessPreference.NO_HILL:
        return {
            "avoid_features": ["steps"],
            "profile_params": {"weightings": {"steepness_difficulty": -2}},
        }
    if preference is HillinessPreference.LITTLE_HILL:
        return {"avoid_features": ["steps"]}
    return {}


def _planar_bbox(raw: Sequence[float] | None) -> tuple[float, float, float, float] | None:
    if not raw:
        return None
    if len(raw) >= 6:
        # [minLon, minLat, minEle, maxLon, maxLat, maxEle]
        return (raw[0], raw[1], raw[3], raw[4])
    if len(raw) == 4:
        return (raw[0], raw[1], raw[2], raw[3])
    return None


def candidate_from_response(data: Any, seed: int) -> RouteCandidate:
    """Validate a provider payload and build a candidate from its first route.

    Raises ``RouteGenerationError`` with ``EMPTY_RESULT`` when the payload has
    no routes and ``UNAVAILABLE`` when it does not match the expected shape.
    """
    try:
        collection = ProviderRouteCollection.model_validate(data)
    except ValidationError as exc:
        raise RouteGenerationError(
            RouteErrorKind.UNAVAILABLE,
            detail=f"malformed provider response: {exc.error_count()} validation errors",
        ) from exc

    if not collection.features:
        raise RouteGenerationError(RouteErrorKind.EMPTY_RESULT)

    feature = collection.features[0]
    coordinates = feature.geometry.coordinates
    props = feature.properties

    ascent_m = props.ascent or 0.0
    descent_m = props.descent or 0.0
    if ascent_m == 0 and descent_m == 0:
        ascent_m, descent_m = compute_ascent_descent(coordinates)

    bbox = _planar_bbox(collection.bbox) or _planar_bbox(feature.bbox) or bbox_from_geometry(coordinates)

    steps = [
        RouteStep(instruction=step.instruction, distance_m=step.distance, duration_s=step.duration)
        for segment in props.segments
        for step in segment.steps
    ]

    return RouteCandidate(
        seed=seed,
        distance_m=props.summary.distance,
        duration_s=props.summary.duration,
        ascent_m=ascent_m,
        descent_m=descent_m,
        geometry=[list(point) for point in coordinates],
        bbox=bbox,
        steps=steps,
    )


def _backoff_for(attempt: int, backoff_seconds: Sequence[float]) -> float:
    if attempt <= 0 or not backoff_seconds:
        return 0.0
    return backoff_seconds[min(attempt - 1, len(backoff_seconds) - 1)]


async def fetch_one(
    client: ORSClient,
    lng: float,
    lat: float,
    target_distance_m: float,
    seed: int,
    preference: HillinessPreference,
    *,
    timeout: float | None = None,
    max_retries: int | None = None,
    backoff_seconds: Sequence[float] | None = None,
) -> FetchOutcome:
    """Fetch one candidate, retrying transient failures with a fixed backoff.

    Rate limiting and empty results end the task immediately. Every attempt
    is bounded by ``timeout`` seconds; the in-flight call is cancelled when
    it expires.
    """
    timeout = timeout if timeout is not None else settings.ors_timeout_seconds
    max_retries = max_retries if max_retries is not None else settings.ors_max_retries
    backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.ors_backoff_seconds
    hints = preference_hints(preference)

    last_error: RouteGenerationError | None = None
    for attempt in range(max_retries + 1):
        delay = _backoff_for(attempt, backoff_seconds)
        if delay > 0:
            logger.debug(f"Seed {seed}: retrying in {delay:.1f}s (attempt {attempt}/{max_retries})")
            await asyncio.sleep(delay)

        try:
            data = await asyncio.wait_for(
                client.fetch_round_trip(lng, lat, target_distance_m, seed, hints),
                timeout=timeout,
            )
            return FetchOutcome(seed=seed, candidate=candidate_from_response(data, seed))
        except asyncio.CancelledError:
            raise
        except ProviderError as exc:
            error = classify_exception(exc)
            if error.kind is RouteErrorKind.RATE_LIMITED:
                logger.warning(f"Seed {seed}: rate limited by provider")
                return FetchOutcome(seed=seed, error=error)
            last_error = error
        except RouteGenerationError as exc:
            if exc.kind is RouteErrorKind.EMPTY_RESULT:
                logger.warning(f"Seed {seed}: provider returned no routes")
                return FetchOutcome(seed=seed, error=exc)
            last_error = exc
        except Exception as exc:
            last_error = classify_exception(exc)

        logger.debug(f"Seed {seed}: attempt {attempt + 1} failed ({last_error.detail})")

    logger.warning(f"Seed {seed}: giving up after {max_retries + 1} attempts ({last_error.detail if last_error else 'unknown'})")
    return FetchOutcome(seed=seed, error=last_error or RouteGenerationError(RouteErrorKind.UNAVAILABLE))


async def fetch_all(
    client: ORSClient,
    lng: float,
    lat: float,
    target_distance_m: float,
    seeds: Sequence[int],
    preference: HillinessPreference,
    **fetch_options: Any,
) -> list[RouteCandidate]:
    """Fetch one candidate per seed concurrently and keep every success.

    All tasks run to completion. Partial failures are dropped silently; when
    nothing succeeds a single error is raised, preferring rate limiting over
    empty results over generic unavailability.
    """
    results = await asyncio.gather(
        *(
            fetch_one(client, lng, lat, target_distance_m, seed, preference, **fetch_options)
            for seed in seeds
        ),
        return_exceptions=True,
    )

    candidates: list[RouteCandidate] = []
    errors: list[RouteGenerationError] = []
    for seed, result in zip(seeds, results):
        if isinstance(result, BaseException):
            if isinstance(result, asyncio.CancelledError):
                raise result
            logger.error(f"Seed {seed}: fetch task crashed: {result!r}")
            errors.append(classify_exception(result))
        elif result.ok:
            candidates.append(result.candidate)
        else:
            errors.append(result.error)

    logger.info(f"Fetched {len(candidates)}/{len(seeds)} route candidates ({len(errors)} failed)")

    if not candidates:
        raise representative_error(errors)
    return candidates
