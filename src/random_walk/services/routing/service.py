"""Route generation orchestration service."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Iterable, Optional

from ...config import settings
from ...models.domain import RouteRequest, RouteResult
from .demo import demo_route_result
from .errors import RouteErrorKind, RouteGenerationError
from .fetcher import fetch_all
from .fingerprint import FingerprintHistory, build_history, compute_fingerprint
from .ors_client import ORSClient
from .scoring import hilliness_label, rejected_count, select_with_fallback

logger = logging.getLogger(__name__)

MAX_SEED = 2_147_483_647

_history: FingerprintHistory | None = None


def get_history() -> FingerprintHistory:
    """Process-wide fingerprint history, built from settings on first use."""
    global _history
    if _history is None:
        _history = build_history()
    return _history


def reset_history(history: FingerprintHistory | None = None) -> None:
    global _history
    _history = history


@dataclass(slots=True)
class RouteOutcome:
    """Either a selected route or a taxonomy error, never both."""

    result: Optional[RouteResult] = None
    error: Optional[RouteGenerationError] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def clamp_minutes(minutes: float) -> float:
    return min(settings.max_walk_minutes, max(settings.min_walk_minutes, minutes))


def target_distance_for(minutes: float) -> float:
    """Loop length for a walk of ``minutes`` at the configured walking speed."""
    return max(minutes * 60 * settings.walking_speed_mps, settings.min_route_length_m)


def generate_seeds(
    count: int,
    fixed_seed: int | None = None,
    avoid: Iterable[int] = (),
    rng: random.Random | None = None,
) -> list[int]:
    """``count`` distinct seeds, ``fixed_seed`` first, none drawn from ``avoid``."""
    rng = rng or random.Random()
    avoided = set(avoid)
    seeds: list[int] = []
    if fixed_seed is not None:
        seeds.append(fixed_seed)
    while len(seeds) < count:
        seed = rng.randrange(MAX_SEED)
        if seed not in avoided and seed not in seeds:
            seeds.append(seed)
    return seeds


async def _select_route(
    client: ORSClient,
    request: RouteRequest,
    target_distance_m: float,
    seeds: list[int],
) -> RouteResult:
    candidates = await fetch_all(client, request.lng, request.lat, target_distance_m, seeds, request.hilliness)
    best, pass_name = select_with_fallback(
        candidates, request.hilliness, target_distance_m, request.lat, request.lng
    )
    if best is None:
        logger.warning(f"No viable candidate among {len(candidates)} after relaxed pass")
        raise RouteGenerationError(RouteErrorKind.NO_VIABLE_CANDIDATE)

    logger.info(
        f"Selected seed {best.seed} on {pass_name} pass (score={best.score:.2f}, "
        f"{rejected_count(candidates)}/{len(candidates)} rejected)"
    )
    return RouteResult(
        candidate=best,
        hilliness_label=hilliness_label(best.ascent_per_km),
        target_distance_m=target_distance_m,
        fingerprint=compute_fingerprint(best.geometry),
    )


async def generate_route(
    request: RouteRequest,
    *,
    client: ORSClient | None = None,
    history: FingerprintHistory | None = None,
    rng: random.Random | None = None,
) -> RouteOutcome:
    """Produce one closed walking loop for ``request``.

    Taxonomy failures are returned in the outcome rather than raised. A route
    whose fingerprint is already in history is regenerated with fresh seeds
    up to ``settings.max_dedup_retries`` times; the final attempt is accepted
    even when it repeats.
    """
    target_distance_m = target_distance_for(request.minutes)
    history = history if history is not None else get_history()
    rng = rng or random.Random()

    owns_client = client is None
    if client is None:
        if not settings.ors_api_key:
            if settings.environment == "development":
                logger.warning("RW_ORS_API_KEY not set, returning demo fixture.")
                return RouteOutcome(result=demo_route_result(target_distance_m))
            logger.error("RW_ORS_API_KEY is not configured.")
            return RouteOutcome(error=RouteGenerationError(RouteErrorKind.CONFIGURATION))
        client = ORSClient()

    tried: set[int] = set(request.locked_seeds)
    try:
        result: RouteResult | None = None
        for attempt in range(settings.max_dedup_retries + 1):
            seeds = generate_seeds(
                settings.candidate_count,
                fixed_seed=request.seed if attempt == 0 else None,
                avoid=tried,
                rng=rng,
            )
            tried.update(seeds)
            result = await _select_route(client, request, target_distance_m, seeds)
            if attempt < settings.max_dedup_retries and history.is_duplicate(result.fingerprint):
                logger.info(f"Route {result.fingerprint} served recently, regenerating (attempt {attempt + 1})")
                continue
            break

        # File-backed histories write to disk; keep that off the event loop.
        await asyncio.to_thread(history.store, result.fingerprint)
        return RouteOutcome(result=result)
    except RouteGenerationError as exc:
        logger.warning(f"Route generation failed: {exc.kind.value} ({exc.detail or exc.message})")
        return RouteOutcome(error=exc)
    finally:
        if owns_client:
            await client.aclose()
