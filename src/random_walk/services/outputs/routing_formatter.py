"""Serializers for route generation outcomes."""

from __future__ import annotations

from dataclasses import asdict

from ...models.domain import RouteResult
from ...schemas.routing import GenerateRouteResponse, RouteCandidateModel, RouteResultModel, RouteStepModel
from ..routing.errors import RouteGenerationError


def route_result_to_model(result: RouteResult) -> RouteResultModel:
    candidate = result.candidate
    return RouteResultModel(
        candidate=RouteCandidateModel(
            seed=candidate.seed,
            distance_m=candidate.distance_m,
            duration_s=candidate.duration_s,
            ascent_m=candidate.ascent_m,
            descent_m=candidate.descent_m,
            ascent_per_km=candidate.ascent_per_km,
            geometry=candidate.geometry,
            bbox=list(candidate.bbox),
            steps=[RouteStepModel(**asdict(step)) for step in candidate.steps],
            score=candidate.score,
        ),
        hilliness_label=result.hilliness_label,
        target_distance_m=result.target_distance_m,
        fingerprint=result.fingerprint,
    )


def error_to_response(error: RouteGenerationError) -> GenerateRouteResponse:
    return GenerateRouteResponse(
        ok=False,
        error=error.message,
        kind=error.kind.value,
        retryable=error.retryable,
    )


def result_to_response(result: RouteResult) -> GenerateRouteResponse:
    return GenerateRouteResponse(ok=True, result=route_result_to_model(result))
