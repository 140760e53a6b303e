"""Route generation endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, status

from ...models.domain import RouteRequest
from ...schemas.routing import FingerprintHistoryResponse, GenerateRouteRequest, GenerateRouteResponse
from ...services.export.geojson import route_result_to_feature_collection, save_route_geojson
from ...services.outputs.routing_formatter import error_to_response, result_to_response
from ...services.routing import service as routing_service
from ...services.routing.errors import RouteErrorKind, RouteGenerationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["routes"])


def _to_core_request(payload: GenerateRouteRequest) -> RouteRequest:
    return RouteRequest(
        lat=payload.lat,
        lng=payload.lng,
        minutes=routing_service.clamp_minutes(payload.minutes),
        hilliness=payload.hilliness,
        seed=payload.seed,
        locked_seeds=frozenset(payload.locked_seeds or ()),
    )


async def _run(payload: GenerateRouteRequest) -> routing_service.RouteOutcome:
    try:
        return await routing_service.generate_route(_to_core_request(payload))
    except Exception as exc:
        logger.exception(f"Unexpected error generating route: {exc}")
        return routing_service.RouteOutcome(error=RouteGenerationError(RouteErrorKind.UNAVAILABLE, detail=str(exc)))


@router.post("/generate-route", response_model=GenerateRouteResponse, status_code=status.HTTP_200_OK)
async def generate(payload: GenerateRouteRequest) -> GenerateRouteResponse:
    outcome = await _run(payload)
    if not outcome.ok:
        return error_to_response(outcome.error)
    return result_to_response(outcome.result)


@router.post("/generate-route/geojson", status_code=status.HTTP_200_OK)
async def generate_geojson(
    payload: GenerateRouteRequest,
    save: bool = Query(default=False, description="Also write the route under the data root's exports directory."),
) -> dict:
    outcome = await _run(payload)
    if not outcome.ok:
        return error_to_response(outcome.error).model_dump()
    collection = route_result_to_feature_collection(outcome.result)
    if save:
        path = save_route_geojson(outcome.result)
        logger.info(f"Saved route {outcome.result.fingerprint} to {path}")
        collection["saved_to"] = str(path)
    return collection


@router.get("/fingerprints", response_model=FingerprintHistoryResponse)
def list_fingerprints() -> FingerprintHistoryResponse:
    history = routing_service.get_history()
    return FingerprintHistoryResponse(capacity=history.capacity, fingerprints=history.get_all())


@router.delete("/fingerprints", status_code=status.HTTP_204_NO_CONTENT)
def clear_fingerprints() -> None:
    routing_service.get_history().clear()
