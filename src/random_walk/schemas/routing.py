"""Route generation request/response schemas and the provider response schema."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.domain import HillinessPreference


class GenerateRouteRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    minutes: float = Field(..., description="Requested walk duration; clamped to the configured range.")
    hilliness: HillinessPreference
    seed: Optional[int] = Field(default=None, ge=0, description="Fixed seed tried first.")
    locked_seeds: Optional[List[int]] = Field(
        default=None,
        description="Seeds that must not be used for the random candidates.",
    )


class RouteStepModel(BaseModel):
    instruction: str
    distance_m: float
    duration_s: float


class RouteCandidateModel(BaseModel):
    seed: int
    distance_m: float
    duration_s: float
    ascent_m: float
    descent_m: float
    ascent_per_km: float
    geometry: List[List[float]]
    bbox: List[float]
    steps: List[RouteStepModel]
    score: float


class RouteResultModel(BaseModel):
    candidate: RouteCandidateModel
    hilliness_label: str
    target_distance_m: float
    fingerprint: str


class GenerateRouteResponse(BaseModel):
    """Tagged outcome: ``ok`` with ``result``, or an error with its retryable flag."""

    ok: bool
    result: Optional[RouteResultModel] = None
    error: Optional[str] = None
    kind: Optional[str] = None
    retryable: Optional[bool] = None


class FingerprintHistoryResponse(BaseModel):
    capacity: int
    fingerprints: List[str]


# ---------------------------------------------------------------------------
# Provider (OpenRouteService GeoJSON directions) response


class ProviderStep(BaseModel):
    model_config = ConfigDict(extra="ignore")

    instruction: str = ""
    distance: float = Field(default=0.0, ge=0)
    duration: float = Field(default=0.0, ge=0)


class ProviderSegment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    steps: List[ProviderStep] = Field(default_factory=list)


class ProviderSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    distance: float = Field(default=0.0, ge=0)
    duration: float = Field(default=0.0, ge=0)


class ProviderProperties(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: ProviderSummary
    ascent: Optional[float] = None
    descent: Optional[float] = None
    segments: List[ProviderSegment] = Field(default_factory=list)


class ProviderGeometry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["LineString"] = "LineString"
    coordinates: List[List[float]]

    @field_validator("coordinates")
    @classmethod
    def _at_least_two_points(cls, value: List[List[float]]) -> List[List[float]]:
        if len(value) < 2:
            raise ValueError("route geometry needs at least two points")
        if any(len(point) < 2 for point in value):
            raise ValueError("every point needs longitude and latitude")
        return value


class ProviderFeature(BaseModel):
    model_config = ConfigDict(extra="ignore")

    geometry: ProviderGeometry
    properties: ProviderProperties
    bbox: Optional[List[float]] = None


class ProviderRouteCollection(BaseModel):
    """``FeatureCollection`` returned for one round-trip request."""

    model_config = ConfigDict(extra="ignore")

    type: Literal["FeatureCollection"] = "FeatureCollection"
    bbox: Optional[List[float]] = None
    features: List[ProviderFeature] = Field(default_factory=list)
