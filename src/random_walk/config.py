"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HillinessRangeSettings(BaseModel):
    """Ascent-per-km band for one hilliness preference."""

    min: float
    max: float
    midpoint: float


def _default_hilliness_ranges() -> dict[str, HillinessRangeSettings]:
    return {
        "no_hill": HillinessRangeSettings(min=0, max=10, midpoint=5),
        "little_hill": HillinessRangeSettings(min=10, max=25, midpoint=17.5),
        "damon_hill": HillinessRangeSettings(min=25, max=80, midpoint=45),
    }


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="RW_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Random Walk Route API"
    api_prefix: str = "/api"
    environment: Literal["development", "test", "production"] = Field(
        default="production",
        description="Deployment environment. 'development' serves a demo route when no API key is set.",
    )
    data_root: Path = Field(default=Path("data"), description="Root directory for persisted state.")

    ors_api_key: Optional[str] = Field(
        default=None,
        description="OpenRouteService API key used for round-trip directions.",
    )
    ors_base_url: str = Field(
        default="https://api.openrouteservice.org/v2/directions/foot-walking/geojson",
        description="Directions endpoint returning GeoJSON round trips.",
    )
    ors_timeout_seconds: float = Field(default=4.0, gt=0.0)
    ors_max_retries: int = Field(default=2, ge=0)
    ors_backoff_seconds: tuple[float, ...] = Field(
        default=(0.5, 1.5),
        description="Fixed sleep before each retry; the last value is reused when retries outnumber entries.",
    )

    walking_speed_mps: float = Field(default=1.34, gt=0.0)
    min_walk_minutes: float = Field(default=5, gt=0)
    max_walk_minutes: float = Field(default=180, gt=0)
    min_route_length_m: float = Field(default=400, ge=0)
    candidate_count: int = Field(default=12, ge=1)

    distance_tolerance_fraction: float = Field(default=0.12, ge=0.0)
    relaxed_distance_tolerance_fraction: float = Field(default=0.24, ge=0.0)
    bbox_diagonal_max_factor: float = Field(default=2.2, gt=0.0)
    relaxed_bbox_diagonal_max_factor: float = Field(default=3.0, gt=0.0)
    start_end_max_distance_m: float = Field(default=150, ge=0.0)

    hilliness_ranges: dict[str, HillinessRangeSettings] = Field(default_factory=_default_hilliness_ranges)

    fingerprint_history_size: int = Field(default=10, ge=1)
    fingerprint_history_file: Optional[Path] = Field(
        default=None,
        description="Optional JSON file (relative to data_root) used to persist recent fingerprints.",
    )
    max_dedup_retries: int = Field(default=2, ge=0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("ors_api_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @field_validator("ors_backoff_seconds", mode="before")
    @classmethod
    def _parse_float_tuple_from_env(cls, value: Any) -> tuple[float, ...]:
        """Parse float tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(float(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(float(item) for item in parsed)
            except (json.JSONDecodeError, TypeError, ValueError):
                pass
            if "," in value:
                return tuple(float(item.strip()) for item in value.split(",") if item.strip())
            if value.strip():
                return (float(value.strip()),)
        return tuple()


settings = Settings()
