"""Async HTTP client for OpenRouteService round-trip directions."""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from ...config import settings
from .errors import ProviderError

logger = logging.getLogger(__name__)


def _format_provider_error(resp: httpx.Response) -> str:
    """Best-effort decode of ORS JSON error payloads."""
    try:
        data = resp.json()
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str):
                return error
    except ValueError:
        pass
    body = (resp.text or "").strip().replace("\n", " ")
    return body[:240]


class ORSClient:
    """Issues ``round_trip`` directions requests.

    A single ``httpx.AsyncClient`` is shared by all concurrent candidate
    requests; every call builds its own body so tasks never share state.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.ors_api_key
        if not self.api_key:
            raise ValueError("ORS API key is not configured.")
        self.base_url = base_url or settings.ors_base_url
        self.timeout = timeout if timeout is not None else settings.ors_timeout_seconds
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            headers={
                "Authorization": self.api_key,
                "Content-Type": "application/json",
                "Accept": "application/json, application/geo+json",
            },
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ORSClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def fetch_round_trip(
        self,
        lng: float,
        lat: float,
        target_distance_m: float,
        seed: int,
        hints: dict[str, Any],
    ) -> dict:
        """Request one closed loop starting at (lng, lat).

        Raises ``ProviderError`` for any non-2xx status; transport failures
        propagate as ``httpx`` exceptions.
        """
        points = waypoint_count(target_distance_m)
        options: dict[str, Any] = {
            "round_trip": {
                "length": target_distance_m,
                "points": points,
                "seed": seed,
            },
            **hints,
        }
        body = {
            "coordinates": [[lng, lat]],
            "options": options,
            "elevation": True,
            "instructions": True,
            "instructions_format": "text",
            "units": "m",
        }

        response = await self._client.post(self.base_url, json=body)
        if response.status_code >= 400:
            raise ProviderError(response.status_code, _format_provider_error(response))
        logger.debug(f"ORS round trip seed={seed} points={points} status={response.status_code}")
        return response.json()


def check_health(api_key: str | None = None) -> bool:
    """Report whether directions requests can be issued at all."""
    return bool(api_key or settings.ors_api_key)


def waypoint_count(target_distance_m: float) -> int:
    """Number of round-trip control points: one per 500 m, kept within 3..8."""
    return min(8, max(3, math.floor(target_distance_m / 500 + 0.5)))
