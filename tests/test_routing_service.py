import asyncio
import random
import threading
from pathlib import Path

import httpx
import pytest

from provider_stub import ORIGIN_LAT, ORIGIN_LNG, ProviderStub, loop_coordinates, ors_payload, respond
from random_walk.config import settings
from random_walk.models.domain import HillinessPreference, RouteRequest
from random_walk.persistence.filesystem import FileStorage
from random_walk.services.routing import service as routing_service
from random_walk.services.routing.errors import RouteErrorKind
from random_walk.services.routing.fingerprint import FingerprintHistory, JsonFingerprintHistory, compute_fingerprint

TARGET_M = 25 * 60 * 1.34


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "candidate_count", 2)
    monkeypatch.setattr(settings, "ors_backoff_seconds", (0.0, 0.0))
    monkeypatch.setattr(settings, "max_dedup_retries", 2)
    routing_service.reset_history(FingerprintHistory(capacity=10))
    yield
    routing_service.reset_history()


def _request(**overrides) -> RouteRequest:
    fields = dict(lat=ORIGIN_LAT, lng=ORIGIN_LNG, minutes=25, hilliness=HillinessPreference.NO_HILL)
    fields.update(overrides)
    return RouteRequest(**fields)


def _generate(stub: ProviderStub, request: RouteRequest, history: FingerprintHistory | None = None):
    async def run():
        client = stub.client()
        try:
            return await routing_service.generate_route(
                request, client=client, history=history, rng=random.Random(7)
            )
        finally:
            await client.aclose()

    return asyncio.run(run())


def test_target_distance_for_25_minutes():
    assert routing_service.target_distance_for(25) == pytest.approx(2010)


def test_target_distance_has_a_floor():
    assert routing_service.target_distance_for(1) == settings.min_route_length_m


def test_clamp_minutes():
    assert routing_service.clamp_minutes(1) == settings.min_walk_minutes
    assert routing_service.clamp_minutes(500) == settings.max_walk_minutes
    assert routing_service.clamp_minutes(42) == 42


def test_generate_seeds_puts_fixed_seed_first_and_avoids_locked():
    rng = random.Random(3)
    locked = {rng.randrange(routing_service.MAX_SEED) for _ in range(5)}
    seeds = routing_service.generate_seeds(12, fixed_seed=123, avoid=locked, rng=random.Random(3))

    assert seeds[0] == 123
    assert len(seeds) == 12
    assert len(set(seeds)) == 12
    assert not locked & set(seeds)


def test_no_hill_prefers_flat_candidate():
    flat = ors_payload(distance=TARGET_M, ascent=5 * TARGET_M / 1000, descent=5)
    hilly = ors_payload(
        coordinates=loop_coordinates(elevations=[10.0], shift=0.0003),
        distance=TARGET_M,
        ascent=30 * TARGET_M / 1000,
        descent=30,
    )

    def handler(body):
        seed = body["options"]["round_trip"]["seed"]
        return httpx.Response(200, json=hilly if seed == 1 else flat)

    outcome = _generate(ProviderStub(handler), _request(seed=1))

    assert outcome.ok
    result = outcome.result
    assert result.target_distance_m == pytest.approx(2010)
    assert result.candidate.ascent_per_km == pytest.approx(5)
    assert result.candidate.seed != 1
    assert result.hilliness_label.startswith("Flat")
    assert result.fingerprint == compute_fingerprint(result.candidate.geometry)


def test_result_fingerprint_is_recorded():
    history = FingerprintHistory(capacity=10)
    outcome = _generate(ProviderStub(respond(ors_payload(distance=TARGET_M))), _request(), history)

    assert history.get_all() == [outcome.result.fingerprint]


def test_duplicate_route_is_regenerated_then_accepted():
    payload = ors_payload(distance=TARGET_M)
    fingerprint = compute_fingerprint(payload["features"][0]["geometry"]["coordinates"])
    history = FingerprintHistory(capacity=10, initial=[fingerprint])
    stub = ProviderStub(respond(payload))

    outcome = _generate(stub, _request(seed=5), history)

    assert outcome.ok
    # Initial attempt plus two regenerations, two seeds each.
    assert len(stub.bodies) == 6
    assert len(set(stub.seeds)) == 6
    assert stub.seeds.count(5) == 1
    assert history.get_all() == [fingerprint, fingerprint]


def test_fresh_route_is_not_regenerated():
    history = FingerprintHistory(capacity=10, initial=["something-else"])
    stub = ProviderStub(respond(ors_payload(distance=TARGET_M)))

    _generate(stub, _request(), history)

    assert len(stub.bodies) == 2


def test_locked_seeds_are_never_requested():
    stub = ProviderStub(respond(ors_payload(distance=TARGET_M)))
    locked = frozenset(range(0, 10))

    _generate(stub, _request(locked_seeds=locked))

    assert not locked & set(stub.seeds)


def test_relaxed_pass_rescues_sprawling_routes():
    # Diagonal ~2.6x the expected radius: too big for strict, fine for relaxed.
    payload = ors_payload(distance=TARGET_M, bbox=[ORIGIN_LNG, ORIGIN_LAT - 0.0038, ORIGIN_LNG, ORIGIN_LAT + 0.0038])

    outcome = _generate(ProviderStub(respond(payload)), _request())

    assert outcome.ok


def test_no_viable_candidate():
    far = loop_coordinates(lat=36.0, lng=-121.0, elevations=[1.0])
    outcome = _generate(ProviderStub(respond(ors_payload(coordinates=far, distance=TARGET_M))), _request())

    assert not outcome.ok
    assert outcome.error.kind is RouteErrorKind.NO_VIABLE_CANDIDATE
    assert outcome.error.retryable


def test_rate_limited_batch_is_reported():
    outcome = _generate(ProviderStub(respond(status=429)), _request())

    assert outcome.error.kind is RouteErrorKind.RATE_LIMITED
    assert outcome.error.retryable


def test_empty_batch_is_not_retryable():
    outcome = _generate(ProviderStub(respond({"type": "FeatureCollection", "features": []})), _request())

    assert outcome.error.kind is RouteErrorKind.EMPTY_RESULT
    assert outcome.error.retryable is False


def test_demo_route_without_api_key_in_development(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "ors_api_key", None)
    monkeypatch.setattr(settings, "environment", "development")

    outcome = asyncio.run(routing_service.generate_route(_request()))

    assert outcome.ok
    assert outcome.result.candidate.seed == 42
    assert outcome.result.target_distance_m == pytest.approx(2010)


def test_missing_api_key_outside_development(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "ors_api_key", None)
    monkeypatch.setattr(settings, "environment", "production")

    outcome = asyncio.run(routing_service.generate_route(_request()))

    assert outcome.error.kind is RouteErrorKind.CONFIGURATION
    assert outcome.error.retryable is False


def test_route_is_served_when_history_cannot_be_saved(tmp_path: Path):
    blocker = tmp_path / "afile"
    blocker.write_text("", encoding="utf-8")
    history = JsonFingerprintHistory(blocker / "fingerprints.json", storage=FileStorage(root=tmp_path))

    outcome = _generate(ProviderStub(respond(ors_payload(distance=TARGET_M))), _request(), history)

    assert outcome.ok
    assert history.get_all() == [outcome.result.fingerprint]


class _ThreadRecordingHistory(FingerprintHistory):
    def __init__(self) -> None:
        super().__init__(capacity=10)
        self.store_threads: list[int] = []

    def store(self, fingerprint: str) -> None:
        self.store_threads.append(threading.get_ident())
        super().store(fingerprint)


def test_history_is_stored_off_the_event_loop_thread():
    history = _ThreadRecordingHistory()

    outcome = _generate(ProviderStub(respond(ors_payload(distance=TARGET_M))), _request(), history)

    assert outcome.ok
    assert history.store_threads
    assert threading.get_ident() not in history.store_threads
