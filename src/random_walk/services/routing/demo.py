"""Fixed demo route for running without a provider API key."""

from __future__ import annotations

from ...models.domain import RouteCandidate, RouteResult, RouteStep

DEMO_SEED = 42

_DEMO_COORDINATES: list[list[float]] = [
    [-122.4194, 37.7749, 16],
    [-122.4189, 37.7755, 18],
    [-122.4180, 37.7762, 22],
    [-122.4170, 37.7768, 26],
    [-122.4158, 37.7773, 30],
    [-122.4145, 37.7778, 34],
    [-122.4132, 37.7782, 38],
    [-122.4120, 37.7785, 42],
    [-122.4108, 37.7780, 46],
    [-122.4098, 37.7773, 50],
    [-122.4090, 37.7765, 53],
    [-122.4085, 37.7755, 56],
    [-122.4082, 37.7745, 58],
    [-122.4080, 37.7735, 60],
    [-122.4083, 37.7725, 57],
    [-122.4088, 37.7716, 52],
    [-122.4095, 37.7708, 47],
    [-122.4105, 37.7702, 42],
    [-122.4116, 37.7698, 37],
    [-122.4128, 37.7696, 32],
    [-122.4140, 37.7698, 28],
    [-122.4152, 37.7702, 24],
    [-122.4162, 37.7708, 21],
    [-122.4170, 37.7716, 19],
    [-122.4176, 37.7725, 18],
    [-122.4180, 37.7733, 17],
    [-122.4184, 37.7738, 16],
    [-122.4188, 37.7743, 16],
    [-122.4192, 37.7746, 16],
    [-122.4194, 37.7749, 16],
]

_DEMO_STEPS: list[tuple[str, float, float]] = [
    ("Head north on Market Street", 180, 135),
    ("Turn left onto 5th Street", 250, 190),
    ("Turn right onto Mission Street", 320, 240),
    ("Continue onto Howard Street", 280, 210),
    ("Turn left onto 2nd Street", 200, 150),
    ("Turn right onto Folsom Street", 310, 230),
    ("Turn left onto 4th Street", 260, 195),
    ("Continue onto Market Street", 180, 135),
    ("Arrive at starting point", 120, 115),
]


def demo_route_result(target_distance_m: float) -> RouteResult:
    """Loop around downtown San Francisco, returned regardless of the requested origin."""
    candidate = RouteCandidate(
        seed=DEMO_SEED,
        distance_m=2100,
        duration_s=1600,
        ascent_m=45,
        descent_m=43,
        geometry=[list(point) for point in _DEMO_COORDINATES],
        bbox=(-122.4194, 37.7696, -122.4080, 37.7785),
        steps=[RouteStep(instruction=text, distance_m=dist, duration_s=dur) for text, dist, dur in _DEMO_STEPS],
        score=3.9,
    )
    return RouteResult(
        candidate=candidate,
        hilliness_label="Rolling 🟡",
        target_distance_m=target_distance_m,
        fingerprint=f"demo_fp_{DEMO_SEED}",
    )
