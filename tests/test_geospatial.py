import pytest

from random_walk.services.geospatial import (
    bbox_diagonal_m,
    bbox_from_geometry,
    compute_ascent_descent,
    haversine_m,
)


def test_haversine_london_to_paris():
    dist = haversine_m(51.5074, -0.1278, 48.8566, 2.3522)
    assert 340_000 < dist < 347_000


def test_haversine_identical_points_is_zero():
    assert haversine_m(37.7749, -122.4194, 37.7749, -122.4194) == pytest.approx(0.0, abs=0.1)


def test_haversine_short_distance():
    # ~111 m for 0.001 degrees of latitude
    dist = haversine_m(37.7749, -122.4194, 37.7759, -122.4194)
    assert 100 < dist < 120


def test_bbox_diagonal_small_box():
    diag = bbox_diagonal_m((-122.42, 37.77, -122.41, 37.78))
    assert 1000 < diag < 2000


def test_bbox_diagonal_zero_sized_box():
    assert bbox_diagonal_m((-122.42, 37.77, -122.42, 37.77)) == pytest.approx(0.0, abs=0.1)


def test_bbox_from_geometry_ignores_elevation():
    coords = [[-122.42, 37.77, 5], [-122.40, 37.79, 50], [-122.41, 37.76, 1]]
    assert bbox_from_geometry(coords) == pytest.approx((-122.42, 37.76, -122.40, 37.79))


def test_ascent_descent_sums_gain_and_loss():
    coords = [[0, 0, 100], [0, 0, 120], [0, 0, 110], [0, 0, 130], [0, 0, 125]]
    ascent, descent = compute_ascent_descent(coords)
    assert ascent == 40  # +20 +20
    assert descent == 15  # -10 -5


def test_ascent_descent_flat_profile():
    assert compute_ascent_descent([[0, 0, 50], [0, 0, 50], [0, 0, 50]]) == (0, 0)


def test_ascent_descent_without_elevation():
    assert compute_ascent_descent([[0, 0], [0, 0], [0, 0]]) == (0, 0)


def test_ascent_descent_skips_points_missing_elevation():
    coords = [[0, 0], [0, 0, 100], [0, 0], [0, 0, 130], [0, 0, 140], [0, 0, 120]]
    ascent, descent = compute_ascent_descent(coords)
    assert ascent == 10
    assert descent == 20
