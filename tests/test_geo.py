"""Test the geodesy helpers."""
import math
import pytest
from hazards.geo import (bounding_box, destination_point, haversine_km, haversine_m, in_box,
                         rhumb_bearing_deg, rhumb_destination, rhumb_distance_m)

LONDON = (51.5074, -0.1278)
PARIS = (48.8566, 2.3522)


def test_haversine_known_distance():
    """London to Paris is about 344 km on a 6371 km sphere."""
    assert haversine_km(LONDON, PARIS) == pytest.approx(343.5, abs=1.0)
    assert haversine_m(LONDON, LONDON) == 0.0


def test_haversine_is_symmetric():
    assert haversine_m(LONDON, PARIS) == pytest.approx(haversine_m(PARIS, LONDON))


def test_rhumb_bearing_cardinal_directions():
    assert rhumb_bearing_deg((0.0, 0.0), (0.0, 1.0)) == pytest.approx(90.0)
    assert rhumb_bearing_deg((0.0, 0.0), (1.0, 0.0)) == pytest.approx(0.0)
    assert rhumb_bearing_deg((0.0, 0.0), (-1.0, 0.0)) == pytest.approx(180.0)
    assert rhumb_bearing_deg((0.0, 0.0), (0.0, -1.0)) == pytest.approx(270.0)


def test_rhumb_destination_lands_on_target():
    """Travelling the full rhumb distance on the rhumb bearing reaches the destination."""
    d = rhumb_distance_m(LONDON, PARIS)
    b = rhumb_bearing_deg(LONDON, PARIS)
    lat, lon = rhumb_destination(LONDON, d, b)
    assert lat == pytest.approx(PARIS[0], abs=1e-6)
    assert lon == pytest.approx(PARIS[1], abs=1e-6)


def test_rhumb_distance_close_to_great_circle_for_short_hops():
    a = (40.0, -74.0)
    b = (40.01, -73.99)
    assert rhumb_distance_m(a, b) == pytest.approx(haversine_m(a, b), rel=1e-4)


def test_rhumb_crosses_antimeridian_the_short_way():
    a = (10.0, 179.5)
    b = (10.0, -179.5)
    assert rhumb_bearing_deg(a, b) == pytest.approx(90.0)
    assert rhumb_distance_m(a, b) < 120_000
    lat, lon = rhumb_destination(a, rhumb_distance_m(a, b), 90.0)
    assert lon == pytest.approx(-179.5, abs=1e-6)


def test_destination_point_distance():
    p = destination_point(LONDON, 1500, 45)
    assert haversine_m(LONDON, p) == pytest.approx(1500, abs=0.01)


def test_bounding_box_widens_longitude_with_latitude():
    """At 60 degrees north a degree of longitude is half as long, so the box is twice as wide."""
    min_lat, max_lat, min_lon, max_lon = bounding_box((60.0, 10.0), 1000)
    assert max_lat - min_lat == pytest.approx(2 * 1000 / 111320)
    assert max_lon - min_lon == pytest.approx(2 * 1000 / (111320 * math.cos(math.radians(60))))
    assert (max_lon - min_lon) == pytest.approx(2 * (max_lat - min_lat), rel=1e-6)


def test_in_box():
    box = bounding_box((0.0, 0.0), 100)
    assert in_box((0.0, 0.0), box)
    assert in_box(destination_point((0.0, 0.0), 90, 0), box)
    assert not in_box(destination_point((0.0, 0.0), 150, 90), box)


def test_bounding_box_wraps_at_antimeridian():
    center = (10.0, 179.9995)
    box = bounding_box(center, 100)
    min_lon, max_lon = box[2], box[3]
    assert min_lon > max_lon
    assert -180.0 <= max_lon < -179.99
    east = destination_point(center, 80, 90)
    assert east[1] < 0
    assert in_box(east, box)
    assert in_box(destination_point(center, 80, 270), box)
    assert not in_box((10.0, 0.0), box)
    assert not in_box((10.0, -179.9), box)


def test_bounding_box_near_pole_covers_every_longitude():
    box = bounding_box((89.9999, 0.0), 5000)
    assert box[2:] == (-180.0, 180.0)
    assert in_box((89.99, 120.0), box)
