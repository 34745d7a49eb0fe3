from __future__ import annotations

import math

import pytest

from attendance_engine.geofence.model import GeofenceConfig, GeoPoint
from attendance_engine.geofence.validator import GeofenceValidator, planar_distance_meters

CENTER = GeoPoint(longitude=8.8362755, latitude=33.1245286)


@pytest.fixture
def validator():
    return GeofenceValidator(GeofenceConfig(center=CENTER, radius_meters=500))


@pytest.mark.parametrize("radius", [0, 1, 500, 10_000])
def test_center_is_always_inside(validator, radius):
    assert validator.is_within(CENTER, CENTER, radius)


def test_distance_scales_degrees_by_111km():
    p = GeoPoint(longitude=CENTER.longitude + 0.003, latitude=CENTER.latitude + 0.004)

    assert planar_distance_meters(p, CENTER) == pytest.approx(555.0)


def test_point_just_outside_radius_is_rejected(validator):
    p = GeoPoint(longitude=CENTER.longitude + 0.003, latitude=CENTER.latitude + 0.004)

    check = validator.check(p)

    assert check.within is False
    assert check.distance_meters == pytest.approx(555.0)


def test_point_inside_radius_is_accepted(validator):
    p = GeoPoint(longitude=CENTER.longitude + 0.001, latitude=CENTER.latitude - 0.002)

    assert validator.is_within(p)


def test_explicit_radius_overrides_configured_one(validator):
    p = GeoPoint(longitude=CENTER.longitude + 0.003, latitude=CENTER.latitude + 0.004)

    assert validator.is_within(p, radius_meters=600)


def test_nan_coordinates_land_outside(validator):
    check = validator.check(GeoPoint(longitude=math.nan, latitude=CENTER.latitude))

    assert check.within is False


def test_point_document_round_trip():
    doc = CENTER.to_document()

    assert doc == {"type": "Point", "coordinates": [CENTER.longitude, CENTER.latitude]}
    assert GeoPoint.from_document(doc) == CENTER
    assert GeoPoint.from_document(None) is None
