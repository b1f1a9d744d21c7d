"""Unit tests for great-circle distance helpers."""

import pytest

from patrol_zones.lib.geocoder.distance import haversine_meters, meters_to_degrees, validate_coordinates


class TestHaversine:
    def test_same_point_is_zero(self) -> None:
        assert haversine_meters(-16.39, -71.54, -16.39, -71.54) == 0.0

    def test_one_degree_of_latitude(self) -> None:
        assert haversine_meters(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-3)

    def test_symmetric(self) -> None:
        a = haversine_meters(-16.39, -71.545, -16.38, -71.535)
        b = haversine_meters(-16.38, -71.535, -16.39, -71.545)
        assert a == pytest.approx(b)
        assert 1_400 < a < 1_600


class TestMetersToDegrees:
    def test_zero_meters(self) -> None:
        assert meters_to_degrees(0, -16.4) == 0.0

    def test_longitude_delta_spans_the_radius(self) -> None:
        degrees = meters_to_degrees(1000, -16.4)
        assert haversine_meters(-16.4, -71.5, -16.4, -71.5 + degrees) == pytest.approx(1000, rel=0.01)


class TestValidateCoordinates:
    def test_valid(self) -> None:
        validate_coordinates(-16.4, -71.5)

    def test_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            validate_coordinates(-91.0, 0.0)
