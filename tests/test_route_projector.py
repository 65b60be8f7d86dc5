"""Unit tests for polyline cleaning and route projection."""
import math

import pytest

from tools.route_projector import NO_PROJECTION, clean_polyline, project_onto_route


class TestCleanPolyline:
    def test_pairs_by_index(self):
        """Latitudes and longitudes pair up by position."""
        assert clean_polyline([1, 2], [3, 4]) == [(1.0, 3.0), (2.0, 4.0)]

    def test_length_mismatch_drops_extra_entries(self):
        """Entries past the shorter list are dropped."""
        assert clean_polyline([1, 2, 3], [4, 5]) == [(1.0, 4.0), (2.0, 5.0)]
        assert clean_polyline([1], [4, 5, 6]) == [(1.0, 4.0)]

    def test_drops_missing_and_non_finite(self):
        """Missing and non-finite pairs are filtered out."""
        lats = [14.0, None, float("nan"), 14.3, 14.4]
        lngs = [121.0, 121.1, 121.2, float("inf"), 121.4]
        assert clean_polyline(lats, lngs) == [(14.0, 121.0), (14.4, 121.4)]

    def test_empty(self):
        """Empty inputs give an empty polyline."""
        assert clean_polyline([], []) == []


class TestProjectOntoRoute:
    def setup_method(self):
        self.polyline = [(0.0, 0.0), (0.0, 1.0), (1.0, 1.0)]

    def test_fewer_than_two_points(self):
        """A polyline needs two points to be projected onto."""
        assert project_onto_route((0, 0), []) == NO_PROJECTION
        single = project_onto_route((0, 0), [(0.0, 0.0)])
        assert single.segment_index is None
        assert single.point is None
        assert math.isinf(single.distance_km)
        assert not single.is_valid

    def test_invalid_position(self):
        """A NaN position has no projection."""
        assert project_onto_route((float("nan"), 0), self.polyline) == NO_PROJECTION

    def test_point_on_first_segment(self):
        """A point on the first segment projects onto itself."""
        projection = project_onto_route((0.0, 0.25), self.polyline)
        assert projection.segment_index == 0
        assert projection.point == pytest.approx((0.0, 0.25))
        assert projection.distance_km == pytest.approx(0.0, abs=1e-9)

    def test_point_near_second_segment(self):
        """A point beside the second segment projects onto it."""
        projection = project_onto_route((0.5, 1.01), self.polyline)
        assert projection.segment_index == 1
        assert projection.point == pytest.approx((0.5, 1.0))
        assert projection.distance_km == pytest.approx(1.112, rel=1e-2)

    def test_global_minimum_not_first_close_segment(self):
        """The closest segment wins, not the first nearby one."""
        polyline = [(0.0, 0.0), (0.0, 1.0), (0.02, 1.0), (0.02, 0.0)]
        projection = project_onto_route((0.019, 0.5), polyline)
        assert projection.segment_index == 2

    def test_tie_keeps_earliest_segment(self):
        """Equal distances keep the earliest segment."""
        # Out and back along the same line: both segments pass through the truck
        polyline = [(0.0, 0.0), (0.0, 1.0), (0.0, 0.0)]
        projection = project_onto_route((0.0, 0.5), polyline)
        assert projection.segment_index == 0
        assert projection.distance_km == 0

    def test_shared_vertex_tie(self):
        """A shared vertex belongs to the earlier segment."""
        projection = project_onto_route((0.0, 1.0), self.polyline)
        assert projection.segment_index == 0
        assert projection.point == pytest.approx((0.0, 1.0))

    def test_degenerate_segment_in_path(self):
        """A repeated point does not break projection."""
        polyline = [(0.0, 0.0), (0.0, 0.0), (0.0, 1.0)]
        projection = project_onto_route((0.0, 0.5), polyline)
        assert projection.segment_index == 1
        assert projection.distance_km == pytest.approx(0.0, abs=1e-9)
