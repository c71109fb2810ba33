"""Tests for selection zoom and cluster summaries."""

import math

import pytest

from industry_map.core.cluster_summary import summarize_clusters
from industry_map.core.models import EnterpriseRecord
from industry_map.core.zoom import Point, SelectionArea, scale_selection


class TestSelectionZoom:
    """Test scaling of points inside a selection."""

    def test_points_inside_spread_from_center(self):
        area = SelectionArea(0, 4, 0, 2)
        points = [Point(1, 1), Point(4, 2), Point(5, 1)]

        scaled = scale_selection(points, area, 3)

        assert area.center == Point(2, 1)
        assert scaled[0] == Point(-1, 1)
        assert scaled[1] == Point(8, 4)
        assert scaled[2] == Point(5, 1)

    def test_compress(self):
        scaled = scale_selection([(0, 0)], SelectionArea(-2, 2, -2, 2), 0.5)
        assert scaled == [Point(0, 0)]
        scaled = scale_selection([(2, -2)], SelectionArea(-2, 2, -2, 2), 0.5)
        assert scaled == [Point(1, -1)]

    @pytest.mark.parametrize("area,factor", [(None, 2.0), (SelectionArea(0, 1, 0, 1), 1.0)])
    def test_no_op(self, area, factor):
        points = [(0.5, 0.5), (3, 3)]
        assert scale_selection(points, area, factor) == [Point(0.5, 0.5), Point(3, 3)]

    def test_input_not_mutated(self):
        points = [Point(1, 1)]
        scale_selection(points, SelectionArea(0, 2, 0, 2), 4)
        assert points == [Point(1, 1)]


class TestClusterSummary:
    """Test per-cluster statistics."""

    def test_sizes_centroids_and_spread(self):
        records = [
            EnterpriseRecord(id="1", x=0, y=0, cluster=2),
            EnterpriseRecord(id="2", x=2, y=0, cluster=2),
            EnterpriseRecord(id="3", x=10, y=10, cluster=0),
            EnterpriseRecord(id="4", x=3, y=4, cluster=0),
            EnterpriseRecord(id="5", x=-3, y=-4, cluster=0),
        ]

        summaries = summarize_clusters(records)

        assert [s.id for s in summaries] == [0, 2]
        zero, two = summaries
        assert zero.size == 3
        assert zero.centroid.x == pytest.approx(10 / 3)
        assert two.centroid.x == pytest.approx(1.0)
        assert two.avg_distance == pytest.approx(1.0)

    def test_ignores_unlabelled_and_invalid(self):
        records = [
            EnterpriseRecord(id="1", x=0, y=0, cluster=1),
            EnterpriseRecord(id="2", x=6, y=8, cluster=1),
            EnterpriseRecord(id="3", x=1, y=1),
            EnterpriseRecord(id="4", x=None, y=1, cluster=1),
            EnterpriseRecord(id="5", x=math.nan, y=1, cluster=1),
        ]

        summaries = summarize_clusters(records)

        assert len(summaries) == 1
        assert summaries[0].size == 2
        assert summaries[0].avg_distance == pytest.approx(5.0)

    def test_empty(self):
        assert summarize_clusters([]) == []
