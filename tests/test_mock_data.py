"""Tests for synthetic clustering results."""

import pytest

from industry_map.core.mock_data import MOCK_VARIANTS, generate_mock_result
from industry_map.core.normalization import records_from_cluster_result
from industry_map.core.sector_map import build_sector_map


class TestGenerateMockResult:
    """Test shape, reproducibility and validation of generated results."""

    @pytest.mark.parametrize("variant", MOCK_VARIANTS)
    def test_shape(self, variant):
        result = generate_mock_result(variant, n_samples=60, n_clusters=3, seed=1)

        assert result["dataset_id"] == f"mock_{variant}"
        assert result["best_k"] == 3
        assert result["n_samples"] == 60
        assert len(result["embedding"]) == len(result["labels"]) == len(result["size"]) == 60
        assert all(len(row) == 2 for row in result["embedding"])
        assert set(result["labels"]) <= {0, 1, 2}
        assert all(s > 0 for s in result["size"])

    def test_seed_reproducible(self):
        first = generate_mock_result("circular", seed=42)
        second = generate_mock_result("circular", seed=42)
        assert first == second

    def test_blob_centers_for_four_clusters(self):
        """Four blobs sit on the (+-2, +-2) corners with unit noise."""
        result = generate_mock_result("blobs", n_samples=200, n_clusters=4, seed=3)
        for (x, y), label in zip(result["embedding"], result["labels"]):
            cx = -2.0 if label % 2 == 0 else 2.0
            cy = -2.0 if label < 2 else 2.0
            assert abs(x - cx) <= 1.0
            assert abs(y - cy) <= 1.0

    def test_density_handles_more_clusters_than_spreads(self):
        result = generate_mock_result("density", n_samples=50, n_clusters=5, seed=0)
        assert max(result["labels"]) <= 4

    @pytest.mark.parametrize("kwargs", [
        {"variant": "spiral"},
        {"n_clusters": 1},
        {"n_samples": 0},
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            generate_mock_result(**kwargs)

    def test_feeds_sector_map(self):
        """A generated result can be drawn end to end."""
        result = generate_mock_result("blobs", n_samples=120, n_clusters=4, seed=7)

        sector_map = build_sector_map(records_from_cluster_result(result))

        assert len(sector_map.centroids) == len(set(result["labels"]))
        assert len(sector_map.cells) == len(sector_map.centroids)
        assert sector_map.skipped_records == 0
