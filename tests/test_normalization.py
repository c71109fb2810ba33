"""Tests for clustering result normalisation."""

import json
import math

import pytest

from industry_map.core.normalization import (
    normalize_enterprise,
    records_from_cluster_result,
    resolve_coordinates,
    sanitize_json_text,
)


class TestSanitizeJson:
    """Test NaN replacement."""

    def test_replaces_bare_nan(self):
        text = '{"a": NaN, "b": [1, 2], "c": NaN}'
        assert sanitize_json_text(text) == '{"a": null, "b": [1, 2], "c": null}'

    def test_result_parses(self):
        text = '{"companies": [{"enterprise": [{"pca2_x": NaN, "pca2_y": 1.5}]}]}'
        parsed = json.loads(sanitize_json_text(text))
        assert parsed["companies"][0]["enterprise"][0]["pca2_x"] is None

    def test_leaves_strings_alone(self):
        text = '{"name": "NaN Corp"}'
        assert sanitize_json_text(text) == text


class TestCoordinateAliases:
    """Test coordinate resolution across historical field names."""

    @pytest.mark.parametrize("raw,expected", [
        ({"x": 1, "y": 2}, (1.0, 2.0)),
        ({"emb_x": 3, "emb_y": 4}, (3.0, 4.0)),
        ({"pca2_x": "5.5", "pca2_y": "6"}, (5.5, 6.0)),
        ({"embedding": [7, 8, 9]}, (7.0, 8.0)),
        ({"emb_x": 1, "emb_y": 2, "pca2_x": 9, "pca2_y": 9}, (1.0, 2.0)),
        ({"name": "nothing"}, (None, None)),
        ({"emb_x": None, "emb_y": 2}, (None, 2.0)),
        ({"emb_x": "abc", "emb_y": 2}, (None, 2.0)),
    ])
    def test_resolution(self, raw, expected):
        assert resolve_coordinates(raw) == expected


class TestNormalizeEnterprise:
    """Test conversion of raw enterprise dicts."""

    def test_full_record(self):
        raw = {
            "name": "Acme",
            "taxcode": "0101",
            "sector_name": "Retail",
            "sector_unique_id": 4711,
            "pca2_x": 1.5,
            "pca2_y": -2.0,
            "Label": 3,
            "s_DT_TTM": 10,
            "s_EMPL": "20",
            "empl_qtty": 150,
            "unrelated": "ignored",
        }
        record = normalize_enterprise(raw)

        assert record.id == "0101"
        assert record.name == "Acme"
        assert record.sector_name == "Retail"
        assert record.sector_code == "4711"
        assert (record.x, record.y) == (1.5, -2.0)
        assert record.cluster == 3
        assert record.metrics == {"s_DT_TTM": 10.0, "s_EMPL": 20.0, "empl_qtty": 150.0}

    def test_company_fallback(self):
        company = {"sector_name": "Mining", "sector_unique_id": "B05"}
        record = normalize_enterprise({"emb_x": 0, "emb_y": 0}, company, index=7)

        assert record.sector_name == "Mining"
        assert record.sector_code == "B05"
        assert record.id == "7"

    def test_cluster_preferred_over_label(self):
        record = normalize_enterprise({"cluster": 2, "Label": 5})
        assert record.cluster == 2

    def test_nan_coordinate_kept_for_filtering(self):
        record = normalize_enterprise({"x": float("nan"), "y": 1})
        assert math.isnan(record.x)


class TestRecordsFromClusterResult:
    """Test extraction from full clustering responses."""

    def test_companies_format(self):
        result = {
            "companies": [
                {
                    "sector_unique_id": "A01",
                    "enterprise": [
                        {"sector_name": "Farming", "emb_x": 0, "emb_y": 0},
                        {"sector_name": "Farming", "emb_x": 2, "emb_y": 2},
                    ],
                },
                {"sector_unique_id": "B02", "enterprise": [{"pca2_x": 5, "pca2_y": 5}]},
                {"sector_unique_id": "C03"},
                "garbage",
            ]
        }
        records = records_from_cluster_result(result)

        assert len(records) == 3
        assert [r.id for r in records] == ["0", "1", "2"]
        assert records[0].sector_code == "A01"
        assert records[2].sector_name is None
        assert records[2].sector_code == "B02"

    def test_legacy_format(self):
        result = {"embedding": [[0, 1], [2, 3], [4, 5]], "labels": [0, 1, 0]}
        records = records_from_cluster_result(result)

        assert [r.sector_name for r in records] == ["Cluster 0", "Cluster 1", "Cluster 0"]
        assert (records[1].x, records[1].y) == (2.0, 3.0)
        assert records[2].cluster == 0

    def test_no_data(self):
        assert records_from_cluster_result({"best_k": 4}) == []

    def test_not_a_dict(self):
        with pytest.raises(TypeError):
            records_from_cluster_result([1, 2, 3])
