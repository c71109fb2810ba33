"""Tests for the clustering service client (HTTP mocked)."""

from unittest.mock import Mock

import pytest
import requests
from pydantic import ValidationError

from industry_map.core.clustering_client import ClusteringClient, ClusteringParams
from industry_map.core.errors import ClusteringServiceError


def make_response(status_code=200, text="{}", json_data=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.text = text
    response.json.return_value = json_data if json_data is not None else {}
    return response


def make_client(response=None, side_effect=None):
    session = Mock()
    if side_effect is not None:
        session.request.side_effect = side_effect
    else:
        session.request.return_value = response
    return ClusteringClient("http://cluster.test/", session=session), session


class TestClusteringParams:
    """Test request parameter validation."""

    def test_alias_and_defaults(self):
        params = ClusteringParams(**{"lambda": 0.5, "k": [3, 4], "level_value": "A"})
        assert params.lambda_ == 0.5
        assert params.pca_dim == 128

    @pytest.mark.parametrize("k", [1, [2, 21], []])
    def test_invalid_k(self, k):
        with pytest.raises(ValidationError):
            ClusteringParams(**{"lambda": 0.5, "k": k, "level_value": "A"})

    def test_invalid_pca_dim(self):
        with pytest.raises(ValidationError):
            ClusteringParams(**{"lambda": 0.5, "k": 3, "pca_dim": 1, "level_value": "A"})

    def test_empty_level_value(self):
        with pytest.raises(ValidationError):
            ClusteringParams(**{"lambda": 0.5, "k": 3, "level_value": ["A", ""]})


class TestClusteringClient:
    """Test the HTTP calls and error mapping."""

    def test_requires_endpoint(self):
        with pytest.raises(ValueError):
            ClusteringClient("")

    def test_get_meta(self):
        client, session = make_client(make_response(text='{"message": "ok"}'))

        assert client.get_meta() == {"message": "ok"}
        method, url = session.request.call_args[0]
        assert method == "GET"
        assert url == "http://cluster.test/meta"
        headers = session.request.call_args[1]["headers"]
        assert headers["ngrok-skip-browser-warning"] == "true"
        assert session.request.call_args[1]["timeout"] == 10.0

    def test_get_meta_html_rejected(self):
        client, _ = make_client(make_response(text="<!DOCTYPE html><html></html>"))
        with pytest.raises(ClusteringServiceError):
            client.get_meta()

    def test_http_error_carries_status(self):
        client, _ = make_client(make_response(status_code=503, text="down"))
        with pytest.raises(ClusteringServiceError) as excinfo:
            client.get_meta()
        assert excinfo.value.status_code == 503

    def test_connection_error(self):
        client, _ = make_client(side_effect=requests.ConnectionError("refused"))
        with pytest.raises(ClusteringServiceError, match="Cannot connect"):
            client.get_meta()

    def test_timeout(self):
        client, _ = make_client(side_effect=requests.Timeout())
        with pytest.raises(ClusteringServiceError, match="Timeout"):
            client.get_meta()

    def test_run_clustering_payload_and_nan(self):
        body = '{"best_k": 4, "companies": [{"enterprise": [{"pca2_x": NaN}]}]}'
        client, session = make_client(make_response(text=body))
        params = ClusteringParams(**{"lambda": 0.7, "k": [3, 4, 5], "level_value": ["A1110"]})

        result = client.run_clustering(params, info_file_b64="Zm9v")

        assert result["best_k"] == 4
        assert result["companies"][0]["enterprise"][0]["pca2_x"] is None
        payload = session.request.call_args[1]["json"]
        assert payload == {
            "pca_dim": 128,
            "lambda": 0.7,
            "k": [3, 4, 5],
            "level_value": ["A1110"],
            "info_quy_mo_b64": "Zm9v",
        }

    def test_run_clustering_without_info_file(self):
        client, session = make_client(make_response(text='{"best_k": 3}'))
        params = ClusteringParams(**{"lambda": 0.7, "k": 3, "level_value": "A"})
        client.run_clustering(params)
        assert "info_quy_mo_b64" not in session.request.call_args[1]["json"]

    def test_run_clustering_invalid_json(self):
        client, _ = make_client(make_response(text="not json"))
        params = ClusteringParams(**{"lambda": 0.7, "k": 3, "level_value": "A"})
        with pytest.raises(ClusteringServiceError, match="Invalid JSON"):
            client.run_clustering(params)

    def test_get_labels(self):
        client, session = make_client(make_response(text="id,label\n0,3\n1,x\n2,0\n3\n"))

        assert client.get_labels("/files/labels/run/labels_k4.csv") == [3, 1, 0, 1]
        assert session.request.call_args[0][1] == "http://cluster.test/files/labels/run/labels_k4.csv"

    def test_run_prepare_uploads_files(self, tmp_path):
        embeddings = tmp_path / "emb.csv"
        info = tmp_path / "info.csv"
        embeddings.write_text("id,e0\n1,0.5\n")
        info.write_text("id,name\n1,Acme\n")
        client, session = make_client(make_response(json_data={"status": "prepared"}))

        assert client.run_prepare(str(embeddings), str(info)) == {"status": "prepared"}
        kwargs = session.request.call_args[1]
        assert set(kwargs["files"]) == {"embeddings", "info"}
        assert kwargs["timeout"] == 60.0

    def test_get_text(self):
        client, session = make_client(make_response(text="k,inertia\n3,10.5\n"))

        assert client.get_text("/files/metrics/run/metrics.csv") == "k,inertia\n3,10.5\n"
        method, url = session.request.call_args[0]
        assert method == "GET"
        assert url == "http://cluster.test/files/metrics/run/metrics.csv"
