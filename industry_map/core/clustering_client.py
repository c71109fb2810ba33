"""
Client for the external k-means clustering service.

The service does the heavy lifting (PCA, k-means, scoring); this client only
sends parameters and reads back results.
"""

import csv
import io
import json
import os
from typing import Any, Dict, List, Optional, Union

import requests
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ClusteringServiceError
from .normalization import sanitize_json_text

logger = structlog.get_logger()

# The service is usually exposed through an ngrok tunnel
DEFAULT_HEADERS = {"ngrok-skip-browser-warning": "true"}


class ClusteringParams(BaseModel):
    """Parameters of a clustering run."""

    model_config = ConfigDict(populate_by_name=True)

    lambda_: float = Field(alias="lambda", ge=0, le=100, description="Blend weight")
    k: Union[int, List[int]] = Field(description="Cluster count or candidate list")
    pca_dim: int = Field(default=128, ge=2, le=512, description="PCA dimension")
    level_value: Union[str, List[str]] = Field(description="Sector filter")

    @field_validator("k")
    @classmethod
    def _check_k(cls, value):
        candidates = value if isinstance(value, list) else [value]
        if not candidates or any(k < 2 or k > 20 for k in candidates):
            raise ValueError("k values must be between 2 and 20")
        return value

    @field_validator("level_value")
    @classmethod
    def _check_level_value(cls, value):
        values = value if isinstance(value, list) else [value]
        if any(not v for v in values):
            raise ValueError("level_value entries must be non-empty")
        return value


class ClusteringClient:
    """HTTP client for the clustering service."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 10.0,
        prepare_timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            endpoint: Base URL of the service
            timeout: Timeout for metadata and label requests, in seconds
            prepare_timeout: Timeout for file preparation uploads, in seconds
            session: Optional requests session (shared connection pool)
        """
        if not endpoint:
            raise ValueError("Clustering API endpoint not configured")
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.prepare_timeout = prepare_timeout
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.endpoint}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, timeout: Optional[float] = None, **kwargs) -> requests.Response:
        url = self._url(path)
        headers = dict(DEFAULT_HEADERS)
        headers.update(kwargs.pop("headers", {}))
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=timeout or self.timeout, **kwargs
            )
        except requests.Timeout as e:
            raise ClusteringServiceError(f"Timeout: no response from {url}") from e
        except requests.RequestException as e:
            raise ClusteringServiceError(f"Cannot connect to clustering API: {url}") from e

        if not response.ok:
            logger.error("Clustering API error", url=url, status=response.status_code)
            raise ClusteringServiceError(
                f"API error {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )
        return response

    def get_meta(self) -> Dict[str, Any]:
        """Fetch service metadata; also serves as a connectivity check."""
        response = self._request("GET", "/meta", headers={"Accept": "application/json"})
        body = response.text
        if "<!DOCTYPE" in body or "<html" in body:
            raise ClusteringServiceError("Server returned HTML instead of JSON (redirect or proxy issue)")
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise ClusteringServiceError(f"Invalid JSON from /meta: {e}") from e

    def run_prepare(self, embeddings_path: str, info_path: str) -> Dict[str, Any]:
        """Upload the embeddings and info files to /prepare/run."""
        logger.info("Calling prepare", embeddings=os.path.basename(embeddings_path), info=os.path.basename(info_path))
        with open(embeddings_path, "rb") as embeddings, open(info_path, "rb") as info:
            files = {
                "embeddings": (os.path.basename(embeddings_path), embeddings),
                "info": (os.path.basename(info_path), info),
            }
            response = self._request("POST", "/prepare/run", timeout=self.prepare_timeout, files=files)
        return response.json()

    def run_clustering(self, params: ClusteringParams, info_file_b64: Optional[str] = None) -> Dict[str, Any]:
        """
        Run clustering and return the parsed result.

        NaN values in the response body are converted to null before parsing.
        """
        payload = {
            "pca_dim": params.pca_dim,
            "lambda": params.lambda_,
            "k": params.k,
            "level_value": params.level_value,
        }
        if info_file_b64:
            payload["info_quy_mo_b64"] = info_file_b64

        logger.info("Running clustering", lambda_=params.lambda_, k=params.k, pca_dim=params.pca_dim,
                    has_info_file=bool(info_file_b64))
        response = self._request(
            "POST", "/cluster/run", json=payload, headers={"Accept": "application/json"}
        )
        try:
            result = json.loads(sanitize_json_text(response.text))
        except json.JSONDecodeError as e:
            raise ClusteringServiceError(f"Invalid JSON response from API: {e}") from e
        logger.info("Clustering completed", best_k=result.get("best_k"))
        return result

    def get_text(self, path: str) -> str:
        """Download a text output (CSV) produced by a run."""
        return self._request("GET", path).text

    def get_labels(self, labels_path: str) -> List[int]:
        """Download a labels CSV (id,label) and return the labels in row order."""
        rows = list(csv.reader(io.StringIO(self.get_text(labels_path).strip())))
        labels = []
        for row in rows[1:]:
            try:
                labels.append(int(row[1]))
            except (IndexError, ValueError):
                labels.append(1)
        logger.info("Labels loaded", count=len(labels))
        return labels
