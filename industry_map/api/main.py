"""FastAPI main application."""

import asyncio
import math
import os
import random
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from fastapi import Body, FastAPI, File, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field, ValidationError

from ..config import settings
from ..core.cluster_summary import ClusterSummary, summarize_clusters
from ..core.clustering_client import ClusteringClient, ClusteringParams
from ..core.errors import ClusteringServiceError
from ..core.file_parser import FileMetadata, IdMapping, inspect_table, validate_id_mapping
from ..core.industry_catalog import IndustryLevel, filter_industries, group_by_level, load_industries
from ..core.mock_data import MOCK_VARIANTS, generate_mock_result
from ..core.models import EnterpriseRecord, SectorMap
from ..core.normalization import records_from_cluster_result
from ..core.sector_aggregator import AggregationOptions
from ..core.sector_map import build_sector_map
from ..core.voronoi_tessellator import TessellationOptions
from ..core.zoom import Point, SelectionArea, scale_selection
from ..utils.logging_config import configure_logging

configure_logging(settings.log_level, settings.log_format)

logger = structlog.get_logger()

VERSION = "0.1.0"

# Initialize FastAPI app
app = FastAPI(
    title="Industry Sector Map API",
    description="Clustering proxy and sector map computation for the analytics dashboard",
    version=VERSION,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class SectorMapRequest(BaseModel):
    """Clustering result (companies or legacy format) or pre-normalised records."""

    companies: Optional[List[Dict[str, Any]]] = Field(None, description="companies[].enterprise[] result")
    embedding: Optional[List[List[Optional[float]]]] = Field(None, description="Legacy 2D embedding rows")
    labels: Optional[List[int]] = Field(None, description="Legacy cluster labels")
    records: Optional[List[EnterpriseRecord]] = Field(None, description="Already normalised records")
    tracked_metrics: Optional[List[str]] = Field(None, description="Metrics to average per sector")
    aggregation: Optional[AggregationOptions] = None
    tessellation: Optional[TessellationOptions] = None

    def to_records(self) -> List[EnterpriseRecord]:
        if self.records is not None:
            return self.records
        return records_from_cluster_result(
            self.model_dump(include={"companies", "embedding", "labels"}, exclude_none=True)
        )


class ZoomRequest(BaseModel):
    points: List[Point]
    area: Optional[SelectionArea] = None
    factor: float = Field(1.0, gt=0, description="Scale factor for selected points")


class IndustryQuery(BaseModel):
    lines: List[str] = Field(description="Raw catalogue lines")
    search: str = Field("", description="Optional filter term")


class IdMappingRequest(BaseModel):
    embeddings: List[Dict[str, Any]] = Field(description="Parsed embeddings rows")
    info: List[Dict[str, Any]] = Field(description="Parsed info rows")
    id_column: str = Field("id", description="Column holding the shared id")


# Error handlers
@app.exception_handler(ClusteringServiceError)
async def clustering_service_error_handler(request: Request, exc: ClusteringServiceError):
    logger.error("Clustering service failure", path=request.url.path, error=str(exc),
                 status=exc.status_code)
    return JSONResponse(status_code=502, content={"error": str(exc)})


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def tessellation_defaults() -> TessellationOptions:
    return TessellationOptions(
        neighbor_count=settings.neighbor_count, padding=settings.tessellation_padding
    )


def clustering_client() -> ClusteringClient:
    return ClusteringClient(
        settings.clustering_api_endpoint,
        timeout=settings.clustering_timeout_seconds,
        prepare_timeout=settings.prepare_timeout_seconds,
    )


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Industry Sector Map API",
        "version": VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "clustering": "mock" if settings.mock_clustering else "proxy",
    }


@app.get("/api/clustering/meta")
async def clustering_meta():
    """Clustering service metadata."""
    if not settings.mock_clustering:
        return await run_in_threadpool(clustering_client().get_meta)

    return {
        "message": "KMeans clustering service",
        "defaults": {
            "lambda": 0.5,
            "k_list": [3, 4, 5, 6, 7, 8]
        },
        "files": {
            "vector_ratio.csv": "./data/vector_ratio.csv",
            "vector_ratio.meta.json": "./data/vector_ratio.meta.json"
        },
        "outputs_dir": "/abs/path/to/outputs"
    }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@app.post("/api/clustering/run")
async def run_clustering(body: Dict[str, Any] = Body(...)):
    """
    Run clustering.

    Mocked by default: validates lambda/k_list and returns file paths plus a
    synthetic embedding for a fake run whose best k is the middle candidate.
    """
    lam = body.get("lambda")
    k_list = body.get("k_list")

    if not _is_number(lam) or lam <= 0:
        return error_response(400, "lambda must be a positive number")
    if (
        not isinstance(k_list, list)
        or not k_list
        or any(not isinstance(k, int) or isinstance(k, bool) or k < 2 for k in k_list)
    ):
        return error_response(400, "k_list must be an array of integers >= 2")

    if not settings.mock_clustering:
        try:
            params = ClusteringParams(
                **{
                    "lambda": lam,
                    "k": k_list,
                    "pca_dim": body.get("pca_dim", 128),
                    "level_value": body.get("level_value"),
                }
            )
        except ValidationError as e:
            return error_response(400, f"Invalid clustering parameters: {e.errors()[0]['msg']}")
        return await run_in_threadpool(
            clustering_client().run_clustering, params, body.get("info_quy_mo_b64")
        )

    logger.info("Mock clustering run", lambda_=lam, k_list=k_list)
    await asyncio.sleep(settings.mock_delay_seconds)

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    best_k = k_list[len(k_list) // 2]
    sample = generate_mock_result("blobs", n_clusters=best_k)

    return {
        "embedding": sample["embedding"],
        "labels": sample["labels"],
        "size": sample["size"],
        "lambda": lam,
        "k_candidates": k_list,
        "best_k": best_k,
        "metrics_csv": f"/files/metrics/{timestamp}/metrics.csv",
        "metric_plots": {
            "elbow": f"/files/metrics/{timestamp}/elbow.png",
            "silhouette": f"/files/metrics/{timestamp}/silhouette.png"
        },
        "labels_csv": f"/files/labels/{timestamp}/labels_k{best_k}.csv",
        "projection_plots": {
            "pca2d": f"/files/projections/{timestamp}/pca2d_k{best_k}.png",
            "tsne2d": None
        }
    }


@app.get("/api/clustering/mock")
async def mock_result(
    variant: str = Query("blobs", description=f"One of {', '.join(MOCK_VARIANTS)}"),
    n_samples: int = Query(150, ge=1, le=10000),
    n_clusters: int = Query(4, ge=2, le=20),
    seed: Optional[int] = None,
):
    """Synthetic clustering result in the embedding + labels format."""
    try:
        return generate_mock_result(variant, n_samples, n_clusters, seed)
    except ValueError as e:
        return error_response(400, str(e))


async def _inspect_upload(upload: UploadFile) -> FileMetadata:
    raw = await upload.read()
    return inspect_table(raw, name=upload.filename or "upload")


@app.post("/api/clustering/prepare")
async def prepare_files(
    embeddings: UploadFile = File(..., description="Embeddings table"),
    info: UploadFile = File(..., description="Enterprise info table"),
):
    """
    Check the uploaded tables and hand them to the clustering service.

    Both files are inspected first so malformed uploads fail fast with 400.
    """
    try:
        embeddings_meta = await _inspect_upload(embeddings)
        info_meta = await _inspect_upload(info)
    except ValueError as e:
        return error_response(400, str(e))

    if settings.mock_clustering:
        return {
            "status": "prepared",
            "embeddings": embeddings_meta.model_dump(exclude={"preview"}),
            "info": info_meta.model_dump(exclude={"preview"}),
        }

    await embeddings.seek(0)
    await info.seek(0)
    with tempfile.TemporaryDirectory() as workdir:
        # Separate folders keep same-named uploads apart
        for folder in ("embeddings", "info"):
            os.mkdir(os.path.join(workdir, folder))
        embeddings_path = os.path.join(workdir, "embeddings", os.path.basename(embeddings_meta.name))
        info_path = os.path.join(workdir, "info", os.path.basename(info_meta.name))
        with open(embeddings_path, "wb") as handle:
            handle.write(await embeddings.read())
        with open(info_path, "wb") as handle:
            handle.write(await info.read())
        return await run_in_threadpool(clustering_client().run_prepare, embeddings_path, info_path)


@app.post("/api/files/inspect", response_model=FileMetadata)
async def inspect_file(file: UploadFile = File(...)):
    """Describe an uploaded table: delimiter, columns, numeric columns, preview."""
    try:
        return await _inspect_upload(file)
    except ValueError as e:
        return error_response(400, str(e))


@app.post("/api/files/id-mapping", response_model=IdMapping)
async def id_mapping(request: IdMappingRequest):
    """Share of ids present in both the embeddings and info tables."""
    return validate_id_mapping(request.embeddings, request.info, request.id_column)


async def _proxy_file(file_path: str):
    client = clustering_client()
    remote_path = f"/files/{file_path}"
    if "labels" in file_path:
        labels = await run_in_threadpool(client.get_labels, remote_path)
        rows = "\n".join(f"{i},{label}" for i, label in enumerate(labels))
        return PlainTextResponse(f"id,cluster\n{rows}", media_type="text/csv")
    text = await run_in_threadpool(client.get_text, remote_path)
    return PlainTextResponse(text, media_type="text/csv")


@app.get("/api/files/{file_path:path}")
async def download_file(file_path: str):
    """Download clustering outputs (CSV only); mocked unless proxying."""
    if file_path.endswith(".csv") and not settings.mock_clustering:
        return await _proxy_file(file_path)

    if file_path.endswith(".csv"):
        if "labels" in file_path:
            rows = "\n".join(f"{i},{(i % 6) + 1}" for i in range(1000))
            return PlainTextResponse(f"id,cluster\n{rows}", media_type="text/csv")
        if "metrics" in file_path:
            rows = "\n".join(
                f"{k},{random.random() * 1000},{random.random()}" for k in [3, 4, 5, 6, 7, 8]
            )
            return PlainTextResponse(f"k,inertia,silhouette_score\n{rows}", media_type="text/csv")
        return error_response(404, "File not found")

    if file_path.endswith((".png", ".jpg")):
        return error_response(404, "Image file not implemented in mock")
    return error_response(404, "File not found")


@app.post("/api/sectors/map", response_model=SectorMap)
async def sector_map(request: SectorMapRequest):
    """Aggregate enterprises into sector centroids and tessellate them."""
    records = request.to_records()
    return await run_in_threadpool(
        build_sector_map,
        records,
        tracked_metrics=request.tracked_metrics,
        aggregation=request.aggregation,
        tessellation=request.tessellation or tessellation_defaults(),
    )


@app.post("/api/clusters/summary", response_model=List[ClusterSummary])
async def cluster_summary(request: SectorMapRequest):
    """Size, centroid and spread of each cluster."""
    return await run_in_threadpool(summarize_clusters, request.to_records())


@app.post("/api/zoom/scale", response_model=List[Point])
async def zoom_scale(request: ZoomRequest):
    """Spread or compress the points inside a selected rectangle."""
    return scale_selection(request.points, request.area, request.factor)


@app.post("/api/industries", response_model=List[IndustryLevel])
async def industries(query: IndustryQuery):
    """Parse and optionally filter an industry catalogue."""
    return filter_industries(load_industries(query.lines), query.search)


@app.post("/api/industries/levels", response_model=Dict[int, List[IndustryLevel]])
async def industries_by_level(query: IndustryQuery):
    """Parsed, filtered catalogue grouped by hierarchy level."""
    return group_by_level(filter_industries(load_industries(query.lines), query.search))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
