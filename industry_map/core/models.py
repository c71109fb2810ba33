"""
Value types shared by the sector aggregation and tessellation stages.

All of these are recomputed from scratch for every clustering result and are
never persisted.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_SECTOR = "Unknown"

Vertex = Tuple[float, float]


class EnterpriseRecord(BaseModel):
    """One company/entity as returned by the clustering service, after normalisation."""

    id: str = Field(description="Opaque record identifier")
    sector_name: Optional[str] = Field(default=None, description="Sector display name (grouping key)")
    sector_code: Optional[Union[str, int]] = Field(default=None, description="Sector identifier")
    x: Optional[float] = Field(default=None, description="Embedding X coordinate")
    y: Optional[float] = Field(default=None, description="Embedding Y coordinate")
    name: str = Field(default="", description="Enterprise name")
    taxcode: str = Field(default="", description="Tax code")
    cluster: Optional[int] = Field(default=None, description="Cluster label")
    metrics: Dict[str, float] = Field(default_factory=dict, description="Named numeric metrics")


class SectorCentroid(BaseModel):
    """Mean position and metrics of every record in one sector."""

    model_config = ConfigDict(frozen=True)

    sector_name: str
    sector_code: str
    x: float
    y: float
    member_count: int = Field(ge=1)
    metric_averages: Dict[str, float] = Field(default_factory=dict)
    marker_size: float


class VoronoiCell(BaseModel):
    """Approximate territory polygon around a sector centroid."""

    model_config = ConfigDict(frozen=True)

    centroid: SectorCentroid
    vertices: List[Vertex] = Field(description="Closed ring, first vertex repeated at the end")
    color: str = Field(description="Hex color shared with the centroid marker")
    fill: str = Field(default="", description="Translucent rgba() fill derived from color")
    area: float = Field(default=0.0, description="Polygon area in embedding units")
    fallback: bool = Field(default=False, description="True if the circular fallback was used")


class Bounds(BaseModel):
    """Axis-aligned box in embedding space."""

    model_config = ConfigDict(frozen=True)

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def contains(self, x: float, y: float, tolerance: float = 1e-9) -> bool:
        return (
            self.min_x - tolerance <= x <= self.max_x + tolerance
            and self.min_y - tolerance <= y <= self.max_y + tolerance
        )


class SectorMap(BaseModel):
    """Result of the aggregate-then-tessellate pipeline."""

    centroids: List[SectorCentroid] = Field(default_factory=list)
    cells: List[VoronoiCell] = Field(default_factory=list)
    colors: Dict[str, str] = Field(default_factory=dict)
    bounds: Optional[Bounds] = None
    skipped_records: int = Field(default=0, description="Records dropped for invalid coordinates")
