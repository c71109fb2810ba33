"""Aggregate-then-tessellate pipeline shared by every sector map view."""

from typing import Iterable, List, Optional

import structlog

from .models import EnterpriseRecord, SectorMap
from .palette import sector_colors
from .sector_aggregator import AggregationOptions, aggregate, has_valid_coordinates
from .voronoi_tessellator import TessellationOptions, tessellate, tessellation_bounds

logger = structlog.get_logger()


def build_sector_map(
    records: Iterable[EnterpriseRecord],
    tracked_metrics: Optional[List[str]] = None,
    aggregation: Optional[AggregationOptions] = None,
    tessellation: Optional[TessellationOptions] = None,
) -> SectorMap:
    """
    Turn enterprise records into sector centroids and territory cells.

    Colors are computed once from the sector names so a sector's marker and
    its cell always match.

    Args:
        records: Normalised enterprise records
        tracked_metrics: Metrics to average per sector
        aggregation: Marker size options
        tessellation: Polygon options

    Returns:
        SectorMap; empty lists when there is no usable data
    """
    records = list(records)
    centroids = aggregate(records, tracked_metrics, aggregation)
    colors = sector_colors(c.sector_name for c in centroids)
    cells = tessellate(centroids, tessellation, colors=colors)
    skipped = sum(1 for r in records if not has_valid_coordinates(r))

    logger.info(
        "Built sector map",
        records=len(records),
        sectors=len(centroids),
        cells=len(cells),
    )
    return SectorMap(
        centroids=centroids,
        cells=cells,
        colors=colors,
        bounds=tessellation_bounds(centroids, tessellation),
        skipped_records=skipped,
    )
