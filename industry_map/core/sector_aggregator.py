"""
Sector aggregation.

Collapses per-enterprise embedding points into one centroid per sector:
mean coordinates, mean tracked metrics and a derived marker size used to
draw the centroid.
"""

import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

import structlog
from pydantic import BaseModel, Field

from .geometry import clamp, is_finite_number
from .models import UNKNOWN_SECTOR, EnterpriseRecord, SectorCentroid

logger = structlog.get_logger()


class AggregationOptions(BaseModel):
    """Marker size weighting. Defaults are the empirically chosen dashboard values."""

    primary_metrics: List[str] = Field(
        default=["s_DT_TTM", "s_TTS", "s_VCSH"],
        description="Metrics summed and weighted by primary_weight",
    )
    headcount_metric: str = Field(default="s_EMPL", description="Headcount-like metric")
    primary_weight: float = Field(default=0.3, description="Weight of the primary metric sum")
    headcount_weight: float = Field(default=0.1, description="Weight of the headcount metric")
    min_marker_size: float = Field(default=5.0, gt=0, description="Marker size floor")
    max_marker_size: float = Field(default=50.0, gt=0, description="Marker size ceiling")
    fallback_factor: float = Field(default=0.8, description="Fallback size per member")
    fallback_max_size: float = Field(default=20.0, gt=0, description="Fallback size ceiling")

    def marker_metrics(self) -> List[str]:
        return list(self.primary_metrics) + [self.headcount_metric]


class _SectorBucket:
    """Running means for one sector."""

    def __init__(self, sector_name: str, sector_code: Optional[str]):
        self.sector_name = sector_name
        self.sector_code = sector_code
        self.count = 0
        self.mean_x = 0.0
        self.mean_y = 0.0
        self.metric_means: Dict[str, float] = {}

    def add(self, record: EnterpriseRecord, metric_names: List[str]) -> None:
        self.count += 1
        self.mean_x = self._update(self.mean_x, float(record.x))
        self.mean_y = self._update(self.mean_y, float(record.y))
        if self.sector_code is None and record.sector_code not in (None, ""):
            self.sector_code = str(record.sector_code)
        for metric in metric_names:
            value = record.metrics.get(metric)
            # Missing values count as zero, biasing the mean toward zero
            if not is_finite_number(value):
                value = 0.0
            self.metric_means[metric] = self._update(self.metric_means.get(metric, 0.0), float(value))

    def _update(self, mean: float, value: float) -> float:
        # Divide before adding; a raw sum of large finite values overflows
        return (mean - mean / self.count) + value / self.count

    def averages(self) -> Dict[str, float]:
        return dict(self.metric_means)


def sector_key(record: EnterpriseRecord) -> str:
    """Grouping key for a record; blank or missing names share the Unknown bucket."""
    name = record.sector_name
    if name is None or not str(name).strip():
        return UNKNOWN_SECTOR
    return str(name)


def has_valid_coordinates(record: EnterpriseRecord) -> bool:
    return is_finite_number(record.x) and is_finite_number(record.y)


def compute_marker_size(
    metric_averages: Dict[str, float], member_count: int, options: AggregationOptions
) -> float:
    """
    Derive the marker size for a sector centroid.

    Uses primary_weight * sum(primary averages) + headcount_weight * headcount
    average, clamped to [min_marker_size, max_marker_size]. A non-finite or
    non-positive result falls back to a size proportional to member_count so
    the sector stays visible.
    """
    primary = sum(metric_averages.get(m, 0.0) for m in options.primary_metrics)
    headcount = metric_averages.get(options.headcount_metric, 0.0)
    raw = options.primary_weight * primary + options.headcount_weight * headcount

    if not math.isfinite(raw) or raw <= 0:
        return clamp(
            member_count * options.fallback_factor,
            options.min_marker_size,
            options.fallback_max_size,
        )
    return clamp(raw, options.min_marker_size, options.max_marker_size)


def aggregate(
    records: Iterable[EnterpriseRecord],
    tracked_metrics: Optional[List[str]] = None,
    options: Optional[AggregationOptions] = None,
) -> List[SectorCentroid]:
    """
    Group records by sector name and compute one centroid per sector.

    Records with missing or non-finite coordinates are skipped. Missing metric
    values are summed as zero.

    Args:
        records: Normalised enterprise records
        tracked_metrics: Metrics to average (defaults to the marker metrics)
        options: Marker size weighting

    Returns:
        List of SectorCentroid, one per distinct sector name. Order is not
        significant.

    Raises:
        TypeError: If records is not iterable or contains non-EnterpriseRecord items
    """
    options = options or AggregationOptions()
    if tracked_metrics is None:
        tracked_metrics = options.marker_metrics()
    # Marker metrics are always summed even if the caller tracks something else
    metric_names = list(OrderedDict.fromkeys(list(tracked_metrics) + options.marker_metrics()))

    buckets: Dict[str, _SectorBucket] = {}
    skipped = 0
    total = 0

    for record in records:
        if not isinstance(record, EnterpriseRecord):
            raise TypeError(f"Expected EnterpriseRecord, got {type(record).__name__}")
        total += 1
        if not has_valid_coordinates(record):
            skipped += 1
            continue

        key = sector_key(record)
        bucket = buckets.get(key)
        if bucket is None:
            code = record.sector_code
            bucket = _SectorBucket(key, str(code) if code not in (None, "") else None)
            buckets[key] = bucket
        bucket.add(record, metric_names)

    if skipped:
        logger.debug("Skipped records without valid coordinates", skipped=skipped, total=total)

    centroids = []
    for bucket in buckets.values():
        averages = bucket.averages()
        centroids.append(
            SectorCentroid(
                sector_name=bucket.sector_name,
                sector_code=bucket.sector_code or bucket.sector_name,
                x=bucket.mean_x,
                y=bucket.mean_y,
                member_count=bucket.count,
                metric_averages={m: averages[m] for m in tracked_metrics},
                marker_size=compute_marker_size(averages, bucket.count, options),
            )
        )

    logger.info("Aggregated sectors", records=total, skipped=skipped, sectors=len(centroids))
    return centroids
