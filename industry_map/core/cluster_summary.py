"""Per-cluster size, centroid and spread for the results panel."""

from typing import Dict, Iterable, List

import numpy as np
from pydantic import BaseModel
from scipy.spatial.distance import cdist

from .models import EnterpriseRecord
from .sector_aggregator import has_valid_coordinates


class ClusterCentroid(BaseModel):
    x: float
    y: float


class ClusterSummary(BaseModel):
    id: int
    size: int
    centroid: ClusterCentroid
    avg_distance: float


def summarize_clusters(records: Iterable[EnterpriseRecord]) -> List[ClusterSummary]:
    """
    Summarise records by cluster label.

    Records without a label or without finite coordinates are ignored.
    avg_distance is the mean Euclidean distance of members to their centroid.
    """
    groups: Dict[int, List[List[float]]] = {}
    for record in records:
        if record.cluster is None or not has_valid_coordinates(record):
            continue
        groups.setdefault(record.cluster, []).append([record.x, record.y])

    summaries = []
    for cluster_id in sorted(groups):
        points = np.array(groups[cluster_id], dtype=float)
        center = points.mean(axis=0)
        distances = cdist(points, center[np.newaxis, :]).ravel()
        summaries.append(
            ClusterSummary(
                id=cluster_id,
                size=len(points),
                centroid=ClusterCentroid(x=float(center[0]), y=float(center[1])),
                avg_distance=float(distances.mean()),
            )
        )
    return summaries
