"""
Sector aggregation and approximate Voronoi tessellation.
"""

from .models import EnterpriseRecord, SectorCentroid, VoronoiCell, SectorMap, Bounds
from .sector_aggregator import AggregationOptions, aggregate
from .voronoi_tessellator import TessellationOptions, tessellate
from .sector_map import build_sector_map
from .normalization import records_from_cluster_result, normalize_enterprise
from .palette import sector_colors

__all__ = ['EnterpriseRecord', 'SectorCentroid', 'VoronoiCell', 'SectorMap', 'Bounds',
           'AggregationOptions', 'aggregate', 'TessellationOptions', 'tessellate',
           'build_sector_map', 'records_from_cluster_result', 'normalize_enterprise',
           'sector_colors']
