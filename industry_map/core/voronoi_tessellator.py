"""
Approximate Voronoi tessellation of sector centroids.

This is a visual approximation, not a planar partition. Each centroid gets a
star-shaped polygon built from the perpendicular bisectors to its nearest
neighbours, so neighbouring cells may overlap or leave gaps. Isolated
centroids get a small regular polygon instead.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, Field
from sklearn.neighbors import KDTree

from .geometry import (
    clamp_to_bounds,
    close_ring,
    is_finite_number,
    order_by_angle,
    padded_bounds,
    regular_polygon,
    ring_area,
)
from .models import Bounds, SectorCentroid, Vertex, VoronoiCell
from .palette import hex_to_rgba, sector_colors

logger = structlog.get_logger()

MIN_CENTROIDS = 2


class TessellationOptions(BaseModel):
    """Tessellation parameters. Defaults match the dashboard's observed values."""

    neighbor_count: int = Field(default=6, ge=1, description="Nearest neighbours per cell")
    padding: float = Field(default=1.0, gt=0, description="Bounding box margin")
    padding_cap: float = Field(default=1.0, gt=0, description="Max half-length of a bisector segment")
    fallback_radius: float = Field(default=0.5, gt=0, description="Radius of the isolated-point polygon")
    fallback_sides: int = Field(default=12, ge=3, description="Sides of the isolated-point polygon")
    fill_opacity: float = Field(default=0.7, ge=0, le=1, description="Alpha of the cell fill")


def valid_centroids(centroids: Iterable[SectorCentroid]) -> List[SectorCentroid]:
    """Drop centroids with non-finite coordinates."""
    valid = []
    for centroid in centroids:
        if not isinstance(centroid, SectorCentroid):
            raise TypeError(f"Expected SectorCentroid, got {type(centroid).__name__}")
        if is_finite_number(centroid.x) and is_finite_number(centroid.y):
            valid.append(centroid)
    return valid


def find_neighbors(points: np.ndarray, neighbor_count: int) -> List[List[Tuple[int, float]]]:
    """
    Nearest neighbours of every point, excluding the point itself.

    Args:
        points: (N, 2) array, N >= 2
        neighbor_count: Max neighbours per point

    Returns:
        Per point, a list of (index, distance) sorted by ascending distance
    """
    k = min(neighbor_count, len(points) - 1)
    tree = KDTree(points)
    distances, indices = tree.query(points, k=k + 1)

    neighbors = []
    for i in range(len(points)):
        row = [(int(j), float(d)) for j, d in zip(indices[i], distances[i]) if j != i]
        neighbors.append(row[:k])
    return neighbors


def bisector_vertices(
    p: np.ndarray, neighbors: List[Tuple[int, float]], points: np.ndarray, cap: float
) -> List[Vertex]:
    """
    Endpoints of the perpendicular bisector segments between p and each neighbour.

    Each segment is centred on the midpoint of p-q and extends min(d/2, cap)
    to either side. Coincident neighbours have no bisector and are skipped.
    """
    vertices: List[Vertex] = []
    for j, distance in neighbors:
        if distance <= 0:
            continue
        q = points[j]
        mid = (p + q) / 2.0
        direction = (q - p) / distance
        perpendicular = np.array([-direction[1], direction[0]])
        offset = perpendicular * min(distance / 2.0, cap)
        for vertex in (mid + offset, mid - offset):
            vertices.append((float(vertex[0]), float(vertex[1])))
    return vertices


def cell_fill(color: str, opacity: float) -> str:
    try:
        return hex_to_rgba(color, opacity)
    except ValueError:
        # Named or already-rgba colors are passed through
        return color


def fallback_polygon(p: np.ndarray, bounds: Bounds, options: TessellationOptions) -> List[Vertex]:
    # Radius no larger than the padding keeps the polygon inside the box
    radius = min(options.fallback_radius, options.padding)
    ring = regular_polygon(float(p[0]), float(p[1]), radius, options.fallback_sides)
    return [clamp_to_bounds(x, y, bounds) for x, y in ring]


def tessellate(
    centroids: Iterable[SectorCentroid],
    options: Optional[TessellationOptions] = None,
    colors: Optional[Dict[str, str]] = None,
) -> List[VoronoiCell]:
    """
    Build one approximate territory polygon per centroid.

    Args:
        centroids: Sector centroids, typically from aggregate()
        options: Tessellation parameters
        colors: Sector name -> color mapping to share with centroid markers;
            computed from the centroid names when omitted

    Returns:
        One VoronoiCell per valid centroid in input order, or [] when fewer
        than two valid centroids remain
    """
    options = options or TessellationOptions()
    valid = valid_centroids(centroids)
    if len(valid) < MIN_CENTROIDS:
        logger.info("Not enough centroids to tessellate", centroids=len(valid))
        return []

    names = [c.sector_name for c in valid]
    palette_map = sector_colors(names)
    if colors:
        palette_map.update({name: colors[name] for name in names if name in colors})

    points = np.array([[c.x, c.y] for c in valid], dtype=float)
    bounds = padded_bounds(points, options.padding)
    neighbors = find_neighbors(points, options.neighbor_count)

    cells = []
    fallbacks = 0
    for i, centroid in enumerate(valid):
        p = points[i]
        ring: List[Vertex] = []
        usable = [(j, d) for j, d in neighbors[i] if d > 0]

        if len(usable) >= 2:
            raw = bisector_vertices(p, usable, points, options.padding_cap)
            clamped = [clamp_to_bounds(x, y, bounds) for x, y in raw]
            ring = order_by_angle(float(p[0]), float(p[1]), clamped)

        is_fallback = len(ring) < 3
        if is_fallback:
            fallbacks += 1
            ring = fallback_polygon(p, bounds, options)

        closed = close_ring(ring)
        cells.append(
            VoronoiCell(
                centroid=centroid,
                vertices=closed,
                color=palette_map[centroid.sector_name],
                fill=cell_fill(palette_map[centroid.sector_name], options.fill_opacity),
                area=ring_area(closed),
                fallback=is_fallback,
            )
        )

    logger.info("Tessellated sectors", cells=len(cells), fallbacks=fallbacks)
    return cells


def tessellation_bounds(
    centroids: Iterable[SectorCentroid], options: Optional[TessellationOptions] = None
) -> Optional[Bounds]:
    """Padded bounding box every cell vertex is clamped into, or None without centroids."""
    options = options or TessellationOptions()
    valid = valid_centroids(centroids)
    if not valid:
        return None
    points = np.array([[c.x, c.y] for c in valid], dtype=float)
    return padded_bounds(points, options.padding)

