"""Small geometry helpers for the sector map."""

import math
from typing import Iterable, List, Sequence

import numpy as np
from shapely.geometry import Polygon

from .models import Bounds, Vertex


def is_finite_number(value) -> bool:
    """True for real numbers that are neither NaN nor infinite (bools excluded)."""
    if isinstance(value, bool) or value is None:
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def padded_bounds(points: np.ndarray, padding: float) -> Bounds:
    """
    Bounding box of points grown by padding on every side.

    Args:
        points: (N, 2) array of finite coordinates, N >= 1
        padding: Margin added to each side

    Returns:
        Padded Bounds
    """
    mins = points.min(axis=0)
    maxs = points.max(axis=0)
    return Bounds(
        min_x=float(mins[0] - padding),
        max_x=float(maxs[0] + padding),
        min_y=float(mins[1] - padding),
        max_y=float(maxs[1] + padding),
    )


def clamp_to_bounds(x: float, y: float, bounds: Bounds) -> Vertex:
    return (clamp(x, bounds.min_x, bounds.max_x), clamp(y, bounds.min_y, bounds.max_y))


def regular_polygon(cx: float, cy: float, radius: float, sides: int) -> List[Vertex]:
    """Evenly spaced vertices on a circle, counter-clockwise from angle 0 (open ring)."""
    angles = 2 * np.pi * np.arange(sides) / sides
    return [(float(cx + radius * np.cos(a)), float(cy + radius * np.sin(a))) for a in angles]


def order_by_angle(cx: float, cy: float, vertices: Iterable[Vertex]) -> List[Vertex]:
    """Sort vertices counter-clockwise around (cx, cy) and drop exact duplicates."""
    ordered = sorted(vertices, key=lambda v: math.atan2(v[1] - cy, v[0] - cx))
    unique: List[Vertex] = []
    seen = set()
    for v in ordered:
        key = (round(v[0], 12), round(v[1], 12))
        if key in seen:
            continue
        seen.add(key)
        unique.append(v)
    return unique


def close_ring(vertices: Sequence[Vertex]) -> List[Vertex]:
    """Return the ring with its first vertex repeated at the end."""
    ring = list(vertices)
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring


def ring_area(ring: Sequence[Vertex]) -> float:
    if len(ring) < 4:
        return 0.0
    return float(Polygon(ring).area)
