"""
Synthetic clustering results for demos and offline development.

Each generator returns a result in the legacy embedding + labels format that
records_from_cluster_result() understands, so the sector map can be drawn
without the clustering service.
"""

import math
from typing import Any, Callable, Dict, List, Optional

import numpy as np

MOCK_VARIANTS = ("blobs", "circular", "linear", "density")

# Spread of each cluster in the density variant, cycled when k > 3
DENSITY_SPREADS = [0.3, 1.0, 0.6]


def _blobs(rng: np.random.Generator, labels: np.ndarray, n_clusters: int):
    side = math.ceil(math.sqrt(n_clusters))
    offset = (side - 1) / 2
    centers = np.array(
        [[(i % side - offset) * 4.0, (i // side - offset) * 4.0] for i in range(n_clusters)]
    )
    points = centers[labels] + (rng.random((len(labels), 2)) - 0.5) * 2
    sizes = 0.1 + rng.random(len(labels)) * 1.9
    return points, sizes


def _circular(rng: np.random.Generator, labels: np.ndarray, n_clusters: int):
    angles = labels * (2 * np.pi / n_clusters)
    centers = np.column_stack([np.cos(angles), np.sin(angles)]) * 3.0
    point_angles = rng.random(len(labels)) * 2 * np.pi
    point_radii = rng.random(len(labels)) * 0.8
    offsets = np.column_stack([np.cos(point_angles), np.sin(point_angles)]) * point_radii[:, None]
    sizes = 0.2 + rng.random(len(labels)) * 1.5
    return centers + offsets, sizes


def _linear(rng: np.random.Generator, labels: np.ndarray, n_clusters: int):
    slopes = labels * 0.5 - 1
    base_x = (rng.random(len(labels)) - 0.5) * 6
    base_y = slopes * base_x + labels * 2 - 3
    noise = (rng.random((len(labels), 2)) - 0.5) * 0.5
    sizes = 0.3 + rng.random(len(labels)) * 1.2
    return np.column_stack([base_x, base_y]) + noise, sizes


def _density(rng: np.random.Generator, labels: np.ndarray, n_clusters: int):
    spreads = np.array([DENSITY_SPREADS[i % len(DENSITY_SPREADS)] for i in range(n_clusters)])
    centers = np.column_stack([(np.arange(n_clusters) - (n_clusters - 1) / 2) * 3.0,
                               np.zeros(n_clusters)])
    spread = spreads[labels]
    points = centers[labels] + (rng.random((len(labels), 2)) - 0.5) * (spread * 4)[:, None]
    # Denser clusters hold larger companies
    sizes = 0.2 + rng.random(len(labels)) / (spread + 0.1)
    return points, sizes


_GENERATORS: Dict[str, Callable] = {
    "blobs": _blobs,
    "circular": _circular,
    "linear": _linear,
    "density": _density,
}


def generate_mock_result(
    variant: str = "blobs",
    n_samples: int = 150,
    n_clusters: int = 4,
    seed: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Generate a synthetic clustering result.

    Args:
        variant: One of MOCK_VARIANTS
        n_samples: Number of points
        n_clusters: Number of clusters (>= 2)
        seed: Random seed for reproducible output

    Returns:
        Dict with embedding, labels, size, best_k, k_candidates and n_samples

    Raises:
        ValueError: On an unknown variant or invalid counts
    """
    if variant not in _GENERATORS:
        raise ValueError(f"Unknown mock variant: {variant}")
    if n_samples < 1 or n_clusters < 2:
        raise ValueError("n_samples must be >= 1 and n_clusters >= 2")

    rng = np.random.default_rng(seed)
    labels = rng.integers(0, n_clusters, n_samples)
    points, sizes = _GENERATORS[variant](rng, labels, n_clusters)

    embedding: List[List[float]] = [[float(x), float(y)] for x, y in points]
    return {
        "dataset_id": f"mock_{variant}",
        "best_k": n_clusters,
        "k_candidates": list(range(max(2, n_clusters - 1), n_clusters + 2)),
        "n_samples": n_samples,
        "embedding": embedding,
        "labels": [int(label) for label in labels],
        "size": [float(s) for s in sizes],
    }
