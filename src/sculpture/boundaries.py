"""Spatial extent of an assembled point cloud."""

from __future__ import annotations

import numpy as np

from .errors import EmptyPointSetError
from .model import BoundaryPoint, Boundaries

__all__ = ["compute_boundaries"]


def _boundary(points: np.ndarray, index: int) -> BoundaryPoint:
    row = points[index]
    return BoundaryPoint(index=int(index), point=(float(row[0]), float(row[1]), float(row[2])))


def compute_boundaries(points: np.ndarray) -> Boundaries:
    """Find the min and max point along each axis.

    Ties resolve to the earliest point in the cloud.
    """

    cloud = np.asarray(points, dtype=float).reshape(-1, 3)
    if cloud.shape[0] == 0:
        raise EmptyPointSetError("cannot compute boundaries of an empty point set")

    minima = np.argmin(cloud, axis=0)
    maxima = np.argmax(cloud, axis=0)
    return Boundaries(
        min_x=_boundary(cloud, minima[0]),
        max_x=_boundary(cloud, maxima[0]),
        min_y=_boundary(cloud, minima[1]),
        max_y=_boundary(cloud, maxima[1]),
        min_z=_boundary(cloud, minima[2]),
        max_z=_boundary(cloud, maxima[2]),
    )
