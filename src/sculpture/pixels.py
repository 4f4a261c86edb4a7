"""Pixel placement and derived geometry for edges and panels."""

from __future__ import annotations

import logging
import math
from typing import Mapping, Sequence

import numpy as np

from .model import PanelFlip, PanelSection
from .striping import StartSide, StripingInstructions

__all__ = [
    "classify_section",
    "edge_pixels",
    "panel_normal",
    "panel_pixels",
]

logger = logging.getLogger(__name__)

Vector = np.ndarray


def edge_pixels(start: Sequence[float], end: Sequence[float], leds_per_micron: float) -> np.ndarray:
    """Evenly spaced pixels along the segment, one per LED slot."""

    p0 = np.asarray(start, dtype=float)
    p1 = np.asarray(end, dtype=float)
    count = int(math.floor(float(np.linalg.norm(p1 - p0)) * leds_per_micron))
    if count <= 0:
        return np.empty((0, 3), dtype=float)
    fractions = (np.arange(count, dtype=float) + 0.5) / count
    return p0 + np.outer(fractions, p1 - p0)


def _unit(vector: Vector) -> Vector | None:
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        return None
    return vector / norm


def panel_pixels(
    positions: Mapping[int, Sequence[float]],
    striping: StripingInstructions,
    *,
    pixel_pitch: float,
    row_pitch: float,
) -> np.ndarray:
    """Lay out striped rows inside the triangle described by *positions*.

    Rows start at the signal-in vertex, run parallel to the edge joining it to
    the lower-id remaining vertex and step towards the apex by ``row_pitch``.
    Odd rows run in the opposite direction; each row is pushed outward on its
    starting side by its before-nudge.
    """

    others = sorted(vertex_id for vertex_id in positions if vertex_id != striping.starting_vertex)
    a = np.asarray(positions[striping.starting_vertex], dtype=float)
    b = np.asarray(positions[others[0]], dtype=float)
    c = np.asarray(positions[others[1]], dtype=float)

    base = b - a
    base_length = float(np.linalg.norm(base))
    height = float(np.linalg.norm(np.cross(base, c - a))) / base_length if base_length else 0.0
    if height == 0.0:
        logger.warning("Panel %s is degenerate; no pixels placed", striping.panel_id)
        return np.empty((0, 3), dtype=float)

    base_direction = base / base_length
    rows: list[np.ndarray] = []
    for row, (length, nudge) in enumerate(zip(striping.row_lengths, striping.before_nudges)):
        if length <= 0:
            continue
        t = min((row + 0.5) * row_pitch / height, 1.0)
        left = a + (c - a) * t
        right = b + (c - b) * t
        from_left = (striping.start_side is StartSide.LEFT) == (row % 2 == 0)
        start, end = (left, right) if from_left else (right, left)
        direction = _unit(end - start)
        if direction is None:
            direction = base_direction if from_left else -base_direction
        steps = (np.arange(length, dtype=float) + 0.5 - nudge) * pixel_pitch
        rows.append(start + np.outer(steps, direction))

    if not rows:
        return np.empty((0, 3), dtype=float)
    return np.concatenate(rows, axis=0)


def panel_normal(
    positions: Mapping[int, Sequence[float]],
    flip: PanelFlip,
) -> tuple[float, float, float]:
    """Unit normal of the triangle wound by ascending vertex id."""

    p0, p1, p2 = (np.asarray(positions[vid], dtype=float) for vid in sorted(positions))
    normal = _unit(np.cross(p1 - p0, p2 - p0))
    if normal is None:
        return (0.0, 0.0, 0.0)
    if flip is PanelFlip.FLIPPED:
        normal = -normal
    return (float(normal[0]), float(normal[1]), float(normal[2]))


def classify_section(
    positions: Mapping[int, Sequence[float]],
    *,
    tolerance: float,
) -> PanelSection:
    """Assign a panel to a section from its centroid.

    ``x`` runs fore (positive) to aft and ``z`` runs starboard (positive) to
    port. Panels centred on the keel plane are end panels; side panels whose
    corners straddle ``x = 0`` are the ``_SINGLE`` variants.
    """

    corners = np.asarray([positions[vid] for vid in sorted(positions)], dtype=float)
    centroid = corners.mean(axis=0)
    fore = centroid[0] >= 0.0
    if abs(centroid[2]) <= tolerance:
        return PanelSection.FORE if fore else PanelSection.AFT

    side = "STARBOARD" if centroid[2] > 0.0 else "PORT"
    end = "FORE" if fore else "AFT"
    single = corners[:, 0].min() < 0.0 < corners[:, 0].max()
    name = f"{side}_{end}_SINGLE" if single else f"{side}_{end}"
    return PanelSection[name]
