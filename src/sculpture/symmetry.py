"""Group edges into mirror-symmetric clusters."""

from __future__ import annotations

import math
from typing import Iterable, Mapping, Sequence

__all__ = ["build_symmetry_groups", "symmetry_key"]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def symmetry_key(center: Sequence[float], *, bucket: int = 100_000) -> tuple[int, int, int]:
    """Quantize ``(|y|, |z|)`` of an edge center into *bucket* sized cells.

    The x coordinate is dropped so fore/aft mirrors land together, and the
    absolute values fold port/starboard mirrors onto each other.
    """

    abs_y = _round_half_up(abs(float(center[1])) / bucket)
    abs_z = _round_half_up(abs(float(center[2])) / bucket)
    return (0, abs_y * bucket, abs_z * bucket)


def build_symmetry_groups(
    centers: Iterable[tuple[str, Sequence[float]]],
    *,
    bucket: int = 100_000,
) -> tuple[dict[str, tuple[int, int, int]], Mapping[tuple[int, int, int], tuple[str, ...]]]:
    """Return each edge's key and the edge ids grouped under every key."""

    keys: dict[str, tuple[int, int, int]] = {}
    groups: dict[tuple[int, int, int], list[str]] = {}
    for edge_id, center in centers:
        key = symmetry_key(center, bucket=bucket)
        keys[edge_id] = key
        groups.setdefault(key, []).append(edge_id)
    return keys, {key: tuple(members) for key, members in groups.items()}
