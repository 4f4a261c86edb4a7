"""Lasers mounted on the sculpture and their aiming behaviour."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

__all__ = ["Laser", "MovingTarget"]


@dataclass(slots=True)
class MovingTarget:
    """Aim a laser at a target orbiting above the sculpture.

    The target circles the vertical axis at ``radius`` and ``height``
    (microns), completing one orbit every ``period_ms`` milliseconds.
    """

    origin: tuple[int, int, int]
    radius: float = 5_000_000.0
    height: float = 10_000_000.0
    period_ms: float = 10_000.0
    angle: float = 0.0

    def advance(self, delta_ms: float) -> None:
        """Move the target along its orbit by *delta_ms* milliseconds."""

        if self.period_ms <= 0.0:
            return
        self.angle = (self.angle + 2.0 * math.pi * delta_ms / self.period_ms) % (2.0 * math.pi)

    @property
    def target(self) -> np.ndarray:
        return np.array(
            [
                self.radius * math.cos(self.angle),
                self.height,
                self.radius * math.sin(self.angle),
            ],
            dtype=float,
        )

    def direction(self) -> np.ndarray:
        """Unit vector from the laser towards the current target."""

        offset = self.target - np.asarray(self.origin, dtype=float)
        norm = float(np.linalg.norm(offset))
        if norm == 0.0:
            return np.zeros(3, dtype=float)
        return offset / norm


@dataclass(frozen=True, slots=True)
class Laser:
    """Laser head at a fixed position."""

    id: str
    position: tuple[int, int, int]
    control: MovingTarget = field(compare=False, repr=False)

    @classmethod
    def with_moving_target(cls, laser_id: str, position: tuple[int, int, int]) -> "Laser":
        return cls(id=laser_id, position=position, control=MovingTarget(origin=position))
