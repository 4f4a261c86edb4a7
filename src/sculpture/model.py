"""Immutable mesh graph of a loaded sculpture.

Entities refer to one another by identifier. Vertices list their incident
edge ids, edges list the ids of the panels built on them, and the
:class:`SculptureModel` resolves identifiers back into entities.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import numpy as np

from .errors import UnknownTokenError
from .lasers import Laser
from .output import ControllerAddress
from .striping import StripingInstructions

__all__ = [
    "BOX_POINT_COUNT",
    "LEFT_SECTIONS",
    "LIT_FLAVOR",
    "RIGHT_SECTIONS",
    "BoundaryPoint",
    "Boundaries",
    "Box",
    "Edge",
    "EdgeKind",
    "Panel",
    "PanelFlip",
    "PanelSection",
    "SculptureModel",
    "SymmetryKey",
    "Vertex",
]


BOX_POINT_COUNT = 8
LIT_FLAVOR = "lit"

SymmetryKey = tuple[int, int, int]
Coordinate = tuple[int, int, int]


class EdgeKind(str, Enum):
    """Wiring treatment of an edge."""

    DEFAULT = "default"
    REVERSED = "reversed"
    DARK = "dark"

    @classmethod
    def parse(cls, token: str, *, where: str = "") -> "EdgeKind":
        try:
            return cls(token)
        except ValueError:
            raise UnknownTokenError("edge kind", token, where=where) from None


class PanelFlip(str, Enum):
    """Orientation of a panel's triangulation."""

    FLIPPED = "flipped"
    UNFLIPPED = "unflipped"

    @classmethod
    def parse(cls, token: str, *, where: str = "") -> "PanelFlip":
        try:
            return cls(token)
        except ValueError:
            raise UnknownTokenError("flip token", token, where=where) from None


class PanelSection(str, Enum):
    """Coarse structural zone of a panel."""

    FORE = "fore"
    AFT = "aft"
    STARBOARD_FORE = "starboard_fore"
    STARBOARD_FORE_SINGLE = "starboard_fore_single"
    STARBOARD_AFT = "starboard_aft"
    STARBOARD_AFT_SINGLE = "starboard_aft_single"
    PORT_FORE = "port_fore"
    PORT_FORE_SINGLE = "port_fore_single"
    PORT_AFT = "port_aft"
    PORT_AFT_SINGLE = "port_aft_single"


LEFT_SECTIONS = (
    PanelSection.STARBOARD_AFT,
    PanelSection.STARBOARD_AFT_SINGLE,
    PanelSection.AFT,
)
RIGHT_SECTIONS = (
    PanelSection.STARBOARD_FORE,
    PanelSection.STARBOARD_FORE_SINGLE,
    PanelSection.FORE,
)


def _readonly(points: np.ndarray) -> np.ndarray:
    array = np.array(points, dtype=float).reshape(-1, 3)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, slots=True)
class Vertex:
    id: int
    position: Coordinate
    edge_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Edge:
    """LED strip segment between two vertices, ``v0 < v1``."""

    id: str
    v0: int
    v1: int
    kind: EdgeKind
    center: tuple[float, float, float]
    length: float
    points: np.ndarray = field(compare=False, repr=False)
    point_offset: int = 0
    symmetry_key: SymmetryKey = (0, 0, 0)
    panel_ids: tuple[str, ...] = ()
    controller: ControllerAddress | None = None

    def __post_init__(self) -> None:
        if not self.v0 < self.v1:
            raise ValueError(f"Edge '{self.id}' must satisfy v0 < v1.")
        object.__setattr__(self, "points", _readonly(self.points))

    @property
    def dark(self) -> bool:
        return self.kind is EdgeKind.DARK

    @property
    def forward(self) -> bool:
        return self.kind is not EdgeKind.REVERSED

    @property
    def vertex_ids(self) -> tuple[int, int]:
        return (self.v0, self.v1)

    @property
    def point_indices(self) -> range:
        return range(self.point_offset, self.point_offset + len(self.points))


@dataclass(frozen=True, slots=True)
class Panel:
    """Triangular LED surface bounded by three edges."""

    id: str
    vertex_ids: tuple[int, int, int]
    edge_ids: tuple[str, str, str]
    flip: PanelFlip
    flavor: str
    section: PanelSection
    centroid: tuple[float, float, float]
    normal: tuple[float, float, float]
    points: np.ndarray = field(compare=False, repr=False)
    point_offset: int = 0
    striping: StripingInstructions | None = field(default=None, repr=False)
    output_config: str | None = None
    controller: ControllerAddress | None = None

    def __post_init__(self) -> None:
        if len(set(self.vertex_ids)) != 3:
            raise ValueError(f"Panel '{self.id}' must span exactly three vertices.")
        object.__setattr__(self, "points", _readonly(self.points))

    @property
    def lit(self) -> bool:
        return self.output_config is not None

    @property
    def flipped(self) -> bool:
        return self.flip is PanelFlip.FLIPPED

    @property
    def strand_length(self) -> int:
        if self.striping is None:
            return 0
        return self.striping.strand_length

    @property
    def point_indices(self) -> range:
        return range(self.point_offset, self.point_offset + len(self.points))


@dataclass(frozen=True, slots=True)
class Box:
    """Axis-free bounding solid described by eight corner points."""

    points: tuple[Coordinate, ...]

    def __post_init__(self) -> None:
        if len(self.points) != BOX_POINT_COUNT:
            raise ValueError(f"Box needs {BOX_POINT_COUNT} points, received {len(self.points)}.")

    def mirrored(self) -> "Box":
        """Reflect the box across the z = 0 plane."""

        return Box(tuple((x, y, -z) for x, y, z in self.points))

    @property
    def centroid(self) -> tuple[float, float, float]:
        mean = np.asarray(self.points, dtype=float).mean(axis=0)
        return (float(mean[0]), float(mean[1]), float(mean[2]))


@dataclass(frozen=True, slots=True)
class BoundaryPoint:
    index: int
    point: tuple[float, float, float]


@dataclass(frozen=True, slots=True)
class Boundaries:
    """Extreme points of the model along each axis.

    Only the coordinate on the matching axis of each point is meaningful.
    """

    min_x: BoundaryPoint
    max_x: BoundaryPoint
    min_y: BoundaryPoint
    max_y: BoundaryPoint
    min_z: BoundaryPoint
    max_z: BoundaryPoint

    def extent(self, axis: int) -> tuple[float, float]:
        lower, upper = {
            0: (self.min_x, self.max_x),
            1: (self.min_y, self.max_y),
            2: (self.min_z, self.max_z),
        }[axis]
        return lower.point[axis], upper.point[axis]

    def to_mapping(self) -> dict[str, float]:
        return {
            "min_x": self.min_x.point[0],
            "max_x": self.max_x.point[0],
            "min_y": self.min_y.point[1],
            "max_y": self.max_y.point[1],
            "min_z": self.min_z.point[2],
            "max_z": self.max_z.point[2],
        }


@dataclass(frozen=True, slots=True)
class SculptureModel:
    """Read-only graph produced by :class:`sculpture.loader.ModelBuilder`."""

    name: str
    root: Path
    vertices: Mapping[int, Vertex]
    edges: Mapping[str, Edge]
    panels: Mapping[str, Panel]
    lasers: Mapping[str, Laser]
    boxes: tuple[Box, ...]
    edges_by_symmetry_group: Mapping[SymmetryKey, tuple[str, ...]]
    panels_by_section_id: Mapping[PanelSection, tuple[str, ...]]
    panels_by_flavor: Mapping[str, tuple[str, ...]]
    points: np.ndarray = field(compare=False, repr=False)
    edge_point_count: int
    boundaries: Boundaries

    def __post_init__(self) -> None:
        for name in (
            "vertices",
            "edges",
            "panels",
            "lasers",
            "edges_by_symmetry_group",
            "panels_by_section_id",
            "panels_by_flavor",
        ):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "points", _readonly(self.points))

    def vertex(self, vertex_id: int) -> Vertex:
        return self.vertices[vertex_id]

    def edge(self, edge_id: str) -> Edge:
        return self.edges[edge_id]

    def panel(self, panel_id: str) -> Panel:
        return self.panels[panel_id]

    def edges_of(self, vertex: Vertex | int) -> tuple[Edge, ...]:
        vertex_id = vertex.id if isinstance(vertex, Vertex) else vertex
        return tuple(self.edges[edge_id] for edge_id in self.vertices[vertex_id].edge_ids)

    def panels_of(self, edge: Edge | str) -> tuple[Panel, ...]:
        edge_id = edge.id if isinstance(edge, Edge) else edge
        return tuple(self.panels[panel_id] for panel_id in self.edges[edge_id].panel_ids)

    def symmetry_group(self, edge: Edge | str) -> tuple[Edge, ...]:
        """Edges sharing the mirrored position of *edge*, itself included."""

        key = (edge if isinstance(edge, Edge) else self.edges[edge]).symmetry_key
        return tuple(self.edges[edge_id] for edge_id in self.edges_by_symmetry_group[key])

    def panels_by_section(self, section: PanelSection) -> tuple[Panel, ...]:
        return tuple(self.panels[pid] for pid in self.panels_by_section_id.get(section, ()))

    def panels_by_sections(self, sections: Collection[PanelSection]) -> tuple[Panel, ...]:
        wanted = set(sections)
        return tuple(
            self.panels[pid]
            for section, panel_ids in self.panels_by_section_id.items()
            if section in wanted
            for pid in panel_ids
        )

    def points_by_section(self, section: PanelSection) -> np.ndarray:
        panels = self.panels_by_section(section)
        if not panels:
            return np.empty((0, 3), dtype=float)
        return np.concatenate([panel.points for panel in panels], axis=0)

    def panels_with_flavor(self, flavor: str) -> tuple[Panel, ...]:
        return tuple(self.panels[pid] for pid in self.panels_by_flavor.get(flavor, ()))

    def left_panels(self) -> tuple[Panel, ...]:
        return self.panels_by_sections(LEFT_SECTIONS)

    def right_panels(self) -> tuple[Panel, ...]:
        return self.panels_by_sections(RIGHT_SECTIONS)

    def all_edges(self) -> tuple[Edge, ...]:
        return tuple(self.edges.values())

    def all_panels(self) -> tuple[Panel, ...]:
        return tuple(self.panels.values())

    @property
    def edge_points(self) -> np.ndarray:
        return self.points[: self.edge_point_count]

    @property
    def panel_points(self) -> np.ndarray:
        return self.points[self.edge_point_count :]

    def is_edge_point(self, index: int) -> bool:
        return 0 <= index < self.edge_point_count

    def is_panel_point(self, index: int) -> bool:
        return self.edge_point_count <= index < len(self.points)

    def summary(self) -> dict[str, Any]:
        """JSON-ready counts and boundaries."""

        return {
            "name": self.name,
            "vertices": len(self.vertices),
            "edges": len(self.edges),
            "panels": len(self.panels),
            "lit_panels": len(self.panels_by_flavor.get(LIT_FLAVOR, ())),
            "lasers": len(self.lasers),
            "boxes": len(self.boxes),
            "symmetry_groups": len(self.edges_by_symmetry_group),
            "pixels": int(len(self.points)),
            "edge_pixels": self.edge_point_count,
            "panel_pixels": int(len(self.points)) - self.edge_point_count,
            "sections": {
                section.value: len(panel_ids)
                for section, panel_ids in self.panels_by_section_id.items()
            },
            "boundaries": self.boundaries.to_mapping(),
        }
