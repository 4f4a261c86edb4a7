"""Junction box placement for powering edge and panel LED strips."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, MutableMapping, Sequence

from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import shortest_path

from .model import SculptureModel

__all__ = [
    "EdgeStrip",
    "JunctionBox",
    "JunctionBoxCircuit",
    "JunctionBoxPlanner",
    "PanelStrip",
    "PowerPlan",
    "VertexGraph",
]

logger = logging.getLogger(__name__)

MAX_CURRENT_PER_LED = 0.06
STRIPS_PER_EDGE = 3
CIRCUITS_PER_BOX = 16
CIRCUIT_MAX_CURRENT = 15.0
# 17 ft of 12 AWG drops about 1 V.
MAX_RUN_MICRONS = 17 * 304_800


@dataclass(frozen=True, slots=True)
class EdgeStrip:
    """One of the parallel LED strips running along an edge."""

    id: str
    edge_id: str
    vertex_ids: tuple[int, int]
    length: float
    leds_per_micron: float
    current_per_led: float = MAX_CURRENT_PER_LED

    @property
    def num_leds(self) -> float:
        return self.length * self.leds_per_micron

    @property
    def current(self) -> float:
        return self.num_leds * self.current_per_led


@dataclass(frozen=True, slots=True)
class PanelStrip:
    """The single strand feeding a panel's pixels."""

    id: str
    panel_id: str
    vertex_ids: tuple[int, int, int]
    num_leds: int
    current_per_led: float = MAX_CURRENT_PER_LED

    @property
    def current(self) -> float:
        return self.num_leds * self.current_per_led


Strip = EdgeStrip | PanelStrip


@dataclass(slots=True)
class JunctionBoxCircuit:
    """Fused circuit inside a junction box."""

    id: str
    junction_box_id: str
    max_current: float = CIRCUIT_MAX_CURRENT
    edge_strips: list[EdgeStrip] = field(default_factory=list)
    panel_strips: list[PanelStrip] = field(default_factory=list)

    @property
    def current(self) -> float:
        return sum(s.current for s in self.edge_strips) + sum(s.current for s in self.panel_strips)

    @property
    def utilization(self) -> float:
        return self.current / self.max_current

    def fits(self, strip: Strip) -> bool:
        return self.current + strip.current <= self.max_current

    def add(self, strip: Strip) -> None:
        if isinstance(strip, EdgeStrip):
            self.edge_strips.append(strip)
        else:
            self.panel_strips.append(strip)

    def copy(self) -> "JunctionBoxCircuit":
        return JunctionBoxCircuit(
            id=self.id,
            junction_box_id=self.junction_box_id,
            max_current=self.max_current,
            edge_strips=list(self.edge_strips),
            panel_strips=list(self.panel_strips),
        )


@dataclass(slots=True)
class JunctionBox:
    """Power supply enclosure mounted at a vertex."""

    id: str
    vertex_id: int
    circuits: list[JunctionBoxCircuit]

    @classmethod
    def at_vertex(
        cls,
        vertex_id: int,
        ordinal: int,
        *,
        circuits: int = CIRCUITS_PER_BOX,
        max_current: float = CIRCUIT_MAX_CURRENT,
    ) -> "JunctionBox":
        box_id = f"{vertex_id}-{ordinal}"
        return cls(
            id=box_id,
            vertex_id=vertex_id,
            circuits=[
                JunctionBoxCircuit(id=f"{box_id}-{index}", junction_box_id=box_id, max_current=max_current)
                for index in range(circuits)
            ],
        )

    @property
    def current(self) -> float:
        return sum(circuit.current for circuit in self.circuits)

    @property
    def utilization(self) -> float:
        return sum(circuit.utilization for circuit in self.circuits) / len(self.circuits)

    def strips(self) -> list[Strip]:
        collected: list[Strip] = []
        for circuit in self.circuits:
            collected.extend(circuit.edge_strips)
            collected.extend(circuit.panel_strips)
        return collected

    def copy(self) -> "JunctionBox":
        return JunctionBox(
            id=self.id,
            vertex_id=self.vertex_id,
            circuits=[circuit.copy() for circuit in self.circuits],
        )


class VertexGraph:
    """Vertex adjacency and shortest path distances over edge lengths."""

    def __init__(self, model: SculptureModel) -> None:
        self._order = sorted(model.vertices)
        self._index = {vertex_id: position for position, vertex_id in enumerate(self._order)}
        self.adjacency: dict[int, tuple[int, ...]] = {}
        for vertex_id in self._order:
            neighbours = []
            for edge in model.edges_of(vertex_id):
                other = edge.v1 if edge.v0 == vertex_id else edge.v0
                if other not in neighbours:
                    neighbours.append(other)
            self.adjacency[vertex_id] = tuple(neighbours)

        size = len(self._order)
        rows = [self._index[edge.v0] for edge in model.edges.values()]
        cols = [self._index[edge.v1] for edge in model.edges.values()]
        weights = [edge.length for edge in model.edges.values()]
        matrix = csr_matrix((weights, (rows, cols)), shape=(size, size))
        self._distances = shortest_path(matrix, directed=False)

    def min_distance(self, a: int, b: int) -> float:
        return float(self._distances[self._index[a], self._index[b]])


@dataclass(frozen=True, slots=True)
class PowerPlan:
    """Junction boxes keyed by the vertex they are mounted on."""

    boxes: Mapping[int, tuple[JunctionBox, ...]]

    def all_boxes(self) -> list[JunctionBox]:
        return [box for boxes in self.boxes.values() for box in boxes]

    @property
    def total_current(self) -> float:
        return sum(box.current for box in self.all_boxes())

    @property
    def average_utilization(self) -> float:
        boxes = self.all_boxes()
        if not boxes:
            return 0.0
        return sum(box.utilization for box in boxes) / len(boxes)

    def report(self) -> dict[str, Any]:
        vertices = []
        for vertex_id, boxes in sorted(self.boxes.items()):
            if not boxes:
                continue
            vertices.append(
                {
                    "vertex_id": vertex_id,
                    "boxes": len(boxes),
                    "current_a": sum(box.current for box in boxes),
                    "utilization": sum(box.utilization for box in boxes) / len(boxes),
                }
            )
        return {
            "vertices": vertices,
            "vertex_count": len(vertices),
            "box_count": len(self.all_boxes()),
            "total_current_a": self.total_current,
            "average_utilization": self.average_utilization,
        }


class JunctionBoxPlanner:
    """Greedy junction box placement followed by optional consolidation."""

    def __init__(
        self,
        model: SculptureModel,
        *,
        leds_per_micron: float = 0.00006,
        current_per_led: float = MAX_CURRENT_PER_LED,
        strips_per_edge: int = STRIPS_PER_EDGE,
        circuits_per_box: int = CIRCUITS_PER_BOX,
        circuit_max_current: float = CIRCUIT_MAX_CURRENT,
        max_run: float = MAX_RUN_MICRONS,
    ) -> None:
        self.model = model
        self.graph = VertexGraph(model)
        self.circuits_per_box = circuits_per_box
        self.circuit_max_current = circuit_max_current
        self.max_run = max_run
        self.edge_strips: list[EdgeStrip] = [
            EdgeStrip(
                id=f"{edge.id}/{index}",
                edge_id=edge.id,
                vertex_ids=edge.vertex_ids,
                length=edge.length,
                leds_per_micron=leds_per_micron,
                current_per_led=current_per_led,
            )
            for edge in model.edges.values()
            if not edge.dark
            for index in range(strips_per_edge)
        ]
        self.panel_strips: list[PanelStrip] = [
            PanelStrip(
                id=panel.id,
                panel_id=panel.id,
                vertex_ids=panel.vertex_ids,
                num_leds=len(panel.points),
                current_per_led=current_per_led,
            )
            for panel in model.panels.values()
            if len(panel.points)
        ]

    def place(self) -> PowerPlan:
        """Assign every strip to the least utilized reachable circuit."""

        boxes: dict[int, list[JunctionBox]] = {}
        for strip in [*self.edge_strips, *self.panel_strips]:
            candidates = self._candidates(strip, boxes)
            if not candidates:
                vertex_id = strip.vertex_ids[0]
                box = self._new_box(vertex_id, boxes)
                box.circuits[0].add(strip)
                continue
            min(candidates, key=lambda circuit: circuit.utilization).add(strip)
        plan = _freeze(boxes)
        logger.info(
            "Placed %d junction boxes drawing %.1f A", len(plan.all_boxes()), plan.total_current
        )
        return plan

    def balance(self, plan: PowerPlan) -> PowerPlan:
        """Empty under-used boxes into their neighbours until nothing moves."""

        boxes = {vertex: list(entries) for vertex, entries in plan.boxes.items()}
        while True:
            changed = False
            ordered = sorted(
                (box for entries in boxes.values() for box in entries),
                key=lambda box: box.utilization,
            )
            for box in ordered:
                trial = _copy_boxes(boxes)
                if self._try_empty(box.id, trial):
                    logger.debug("Consolidated junction box %s", box.id)
                    boxes = trial
                    changed = True
            if not changed:
                return _freeze(boxes)

    def _new_box(self, vertex_id: int, boxes: MutableMapping[int, list[JunctionBox]]) -> JunctionBox:
        existing = boxes.setdefault(vertex_id, [])
        ordinal = max((int(box.id.rsplit("-", 1)[1]) for box in existing), default=-1) + 1
        box = JunctionBox.at_vertex(
            vertex_id,
            ordinal,
            circuits=self.circuits_per_box,
            max_current=self.circuit_max_current,
        )
        existing.append(box)
        return box

    def _circuits_with_room(
        self,
        strip: Strip,
        vertex_ids: Iterable[int],
        boxes: Mapping[int, Sequence[JunctionBox]],
        exclude: str | None,
    ) -> list[JunctionBoxCircuit]:
        return [
            circuit
            for vertex_id in vertex_ids
            for box in boxes.get(vertex_id, ())
            if box.id != exclude
            for circuit in box.circuits
            if circuit.fits(strip)
        ]

    def _candidates(
        self,
        strip: Strip,
        boxes: Mapping[int, Sequence[JunctionBox]],
        *,
        exclude: str | None = None,
    ) -> list[JunctionBoxCircuit]:
        candidates = self._circuits_with_room(strip, strip.vertex_ids, boxes, exclude)
        if candidates:
            return candidates

        neighbours: list[int] = []
        for vertex_id in strip.vertex_ids:
            for neighbour in self.graph.adjacency[vertex_id]:
                if neighbour not in neighbours:
                    neighbours.append(neighbour)
        reachable = [
            neighbour
            for neighbour in neighbours
            if all(
                self.graph.min_distance(neighbour, vertex_id) < self.max_run
                for vertex_id in strip.vertex_ids
            )
        ]
        return self._circuits_with_room(strip, reachable, boxes, exclude)

    def _try_empty(self, box_id: str, boxes: dict[int, list[JunctionBox]]) -> bool:
        target = next(
            (box for entries in boxes.values() for box in entries if box.id == box_id), None
        )
        if target is None:
            return False
        for strip in target.strips():
            candidates = self._candidates(strip, boxes, exclude=box_id)
            if not candidates:
                return False
            max(candidates, key=lambda circuit: circuit.utilization).add(strip)
        boxes[target.vertex_id] = [box for box in boxes[target.vertex_id] if box.id != box_id]
        return True


def _copy_boxes(boxes: Mapping[int, Sequence[JunctionBox]]) -> dict[int, list[JunctionBox]]:
    return {vertex: [box.copy() for box in entries] for vertex, entries in boxes.items()}


def _freeze(boxes: Mapping[int, Sequence[JunctionBox]]) -> PowerPlan:
    return PowerPlan(boxes={vertex: tuple(entries) for vertex, entries in boxes.items() if entries})
