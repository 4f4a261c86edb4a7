"""Assemble a :class:`SculptureModel` from a directory of model files.

Loading runs in a fixed order, each stage depending on the previous ones::

    general -> boxes -> vertexes -> lasers -> edges -> panels -> build

:class:`ModelBuilder` carries the transient state between stages and
:meth:`ModelBuilder.build` freezes it into the read-only graph. Any failure
raises a :class:`~sculpture.errors.ModelLoadError` (or ``FileNotFoundError``)
and no model is produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .boundaries import compute_boundaries
from .config import LoaderConfig
from .errors import (
    DanglingReferenceError,
    FieldCountError,
    FieldValueError,
    ModelLoadError,
    UnknownTokenError,
    location,
)
from .lasers import Laser
from .model import (
    BOX_POINT_COUNT,
    LIT_FLAVOR,
    Box,
    Edge,
    EdgeKind,
    Panel,
    PanelFlip,
    PanelSection,
    SculptureModel,
    Vertex,
)
from .output import UNCONTROLLED, ControllerAddress, OutputBinder, parse_controller_address
from .pixels import classify_section, edge_pixels, panel_normal, panel_pixels
from .striping import StripingInstructions, read_signal_paths, read_striping_instructions
from .symmetry import build_symmetry_groups

__all__ = ["ModelBuilder", "load_model"]

logger = logging.getLogger(__name__)

STAGES = ("general", "boxes", "vertexes", "lasers", "edges", "panels")

Coordinate = tuple[int, int, int]


@dataclass(slots=True)
class _EdgeDraft:
    id: str
    v0: int
    v1: int
    kind: EdgeKind
    controller: ControllerAddress | None
    panel_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _PanelDraft:
    id: str
    vertex_ids: tuple[int, int, int]
    edge_ids: tuple[str, str, str]
    flip: PanelFlip
    flavor: str
    section: PanelSection
    output_config: str | None
    controller: ControllerAddress | None
    striping: StripingInstructions | None


def _parse_int(token: str, what: str, *, where: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise FieldValueError(f"{where}{what} {token!r} is not an integer") from None


def _fields(line: str, expected: int, *, where: str, separator: str | None = "\t") -> list[str]:
    tokens = line.split(separator)
    if separator == "\t":
        while tokens and tokens[-1] == "":
            tokens.pop()
    if len(tokens) != expected:
        raise FieldCountError(expected, len(tokens), where=where)
    return tokens


class ModelBuilder:
    """Stateful builder threading partially loaded geometry between stages."""

    def __init__(
        self,
        root: Path | str,
        *,
        config: LoaderConfig | None = None,
        binder: OutputBinder | None = None,
    ) -> None:
        self.root = Path(root)
        self.config = config or LoaderConfig()
        self.binder = binder
        self.name: str | None = None
        self.boxes: list[Box] = []
        self.vertex_positions: dict[int, Coordinate] = {}
        self.vertex_edges: dict[int, list[str]] = {}
        self.lasers: dict[str, Laser] = {}
        self.edges: dict[str, _EdgeDraft] = {}
        self.start_vertexes: dict[str, int] = {}
        self.striping: dict[str, StripingInstructions] = {}
        self.panels: dict[str, _PanelDraft] = {}
        self._completed: list[str] = []

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    def _begin(self, stage: str) -> None:
        expected = STAGES[len(self._completed)] if len(self._completed) < len(STAGES) else None
        if stage != expected:
            raise RuntimeError(
                f"Stage '{stage}' cannot run now; completed stages: {self._completed or 'none'}."
            )

    def _finish(self, stage: str) -> None:
        self._completed.append(stage)

    def _read_lines(self, concern: str) -> tuple[Path, list[str]]:
        path = self.config.path_for(self.root, concern)
        if not path.is_file():
            raise FileNotFoundError(f"{path.name} not found below {self.root} (expected {path})")
        with path.open("r", encoding="utf-8") as handle:
            return path, handle.read().splitlines()

    def _rows(self, concern: str):
        path, lines = self._read_lines(concern)
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            yield line, location(path, line_number)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def load_general(self) -> "ModelBuilder":
        self._begin("general")
        for line, where in self._rows("general"):
            key, value = _fields(line, 2, where=where, separator=":")
            if key.strip() != "name":
                raise UnknownTokenError("metadata key", key.strip(), where=where)
            self.name = value.strip()
        if self.name is None:
            raise ModelLoadError(f"{self.config.general_file}: model has no name")
        self._finish("general")
        return self

    def load_boxes(self) -> "ModelBuilder":
        self._begin("boxes")
        pending: list[Coordinate] = []
        for line, where in self._rows("boxes"):
            tokens = _fields(line.strip(), 3, where=where, separator=None)
            x, y, z = (_parse_int(token, "coordinate", where=where) for token in tokens)
            pending.append((x, y, z))
            if len(pending) == BOX_POINT_COUNT:
                box = Box(tuple(pending))
                self.boxes.append(box)
                self.boxes.append(box.mirrored())
                pending = []
        if pending:
            raise ModelLoadError(
                f"{self.config.boxes_file}: {len(pending)} leftover lines do not form a box"
            )
        self._finish("boxes")
        return self

    def load_vertexes(self) -> "ModelBuilder":
        self._begin("vertexes")
        for line, where in self._rows("vertexes"):
            tokens = _fields(line, 4, where=where)
            vertex_id, x, y, z = (_parse_int(token, "vertex field", where=where) for token in tokens)
            if vertex_id in self.vertex_positions:
                logger.warning("%svertex %d redefined; keeping the later record", where, vertex_id)
            self.vertex_positions[vertex_id] = (x, y, z)
            self.vertex_edges.setdefault(vertex_id, [])
        self._finish("vertexes")
        return self

    def load_lasers(self) -> "ModelBuilder":
        self._begin("lasers")
        for line, where in self._rows("lasers"):
            laser_id, *coords = _fields(line, 4, where=where)
            x, y, z = (_parse_int(token, "laser coordinate", where=where) for token in coords)
            self.lasers[laser_id] = Laser.with_moving_target(laser_id, (x, y, z))
        self._finish("lasers")
        return self

    def load_edges(self) -> "ModelBuilder":
        self._begin("edges")
        for line, where in self._rows("edges"):
            edge_id, kind_token, controller_spec = _fields(line, 3, where=where)
            kind = EdgeKind.parse(kind_token, where=where)
            if kind is EdgeKind.DARK and controller_spec != UNCONTROLLED:
                raise FieldValueError(
                    f"{where}dark edge {edge_id} must be {UNCONTROLLED!r}, found {controller_spec!r}"
                )

            ids = edge_id.split("-")
            if len(ids) != 2:
                raise FieldValueError(
                    f"{where}edge id {edge_id!r} must name two vertices, found {len(ids)} id tokens"
                )
            v0, v1 = (_parse_int(token, "edge vertex id", where=where) for token in ids)
            if v0 >= v1:
                raise FieldValueError(f"{where}edge id {edge_id!r} must list the lower vertex first")
            for vertex_id in (v0, v1):
                if vertex_id not in self.vertex_positions:
                    raise DanglingReferenceError(
                        f"{where}edge {edge_id} references unknown vertex {vertex_id}"
                    )
            if edge_id in self.edges:
                raise ModelLoadError(f"{where}edge {edge_id} is defined twice")

            controller = None
            if controller_spec != UNCONTROLLED:
                controller = parse_controller_address(controller_spec, where=where)

            self.edges[edge_id] = _EdgeDraft(edge_id, v0, v1, kind, controller)
            self.vertex_edges[v0].append(edge_id)
            self.vertex_edges[v1].append(edge_id)
        self._finish("edges")
        return self

    def load_panels(self) -> "ModelBuilder":
        self._begin("panels")
        self.start_vertexes = read_signal_paths(
            self.config.path_for(self.root, "signal_paths")
        )
        self.striping = read_striping_instructions(
            self.config.path_for(self.root, "striping"), self.start_vertexes
        )

        for line, where in self._rows("panels"):
            panel_id, e0, e1, e2, flip_token, panel_type = _fields(line, 6, where=where)
            edge_ids = (e0, e1, e2)
            if len(set(edge_ids)) != 3:
                raise DanglingReferenceError(
                    f"{where}panel {panel_id} lists edges {edge_ids}, expected three distinct edges"
                )
            for edge_id in edge_ids:
                if edge_id not in self.edges:
                    raise DanglingReferenceError(
                        f"{where}panel {panel_id} references unknown edge {edge_id}"
                    )
            vertex_ids = sorted(
                {vid for edge_id in edge_ids for vid in (self.edges[edge_id].v0, self.edges[edge_id].v1)}
            )
            if len(vertex_ids) != 3:
                raise DanglingReferenceError(
                    f"{where}panel {panel_id} spans {len(vertex_ids)} vertices, expected 3"
                )
            flip = PanelFlip.parse(flip_token, where=where)

            lit = "." in panel_type
            output_config = panel_type if lit else None
            flavor = LIT_FLAVOR if lit else panel_type

            striping = self.striping.get(panel_id)
            if striping is not None and striping.starting_vertex not in vertex_ids:
                raise DanglingReferenceError(
                    f"{where}panel {panel_id} starts at vertex {striping.starting_vertex}, "
                    f"which is not one of its corners {vertex_ids}"
                )

            positions = {vid: self.vertex_positions[vid] for vid in vertex_ids}
            section = classify_section(positions, tolerance=self.config.section_tolerance)
            controller = parse_controller_address(panel_type, where=where) if lit else None

            if panel_id in self.panels:
                raise ModelLoadError(f"{where}panel {panel_id} is defined twice")
            self.panels[panel_id] = _PanelDraft(
                id=panel_id,
                vertex_ids=(vertex_ids[0], vertex_ids[1], vertex_ids[2]),
                edge_ids=edge_ids,
                flip=flip,
                flavor=flavor,
                section=section,
                output_config=output_config,
                controller=controller,
                striping=striping,
            )
            for edge_id in edge_ids:
                self.edges[edge_id].panel_ids.append(panel_id)
        self._finish("panels")
        return self

    # ------------------------------------------------------------------
    # Freezing
    # ------------------------------------------------------------------
    def build(self) -> SculptureModel:
        """Aggregate points, index symmetry, compute boundaries and freeze."""

        if self._completed != list(STAGES):
            raise RuntimeError(f"Cannot build before every stage ran; completed: {self._completed}.")
        config = self.config

        chunks: list[np.ndarray] = []
        offset = 0
        edge_offsets: dict[str, int] = {}
        edge_points: dict[str, np.ndarray] = {}
        centers: list[tuple[str, tuple[float, float, float]]] = []
        lengths: dict[str, float] = {}
        for edge in self.edges.values():
            p0 = np.asarray(self.vertex_positions[edge.v0], dtype=float)
            p1 = np.asarray(self.vertex_positions[edge.v1], dtype=float)
            if edge.kind is EdgeKind.DARK:
                points = np.empty((0, 3), dtype=float)
            else:
                points = edge_pixels(p0, p1, config.leds_per_micron)
            center = (p0 + p1) / 2.0
            centers.append((edge.id, (float(center[0]), float(center[1]), float(center[2]))))
            lengths[edge.id] = float(np.linalg.norm(p1 - p0))
            edge_points[edge.id] = points
            edge_offsets[edge.id] = offset
            offset += len(points)
            chunks.append(points)
        edge_point_count = offset

        panel_offsets: dict[str, int] = {}
        panel_points: dict[str, np.ndarray] = {}
        for panel in self.panels.values():
            if panel.striping is None:
                points = np.empty((0, 3), dtype=float)
            else:
                points = panel_pixels(
                    {vid: self.vertex_positions[vid] for vid in panel.vertex_ids},
                    panel.striping,
                    pixel_pitch=config.panel_pixel_pitch,
                    row_pitch=config.row_pitch,
                )
            panel_points[panel.id] = points
            panel_offsets[panel.id] = offset
            offset += len(points)
            chunks.append(points)

        cloud = np.concatenate(chunks, axis=0) if chunks else np.empty((0, 3), dtype=float)

        symmetry_keys, symmetry_groups = build_symmetry_groups(centers, bucket=config.symmetry_bucket)
        boundaries = compute_boundaries(cloud)

        vertices = {
            vid: Vertex(id=vid, position=position, edge_ids=tuple(self.vertex_edges[vid]))
            for vid, position in self.vertex_positions.items()
        }
        center_by_id = dict(centers)
        edges = {
            draft.id: Edge(
                id=draft.id,
                v0=draft.v0,
                v1=draft.v1,
                kind=draft.kind,
                center=center_by_id[draft.id],
                length=lengths[draft.id],
                points=edge_points[draft.id],
                point_offset=edge_offsets[draft.id],
                symmetry_key=symmetry_keys[draft.id],
                panel_ids=tuple(draft.panel_ids),
                controller=draft.controller,
            )
            for draft in self.edges.values()
        }

        panels: dict[str, Panel] = {}
        by_section: dict[PanelSection, list[str]] = {}
        by_flavor: dict[str, list[str]] = {}
        for draft in self.panels.values():
            positions = {vid: self.vertex_positions[vid] for vid in draft.vertex_ids}
            centroid = np.asarray(list(positions.values()), dtype=float).mean(axis=0)
            panels[draft.id] = Panel(
                id=draft.id,
                vertex_ids=draft.vertex_ids,
                edge_ids=draft.edge_ids,
                flip=draft.flip,
                flavor=draft.flavor,
                section=draft.section,
                centroid=(float(centroid[0]), float(centroid[1]), float(centroid[2])),
                normal=panel_normal(positions, draft.flip),
                points=panel_points[draft.id],
                point_offset=panel_offsets[draft.id],
                striping=draft.striping,
                output_config=draft.output_config,
                controller=draft.controller,
            )
            by_section.setdefault(draft.section, []).append(draft.id)
            by_flavor.setdefault(draft.flavor, []).append(draft.id)

        model = SculptureModel(
            name=self.name or "",
            root=self.root,
            vertices=vertices,
            edges=edges,
            panels=panels,
            lasers=dict(self.lasers),
            boxes=tuple(self.boxes),
            edges_by_symmetry_group=symmetry_groups,
            panels_by_section_id={key: tuple(ids) for key, ids in by_section.items()},
            panels_by_flavor={key: tuple(ids) for key, ids in by_flavor.items()},
            points=cloud,
            edge_point_count=edge_point_count,
            boundaries=boundaries,
        )

        if self.binder is not None:
            self._bind(model, self.binder)

        for axis, label in enumerate("XYZ"):
            lower, upper = boundaries.extent(axis)
            logger.info("%s boundaries: min %f, max %f", label, lower, upper)
        logger.info(
            "%s loaded. %d vertexes, %d edges, %d panels, %d pixels",
            model.name,
            len(model.vertices),
            len(model.edges),
            len(model.panels),
            len(model.points),
        )
        return model

    def _bind(self, model: SculptureModel, binder: OutputBinder) -> None:
        for edge in model.edges.values():
            if edge.controller is not None:
                address = edge.controller
                binder.bind(
                    edge, address.ip_address, address.universe_number, address.strand_offset, edge.forward
                )
        for panel in model.panels.values():
            if panel.controller is not None:
                address = panel.controller
                binder.bind(
                    panel, address.ip_address, address.universe_number, address.strand_offset, True
                )


def load_model(
    root: Path | str,
    *,
    config: LoaderConfig | None = None,
    binder: OutputBinder | None = None,
) -> SculptureModel:
    """Load every model file below *root* and return the frozen graph."""

    return (
        ModelBuilder(root, config=config, binder=binder)
        .load_general()
        .load_boxes()
        .load_vertexes()
        .load_lasers()
        .load_edges()
        .load_panels()
        .build()
    )
