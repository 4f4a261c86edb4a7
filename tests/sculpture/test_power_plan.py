from __future__ import annotations

import math
from pathlib import Path

import pytest

from sculpture.loader import load_model
from sculpture.model import SculptureModel
from sculpture.power import (
    EdgeStrip,
    JunctionBox,
    JunctionBoxPlanner,
    PowerPlan,
    VertexGraph,
)


@pytest.fixture()
def model(model_dir: Path) -> SculptureModel:
    return load_model(model_dir)


def _strip_ids(plan: PowerPlan) -> list[str]:
    return sorted(strip.id for box in plan.all_boxes() for strip in box.strips())


def test_strips_cover_lit_geometry(model: SculptureModel) -> None:
    planner = JunctionBoxPlanner(model)

    assert len(planner.edge_strips) == 5 * 3
    assert not any(strip.edge_id == "4-6" for strip in planner.edge_strips)
    assert [strip.id for strip in planner.edge_strips[:3]] == ["1-2/0", "1-2/1", "1-2/2"]
    assert {strip.panel_id: strip.num_leds for strip in planner.panel_strips} == {"P1": 13, "P2": 6}


def test_edge_strip_current() -> None:
    strip = EdgeStrip(
        id="e/0", edge_id="e", vertex_ids=(1, 2), length=1_000_000.0, leds_per_micron=0.0001
    )
    assert strip.num_leds == pytest.approx(100.0)
    assert strip.current == pytest.approx(6.0)


def test_vertex_graph(model: SculptureModel) -> None:
    graph = VertexGraph(model)

    assert graph.adjacency[1] == (2, 3)
    assert graph.adjacency[6] == (4, 5)
    assert graph.min_distance(1, 3) == pytest.approx(model.edge("1-3").length)
    assert graph.min_distance(1, 1) == 0.0
    assert math.isinf(graph.min_distance(1, 4))


def test_place_assigns_every_strip_once(model: SculptureModel) -> None:
    planner = JunctionBoxPlanner(model)
    plan = planner.place()

    expected = sorted(strip.id for strip in [*planner.edge_strips, *planner.panel_strips])
    assert _strip_ids(plan) == expected
    assert sorted(plan.boxes) == [1, 4]
    assert plan.total_current == pytest.approx(
        sum(strip.current for strip in [*planner.edge_strips, *planner.panel_strips])
    )
    for box in plan.all_boxes():
        for circuit in box.circuits:
            assert circuit.current <= circuit.max_current


def test_full_circuits_open_another_box(model: SculptureModel) -> None:
    planner = JunctionBoxPlanner(model, circuits_per_box=2, circuit_max_current=4.0)
    plan = planner.place()

    assert [box.id for box in plan.boxes[1]][:2] == ["1-0", "1-1"]
    for box in plan.all_boxes():
        assert len(box.circuits) == 2
        for circuit in box.circuits:
            assert circuit.current <= 4.0


def test_balance_empties_a_neighbouring_box(model: SculptureModel) -> None:
    planner = JunctionBoxPlanner(model)
    first = JunctionBox.at_vertex(1, 0)
    second = JunctionBox.at_vertex(2, 0)
    first.circuits[0].add(planner.edge_strips[0])
    second.circuits[0].add(planner.edge_strips[1])
    plan = PowerPlan(boxes={1: (first,), 2: (second,)})

    balanced = planner.balance(plan)

    assert len(balanced.all_boxes()) == 1
    assert _strip_ids(balanced) == ["1-2/0", "1-2/1"]
    # The input plan is left untouched.
    assert len(first.strips()) == 1
    assert len(second.strips()) == 1


def test_balance_preserves_load(model: SculptureModel) -> None:
    planner = JunctionBoxPlanner(model, circuits_per_box=2, circuit_max_current=4.0)
    plan = planner.place()
    balanced = planner.balance(plan)

    assert len(balanced.all_boxes()) <= len(plan.all_boxes())
    assert _strip_ids(balanced) == _strip_ids(plan)
    assert balanced.total_current == pytest.approx(plan.total_current)


def test_report(model: SculptureModel) -> None:
    report = JunctionBoxPlanner(model).place().report()

    assert report["vertex_count"] == 2
    assert report["box_count"] == 2
    assert [entry["vertex_id"] for entry in report["vertices"]] == [1, 4]
    assert 0.0 < report["average_utilization"] < 1.0


def test_empty_plan_has_no_utilization() -> None:
    plan = PowerPlan(boxes={})
    assert plan.average_utilization == 0.0
    assert plan.total_current == 0.0
