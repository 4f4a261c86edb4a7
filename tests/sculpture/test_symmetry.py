from __future__ import annotations

from pathlib import Path

import pytest

from sculpture.config import LoaderConfig
from sculpture.loader import load_model
from sculpture.symmetry import build_symmetry_groups, symmetry_key


def test_key_drops_x_and_folds_signs() -> None:
    assert symmetry_key((123456.0, 250000.0, -410000.0)) == (0, 300000, 400000)
    assert symmetry_key((-9e9, -250000.0, 410000.0)) == (0, 300000, 400000)


def test_key_rounds_half_up() -> None:
    assert symmetry_key((0.0, 149999.0, 50000.0)) == (0, 100000, 100000)
    assert symmetry_key((0.0, 150000.0, 49999.0)) == (0, 200000, 0)


def test_custom_bucket() -> None:
    assert symmetry_key((0.0, 1234.0, 5678.0), bucket=1000) == (0, 1000, 6000)


def test_groups_preserve_first_seen_order() -> None:
    keys, groups = build_symmetry_groups(
        [
            ("a", (10.0, 0.0, 1_000_000.0)),
            ("b", (0.0, 400_000.0, 1_000_000.0)),
            ("c", (-10.0, 0.0, -1_000_000.0)),
        ]
    )
    assert keys["a"] == keys["c"] == (0, 0, 1_000_000)
    assert groups == {(0, 0, 1_000_000): ("a", "c"), (0, 400_000, 1_000_000): ("b",)}


def test_model_groups_partition_edges(model_dir: Path) -> None:
    model = load_model(model_dir)

    grouped = [edge_id for members in model.edges_by_symmetry_group.values() for edge_id in members]
    assert sorted(grouped) == sorted(model.edges)
    for key, members in model.edges_by_symmetry_group.items():
        for edge_id in members:
            assert model.edge(edge_id).symmetry_key == key

    assert [edge.id for edge in model.symmetry_group("1-2")] == ["1-2", "4-5"]
    assert [edge.id for edge in model.symmetry_group("4-6")] == ["1-3", "2-3", "4-6", "5-6"]


def test_bucket_comes_from_config(model_dir: Path) -> None:
    model = load_model(model_dir, config=LoaderConfig(symmetry_bucket=10_000_000))
    assert len(model.edges_by_symmetry_group) == 1


@pytest.mark.parametrize("bucket", [0, -5])
def test_bucket_must_be_positive(bucket: int) -> None:
    with pytest.raises(ValueError):
        LoaderConfig(symmetry_bucket=bucket)
