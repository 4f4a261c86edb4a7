from __future__ import annotations

import pytest

from sculpture.errors import FieldValueError, UnknownTokenError
from sculpture.output import BindingRegistry, ControllerAddress, parse_controller_address


def test_parse_controller_address() -> None:
    address = parse_controller_address("192.168.1.20#3:170")

    assert address == ControllerAddress("192.168.1.20", 3, 170)
    assert str(address) == "192.168.1.20#3:170"


def test_parse_errors_carry_location() -> None:
    with pytest.raises(UnknownTokenError, match=r"^edges\.txt:4: "):
        parse_controller_address("192.168.1.20", where="edges.txt:4: ")
    with pytest.raises(FieldValueError):
        parse_controller_address("192.168.1.20#3:x")


class Thing:
    def __init__(self, identifier: str) -> None:
        self.id = identifier


def test_registry_groups_by_ip_and_orders_by_position() -> None:
    registry = BindingRegistry()
    registry.bind(Thing("b"), "10.0.0.2", 1, 0, True)
    registry.bind(Thing("c"), "10.0.0.1", 2, 0, False)
    registry.bind(Thing("a"), "10.0.0.1", 1, 50, True)

    grouped = registry.by_controller()

    assert list(grouped) == ["10.0.0.1", "10.0.0.2"]
    assert [binding.entity_id for binding in grouped["10.0.0.1"]] == ["a", "c"]
    assert grouped["10.0.0.1"][1].to_mapping() == {
        "entity_kind": "thing",
        "entity_id": "c",
        "ip_address": "10.0.0.1",
        "universe_number": 2,
        "strand_offset": 0,
        "forward": False,
    }
