"""Controller addresses and the binding boundary to the output transport."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from .errors import FieldValueError, UnknownTokenError

__all__ = [
    "UNCONTROLLED",
    "Binding",
    "BindingRegistry",
    "ControllerAddress",
    "OutputBinder",
    "parse_controller_address",
]


UNCONTROLLED = "uncontrolled"


@dataclass(frozen=True, slots=True)
class ControllerAddress:
    """Decoded ``<ip>#<universe>:<offset>`` controller address."""

    ip_address: str
    universe_number: int
    strand_offset: int

    def __str__(self) -> str:
        return f"{self.ip_address}#{self.universe_number}:{self.strand_offset}"


def parse_controller_address(spec: str, *, where: str = "") -> ControllerAddress:
    """Decode a controller address string.

    Raises :class:`UnknownTokenError` when the ``#``/``:`` shape is wrong and
    :class:`FieldValueError` when universe or offset are not integers.
    """

    tokens = spec.split("#")
    if len(tokens) != 2 or not tokens[0]:
        raise UnknownTokenError("controller address", spec, where=where)
    ip_address, rest = tokens
    tokens = rest.split(":")
    if len(tokens) != 2:
        raise UnknownTokenError("controller address", spec, where=where)
    try:
        universe_number = int(tokens[0])
        strand_offset = int(tokens[1])
    except ValueError as exc:
        raise FieldValueError(
            f"{where}controller address {spec!r} has a non-integer universe or offset"
        ) from exc
    return ControllerAddress(ip_address, universe_number, strand_offset)


class OutputBinder(Protocol):
    """Receiver for controller bindings discovered while loading."""

    def bind(
        self,
        entity: Any,
        ip_address: str,
        universe_number: int,
        strand_offset: int,
        forward: bool,
    ) -> None:
        ...


@dataclass(frozen=True, slots=True)
class Binding:
    """Single recorded controller binding."""

    entity_kind: str
    entity_id: str
    address: ControllerAddress
    forward: bool

    def to_mapping(self) -> dict[str, Any]:
        return {
            "entity_kind": self.entity_kind,
            "entity_id": self.entity_id,
            "ip_address": self.address.ip_address,
            "universe_number": self.address.universe_number,
            "strand_offset": self.address.strand_offset,
            "forward": self.forward,
        }


@dataclass(slots=True)
class BindingRegistry:
    """Default binder that records every binding in load order."""

    bindings: list[Binding] = field(default_factory=list)

    def bind(
        self,
        entity: Any,
        ip_address: str,
        universe_number: int,
        strand_offset: int,
        forward: bool,
    ) -> None:
        self.bindings.append(
            Binding(
                entity_kind=type(entity).__name__.lower(),
                entity_id=str(getattr(entity, "id", entity)),
                address=ControllerAddress(ip_address, universe_number, strand_offset),
                forward=forward,
            )
        )

    def by_controller(self) -> Mapping[str, tuple[Binding, ...]]:
        """Group bindings by controller IP, ordered by universe and offset."""

        grouped: dict[str, list[Binding]] = {}
        for binding in self.bindings:
            grouped.setdefault(binding.address.ip_address, []).append(binding)
        return {
            ip: tuple(
                sorted(
                    entries,
                    key=lambda b: (b.address.universe_number, b.address.strand_offset),
                )
            )
            for ip, entries in sorted(grouped.items())
        }
