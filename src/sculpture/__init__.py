"""Structural geometry of the light sculpture."""

from __future__ import annotations

from importlib import import_module

__all__ = [
    "Binding",
    "BindingRegistry",
    "Boundaries",
    "Box",
    "ControllerAddress",
    "Edge",
    "EdgeKind",
    "JunctionBoxPlanner",
    "Laser",
    "LoaderConfig",
    "ModelBuilder",
    "ModelLoadError",
    "MovingTarget",
    "Panel",
    "PanelFlip",
    "PanelSection",
    "SculptureModel",
    "StartSide",
    "StripingInstructions",
    "Vertex",
    "calc_nudge",
    "load_loader_config",
    "load_model",
]

_ATTRIBUTE_MODULES: dict[str, str] = {
    "Binding": ".output",
    "BindingRegistry": ".output",
    "ControllerAddress": ".output",
    "Boundaries": ".model",
    "Box": ".model",
    "Edge": ".model",
    "EdgeKind": ".model",
    "Panel": ".model",
    "PanelFlip": ".model",
    "PanelSection": ".model",
    "SculptureModel": ".model",
    "Vertex": ".model",
    "JunctionBoxPlanner": ".power",
    "Laser": ".lasers",
    "MovingTarget": ".lasers",
    "LoaderConfig": ".config",
    "load_loader_config": ".config",
    "ModelBuilder": ".loader",
    "load_model": ".loader",
    "ModelLoadError": ".errors",
    "StartSide": ".striping",
    "StripingInstructions": ".striping",
    "calc_nudge": ".striping",
}


def __getattr__(name: str):
    try:
        module_name = _ATTRIBUTE_MODULES[name]
    except KeyError as exc:
        raise AttributeError(f"module 'sculpture' has no attribute {name!r}") from exc

    module = import_module(module_name, __name__)
    value = getattr(module, name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - interactive helper
    return sorted(__all__)
