"""Loader configuration for sculpture model directories."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

__all__ = [
    "DEFAULT_FILE_NAMES",
    "LoaderConfig",
    "load_loader_config",
]


DEFAULT_FILE_NAMES: Mapping[str, str] = {
    "general": "general.txt",
    "vertexes": "vertexes.txt",
    "edges": "edges.txt",
    "panels": "panels.txt",
    "signal_paths": "panel_signal_paths.tsv",
    "striping": "striping-instructions.txt",
    "lasers": "lasers.txt",
    "boxes": "boxes.txt",
}


@dataclass(frozen=True, slots=True)
class LoaderConfig:
    """Tunable constants and file names used while building a model.

    Coordinates in the model files are integer microns, so every length
    below is expressed in microns as well.
    """

    general_file: str = DEFAULT_FILE_NAMES["general"]
    vertexes_file: str = DEFAULT_FILE_NAMES["vertexes"]
    edges_file: str = DEFAULT_FILE_NAMES["edges"]
    panels_file: str = DEFAULT_FILE_NAMES["panels"]
    signal_paths_file: str = DEFAULT_FILE_NAMES["signal_paths"]
    striping_file: str = DEFAULT_FILE_NAMES["striping"]
    lasers_file: str = DEFAULT_FILE_NAMES["lasers"]
    boxes_file: str = DEFAULT_FILE_NAMES["boxes"]
    # 60 LEDs per metre.
    leds_per_micron: float = 0.00006
    panel_pixel_pitch: float = 50_000.0
    panel_row_pitch: float | None = None
    symmetry_bucket: int = 100_000
    section_tolerance: float = 100_000.0

    def __post_init__(self) -> None:
        if self.leds_per_micron < 0.0:
            raise ValueError("LED density cannot be negative.")
        if self.panel_pixel_pitch <= 0.0:
            raise ValueError("Panel pixel pitch must be positive.")
        if self.panel_row_pitch is not None and self.panel_row_pitch <= 0.0:
            raise ValueError("Panel row pitch must be positive.")
        if self.symmetry_bucket <= 0:
            raise ValueError("Symmetry bucket size must be positive.")
        if self.section_tolerance < 0.0:
            raise ValueError("Section tolerance cannot be negative.")

    @property
    def row_pitch(self) -> float:
        if self.panel_row_pitch is None:
            return self.panel_pixel_pitch
        return self.panel_row_pitch

    def path_for(self, root: Path, concern: str) -> Path:
        """Return the path of the file holding *concern* below *root*."""

        return Path(root) / getattr(self, f"{concern}_file")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "LoaderConfig":
        """Build a config from a validated mapping.

        File names may be given either flat (``edges_file``) or nested under a
        ``files`` mapping keyed by concern (``files: {edges: ...}``).
        """

        known = {item.name for item in fields(cls)}
        values: dict[str, Any] = {}
        for concern, name in dict(payload.get("files", {})).items():
            values[f"{concern}_file"] = str(name)
        for key, value in payload.items():
            if key in {"files", "version"}:
                continue
            if key not in known:
                raise KeyError(f"Unknown loader configuration key '{key}'.")
            values[key] = value
        return cls(**values)


def load_loader_config(path: Path) -> LoaderConfig:
    """Load, validate and decode a loader configuration file."""

    from schemas.validators import load_payload, validate_loader_config

    payload = load_payload(Path(path))
    if not isinstance(payload, Mapping):
        raise TypeError("Loader configuration payload must be a mapping.")
    validate_loader_config(payload)
    return LoaderConfig.from_mapping(payload)
