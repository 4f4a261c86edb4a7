"""Exceptions raised while loading a sculpture model."""

from __future__ import annotations

from pathlib import Path

__all__ = [
    "DanglingReferenceError",
    "EmptyPointSetError",
    "FieldCountError",
    "FieldValueError",
    "ModelLoadError",
    "NudgeFormatError",
    "UnknownTokenError",
    "location",
]


def location(path: Path | str | None, line_number: int | None = None) -> str:
    """Format a ``file:line`` prefix for error messages."""

    if path is None:
        return ""
    name = Path(path).name
    if line_number is None:
        return f"{name}: "
    return f"{name}:{line_number}: "


class ModelLoadError(ValueError):
    """Base class for every fatal failure while assembling a model."""


class FieldCountError(ModelLoadError):
    """A row carries the wrong number of fields."""

    def __init__(self, expected: int, found: int, *, where: str = "") -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"{where}expected {expected} fields, found {found}")


class FieldValueError(ModelLoadError):
    """A field could not be decoded, usually a non-integer number."""


class UnknownTokenError(ModelLoadError):
    """An enumerated token is not one of the recognised values."""

    def __init__(self, kind: str, token: str, *, where: str = "") -> None:
        self.kind = kind
        self.token = token
        super().__init__(f"{where}unknown {kind} {token!r}")


class NudgeFormatError(ModelLoadError):
    """A striping nudge token is malformed."""


class DanglingReferenceError(ModelLoadError):
    """An identifier refers to an entity that was never loaded."""


class EmptyPointSetError(ModelLoadError):
    """Boundaries were requested for a model without any points."""
