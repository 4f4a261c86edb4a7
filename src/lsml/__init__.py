"""Command line tools for inspecting light sculpture models."""

from __future__ import annotations

__all__ = ["build_cli", "main"]


def build_cli(argv=None) -> int:
    from .app import build_cli as _build_cli

    return _build_cli(argv)


def main(argv=None) -> int:
    return build_cli(argv)
