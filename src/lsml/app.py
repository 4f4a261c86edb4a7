"""High-level command helpers for inspecting sculpture models."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from schemas.validators import SchemaValidationError
from sculpture.config import LoaderConfig, load_loader_config
from sculpture.errors import ModelLoadError
from sculpture.loader import load_model
from sculpture.model import SculptureModel
from sculpture.output import BindingRegistry
from sculpture.power import JunctionBoxPlanner

__all__ = [
    "build_cli",
    "run_bindings",
    "run_power_plan",
    "run_summary",
]

LOAD_ERROR_EXIT = 2


def _resolve_config(config_path: Path | None) -> LoaderConfig:
    if config_path is None:
        return LoaderConfig()
    return load_loader_config(config_path)


def _emit(payload: Any, *, as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, sort_keys=True))
        return
    for key, value in payload.items():
        if isinstance(value, dict):
            print(f"{key}:")
            for inner_key, inner_value in value.items():
                print(f"  {inner_key}: {inner_value}")
        else:
            print(f"{key}: {value}")


def run_summary(
    model_dir: Path,
    *,
    config: LoaderConfig | None = None,
    as_json: bool = False,
) -> SculptureModel:
    """Load the model under *model_dir* and print its summary."""

    model = load_model(model_dir, config=config)
    _emit(model.summary(), as_json=as_json)
    return model


def run_bindings(
    model_dir: Path,
    *,
    config: LoaderConfig | None = None,
    as_json: bool = False,
) -> BindingRegistry:
    """Print every controller binding grouped by controller IP."""

    registry = BindingRegistry()
    load_model(model_dir, config=config, binder=registry)
    grouped = registry.by_controller()
    if as_json:
        print(
            json.dumps(
                {ip: [b.to_mapping() for b in bindings] for ip, bindings in grouped.items()},
                indent=2,
            )
        )
        return registry
    for ip, bindings in grouped.items():
        print(f"{ip}:")
        for binding in bindings:
            direction = "fwd" if binding.forward else "rev"
            print(
                f"  {binding.address.universe_number}:{binding.address.strand_offset} "
                f"{binding.entity_kind} {binding.entity_id} ({direction})"
            )
    return registry


def run_power_plan(
    model_dir: Path,
    *,
    config: LoaderConfig | None = None,
    balance: bool = False,
    as_json: bool = False,
) -> dict[str, Any]:
    """Place junction boxes for the model and print the report."""

    config = config or LoaderConfig()
    model = load_model(model_dir, config=config)
    planner = JunctionBoxPlanner(model, leds_per_micron=config.leds_per_micron)
    plan = planner.place()
    if balance:
        plan = planner.balance(plan)
    report = plan.report()
    if as_json:
        print(json.dumps(report, indent=2, sort_keys=True))
        return report
    for entry in report["vertices"]:
        print(
            f"{entry['vertex_id']} - {entry['current_a']:.2f} A - "
            f"{100 * entry['utilization']:.2f}% utilized"
        )
    print(f"{report['box_count']} total junction boxes at {report['vertex_count']} vertices")
    print(f"{report['total_current_a']:.2f} Amps")
    print(f"{report['average_utilization']:.4f} average utilization")
    return report


def build_cli(argv: Sequence[str] | None = None) -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Light sculpture model inspector")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument("model_dir", type=Path, help="Directory holding the model files")
        subparser.add_argument(
            "--config",
            type=Path,
            help="Optional YAML/JSON loader configuration",
        )
        subparser.add_argument("--json", action="store_true", help="Emit JSON output")

    summary = subparsers.add_parser("summary", help="Load a model and print its summary")
    add_common(summary)

    bindings = subparsers.add_parser("bindings", help="List controller bindings by IP")
    add_common(bindings)

    power = subparsers.add_parser("power", help="Plan junction box placement")
    add_common(power)
    power.add_argument(
        "--balance",
        action="store_true",
        help="Consolidate under-used junction boxes after placement",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = _resolve_config(args.config)
    except (SchemaValidationError, KeyError, TypeError, ValueError, FileNotFoundError) as exc:
        print(f"error: invalid loader configuration {args.config}: {exc}", file=sys.stderr)
        return LOAD_ERROR_EXIT

    try:
        if args.command == "summary":
            run_summary(args.model_dir, config=config, as_json=args.json)
            return 0

        if args.command == "bindings":
            run_bindings(args.model_dir, config=config, as_json=args.json)
            return 0

        if args.command == "power":
            run_power_plan(
                args.model_dir,
                config=config,
                balance=args.balance,
                as_json=args.json,
            )
            return 0
    except (ModelLoadError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return LOAD_ERROR_EXIT

    parser.error(f"Unknown command: {args.command}")
    return 0
