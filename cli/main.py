"""Command line entry point for nnflow training runs."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from nnflow.core.errors import ConfigurationError
from nnflow.core.types import METHODS
from nnflow.training import pipelines


def _format_result(result) -> str:
    payload = {
        "state": result.state,
        "steps": result.steps,
        "final_loss": result.final_loss,
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "parameters": result.parameters_path,
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="linear-doubling",
        help="Preset configuration to execute",
    )
    parser.add_argument(
        "--config", type=Path, help="Optional JSON/YAML config override"
    )
    parser.add_argument("--steps", type=int, help="Number of training steps")
    parser.add_argument("--lr", type=float, help="Learning rate")
    parser.add_argument("--method", choices=list(METHODS), help="Gradient method")
    parser.add_argument(
        "--hidden",
        type=int,
        nargs="*",
        help="Hidden layer widths (input/output widths come from the data)",
    )
    parser.add_argument(
        "--activation", choices=["relu", "sigmoid"], help="Hidden layer activation"
    )
    parser.add_argument("--seed", type=int, help="Seed for parameter initialisation")
    parser.add_argument("--run-dir", type=Path, help="Directory for run artifacts")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write a loss curve PNG"
    )
    parser.add_argument(
        "--predict",
        type=float,
        nargs="+",
        action="append",
        help="Input vector to predict after training (repeatable)",
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log verbosity"
    )
    return parser.parse_args(argv)


_RUN_SECTIONS = {"data", "model", "train"}


def _load_override(path: Path) -> dict:
    """Read a JSON or YAML run description; it must be a mapping of sections."""

    text = path.read_text()
    if path.suffix in {".yml", ".yaml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        loaded = yaml.safe_load(text)
    else:
        loaded = json.loads(text)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"{path} must hold a mapping, got {type(loaded).__name__}")
    return loaded


def _apply_override(config: dict, override: dict) -> dict:
    """Return ``config`` with ``override`` layered on top, section by section.

    An override naming every run section replaces the preset outright.
    """

    if _RUN_SECTIONS <= set(override):
        return json.loads(json.dumps(override))
    merged = json.loads(json.dumps(config))
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(json.loads(json.dumps(value)))
        else:
            merged[key] = value
    return merged


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        config = _apply_override(config, _load_override(args.config))

    train_cfg = config.setdefault("train", {})
    model_cfg = config.setdefault("model", {})
    if args.steps is not None:
        train_cfg["steps"] = int(args.steps)
    if args.lr is not None:
        train_cfg["lr"] = float(args.lr)
    if args.method:
        train_cfg["method"] = args.method
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.run_dir is not None:
        train_cfg["run_dir"] = str(args.run_dir)
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    if args.hidden is not None:
        model_cfg.pop("layers", None)
        model_cfg["hidden"] = list(args.hidden)
    if args.activation:
        model_cfg["activation"] = args.activation
    if args.predict:
        config["predict"] = [list(vector) for vector in args.predict]

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))
    for inputs, outputs in zip(config.get("predict", []), result.predictions):
        print(f"predict {inputs} -> {outputs}")


if __name__ == "__main__":
    main()
