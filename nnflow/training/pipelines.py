"""Pipeline assembly: presets, config parsing and artifact-producing runs."""

from __future__ import annotations

import asyncio
import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core.types import (
    Dataset,
    NetworkConfig,
    Parameters,
    RunResult,
    TrainingConfig,
    make_dataset,
)
from ..reporting.artifacts import write_manifest, write_parameters
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from .session import TrainingSession

_DOUBLING = {
    "x": [[1], [2], [3], [4], [5]],
    "y": [[2], [4], [6], [8], [10]],
}

_PRESETS: Dict[str, Mapping[str, object]] = {
    "linear-doubling": {
        "data": deepcopy(_DOUBLING),
        "model": {"hidden": [1], "activation": "relu", "cost": "mse"},
        "train": {
            "steps": 30,
            "lr": 0.01,
            "method": "backpropagation",
            "seed": 0,
            "run_dir": "runs/linear-doubling",
            "enable_plots": False,
        },
        "predict": [[7]],
    },
    "linear-regression": {
        "data": deepcopy(_DOUBLING),
        "model": {"hidden": [], "activation": "relu", "cost": "mse"},
        "train": {
            "steps": 500,
            "lr": 0.05,
            "method": "backpropagation",
            "seed": 0,
            "run_dir": "runs/linear-regression",
            "enable_plots": False,
        },
        "predict": [[6], [7]],
    },
    "xor-sigmoid": {
        "data": {
            "x": [[0, 0], [0, 1], [1, 0], [1, 1]],
            "y": [[0], [1], [1], [0]],
        },
        "model": {"hidden": [2], "activation": "sigmoid", "cost": "mse"},
        "train": {
            "steps": 8000,
            "lr": 0.2,
            "method": "backpropagation",
            "seed": 3,
            "run_dir": "runs/xor-sigmoid",
            "enable_plots": False,
        },
        "predict": [[0, 0], [0, 1], [1, 0], [1, 1]],
    },
    "finite-difference-demo": {
        "data": deepcopy(_DOUBLING),
        "model": {"hidden": [2], "activation": "relu", "cost": "mse"},
        "train": {
            "steps": 50,
            "lr": 0.01,
            "method": "finite-difference",
            "seed": 0,
            "run_dir": "runs/finite-difference-demo",
            "enable_plots": False,
        },
        "predict": [[7]],
    },
}


def presets() -> Mapping[str, Mapping[str, object]]:
    return {name: deepcopy(cfg) for name, cfg in _PRESETS.items()}


def load_preset(name: str) -> Mapping[str, object]:
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def build_dataset(data_cfg: Mapping[str, object]) -> Dataset:
    return make_dataset(data_cfg["x"], data_cfg["y"])  # type: ignore[arg-type]


def build_network_config(model_cfg: Mapping[str, object], dataset: Dataset) -> NetworkConfig:
    if "layers" in model_cfg:
        return NetworkConfig(
            layer_sizes=tuple(model_cfg["layers"]),  # type: ignore[arg-type]
            activation=str(model_cfg.get("activation", "relu")),
            cost=str(model_cfg.get("cost", "mse")),
        )
    return NetworkConfig.from_hidden(
        list(model_cfg.get("hidden", [])),  # type: ignore[arg-type]
        input_size=int(dataset[0].inputs.shape[0]),
        output_size=int(dataset[0].targets.shape[0]),
        activation=str(model_cfg.get("activation", "relu")),
        cost=str(model_cfg.get("cost", "mse")),
    )


def build_training_config(train_cfg: Mapping[str, object]) -> TrainingConfig:
    return TrainingConfig(
        steps=int(train_cfg.get("steps", 30)),
        learning_rate=float(train_cfg.get("lr", 0.01)),
        method=str(train_cfg.get("method", "backpropagation")),
        optimizer=str(train_cfg.get("optimizer", "sgd")),
    )


class _FanOut:
    """Forward each step to several observers, in order."""

    def __init__(self, observers: Sequence[object]) -> None:
        self.observers = list(observers)

    def __call__(self, step: int, loss: float, parameters: Parameters) -> None:
        for observer in self.observers:
            observer(step, loss, parameters)  # type: ignore[operator]


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]
    predict_inputs: List[List[float]] = list(config.get("predict", []))  # type: ignore[arg-type]

    dataset = build_dataset(data_cfg)
    network_config = build_network_config(model_cfg, dataset)
    training_config = build_training_config(train_cfg)
    seed = train_cfg.get("seed")
    seed = int(seed) if seed is not None else None

    run_dir = _resolve_run_dir(train_cfg, training_config.method)
    run_dir.mkdir(parents=True, exist_ok=True)

    session = TrainingSession(network_config, training_config, seed=seed)
    _print_startup_summary(
        dims=network_config.layer_sizes,
        activation=network_config.activation,
        cost=network_config.cost,
        method=training_config.method,
        steps=training_config.steps,
        lr=training_config.learning_rate,
        samples=len(dataset),
        param_count=session.network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", seed=seed, method=training_config.method)
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(
        run_dir,
        enable_plots=bool(train_cfg.get("enable_plots", False)),
        method=training_config.method,
        layer_sizes=list(network_config.layer_sizes),
    )

    history = asyncio.run(session.train(dataset, on_step=_FanOut([jsonl, csv_sink, plots])))
    plots.close()

    predictions = [session.predict(x).tolist() for x in predict_inputs]
    final_loss = history[-1].loss if history else float("nan")

    parameters_path = write_parameters(run_dir / "parameters.json", session.get_parameters())
    safe_config = json.loads(json.dumps(config))
    safe_config.setdefault("model", {})["layers"] = list(network_config.layer_sizes)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        summary={
            "state": session.state.value,
            "steps": len(history),
            "initial_loss": history[0].loss if history else None,
            "final_loss": final_loss,
            "predictions": predictions,
        },
    )
    return RunResult(
        steps=len(history),
        final_loss=final_loss,
        state=session.state.value,
        history=history,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        parameters_path=parameters_path,
        predictions=predictions,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], method: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / method


def _print_startup_summary(
    *,
    dims: Sequence[int],
    activation: str,
    cost: str,
    method: str,
    steps: int,
    lr: float,
    samples: int,
    param_count: int,
) -> None:
    print("=== nnflow run ===")
    print(f"Layers        : {list(dims)}")
    print(f"Activation    : {activation}")
    print(f"Cost          : {cost}")
    print(f"Method        : {method}")
    print(f"Steps         : {steps}")
    print(f"Learning rate : {lr}")
    print(f"Samples       : {samples}")
    print(f"Parameters    : {param_count}")
    print("==================")


__all__ = [
    "run_pipeline",
    "load_preset",
    "presets",
    "build_dataset",
    "build_network_config",
    "build_training_config",
]
