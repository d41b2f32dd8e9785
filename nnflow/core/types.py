"""Core typing contracts for nnflow."""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError, DatasetError

Array = np.ndarray

ACTIVATIONS = ("relu", "sigmoid")
COSTS = ("mse",)
METHODS = ("backpropagation", "finite-difference")
OPTIMIZERS = ("sgd",)


def _is_positive_int(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        return False
    return int(value) > 0


@dataclass(frozen=True)
class NetworkConfig:
    """Architecture of a dense feed-forward network.

    ``layer_sizes`` lists every layer width, input first and output last.
    A config is immutable; a different architecture needs a new network.
    """

    layer_sizes: Tuple[int, ...]
    activation: str = "relu"
    cost: str = "mse"

    def __post_init__(self) -> None:
        sizes = tuple(self.layer_sizes)
        if len(sizes) < 2:
            raise ConfigurationError(
                f"layer_sizes needs at least 2 entries, got {len(sizes)}"
            )
        for idx, size in enumerate(sizes):
            if not _is_positive_int(size):
                raise ConfigurationError(
                    f"layer_sizes[{idx}] must be a positive integer, got {size!r}"
                )
        if self.activation not in ACTIVATIONS:
            raise ConfigurationError(
                f"Unknown activation {self.activation!r}. Available: {', '.join(ACTIVATIONS)}"
            )
        if self.cost not in COSTS:
            raise ConfigurationError(
                f"Unknown cost {self.cost!r}. Available: {', '.join(COSTS)}"
            )
        object.__setattr__(self, "layer_sizes", tuple(int(s) for s in sizes))

    @classmethod
    def from_hidden(
        cls,
        hidden: Sequence[int],
        input_size: int,
        output_size: int,
        activation: str = "relu",
        cost: str = "mse",
    ) -> "NetworkConfig":
        """Build a config from hidden widths, with input/output widths taken from data."""

        return cls(
            layer_sizes=(input_size, *hidden, output_size),
            activation=activation,
            cost=cost,
        )

    @property
    def input_size(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_size(self) -> int:
        return self.layer_sizes[-1]

    @property
    def transitions(self) -> int:
        return len(self.layer_sizes) - 1


@dataclass(frozen=True)
class TrainingConfig:
    """Hyper-parameters of one training run."""

    steps: int = 30
    learning_rate: float = 0.01
    method: str = "backpropagation"
    optimizer: str = "sgd"

    def __post_init__(self) -> None:
        if not _is_positive_int(self.steps):
            raise ConfigurationError(f"steps must be a positive integer, got {self.steps!r}")
        lr = self.learning_rate
        if isinstance(lr, bool) or not isinstance(lr, numbers.Real) or not np.isfinite(lr) or lr <= 0:
            raise ConfigurationError(f"learning_rate must be a positive float, got {lr!r}")
        if self.method not in METHODS:
            raise ConfigurationError(
                f"Unknown method {self.method!r}. Available: {', '.join(METHODS)}"
            )
        if self.optimizer not in OPTIMIZERS:
            raise ConfigurationError(
                f"Only plain gradient descent is implemented, got optimizer {self.optimizer!r}"
            )
        object.__setattr__(self, "steps", int(self.steps))
        object.__setattr__(self, "learning_rate", float(lr))


@dataclass(frozen=True)
class Sample:
    """One training example; both vectors are stored as float64 arrays."""

    inputs: Array
    targets: Array

    def __post_init__(self) -> None:
        for name in ("inputs", "targets"):
            try:
                value = np.asarray(getattr(self, name), dtype=np.float64)
            except (TypeError, ValueError) as exc:
                raise DatasetError(f"sample {name} are not numeric: {exc}") from exc
            object.__setattr__(self, name, value)


Dataset = List[Sample]


@dataclass(frozen=True)
class TrainingHistoryEntry:
    step: int
    loss: float


@dataclass(frozen=True)
class ForwardTrace:
    """Everything the forward pass computed for a single input."""

    activations: List[Array]
    pre_activations: List[Array]
    output: Array


@dataclass
class Parameters:
    """Weights and biases of every transition.

    Used both for parameter snapshots and for gradients, which share the
    same shapes.
    """

    weights: List[Array] = field(default_factory=list)
    biases: List[Array] = field(default_factory=list)

    def copy(self) -> "Parameters":
        return Parameters(
            weights=[np.array(w, dtype=np.float64, copy=True) for w in self.weights],
            biases=[np.array(b, dtype=np.float64, copy=True) for b in self.biases],
        )

    def zeros_like(self) -> "Parameters":
        return Parameters(
            weights=[np.zeros_like(w) for w in self.weights],
            biases=[np.zeros_like(b) for b in self.biases],
        )

    def arrays(self) -> List[Array]:
        return [*self.weights, *self.biases]

    def shapes(self) -> List[Tuple[int, ...]]:
        return [a.shape for a in self.arrays()]

    def is_finite(self) -> bool:
        return all(bool(np.all(np.isfinite(a))) for a in self.arrays())

    def to_lists(self) -> dict:
        """Plain nested lists, suitable for JSON persistence."""

        return {
            "weights": [w.tolist() for w in self.weights],
            "biases": [b.tolist() for b in self.biases],
        }

    @classmethod
    def from_lists(cls, payload: dict) -> "Parameters":
        return cls(
            weights=[np.asarray(w, dtype=np.float64) for w in payload["weights"]],
            biases=[np.asarray(b, dtype=np.float64) for b in payload["biases"]],
        )


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`nnflow.training.pipelines.run_pipeline`."""

    steps: int
    final_loss: float
    state: str
    history: List[TrainingHistoryEntry] = field(default_factory=list)
    metrics_path: str = ""
    manifest_path: str = ""
    parameters_path: str = ""
    predictions: List[List[float]] = field(default_factory=list)


def _as_vector(value: object, label: str) -> Array:
    arr = np.asarray(value, dtype=np.float64)
    if arr.ndim != 1:
        raise DatasetError(f"{label} must be a 1-D vector, got shape {arr.shape}")
    return arr.copy()


def make_dataset(inputs: Sequence[Sequence[float]], targets: Sequence[Sequence[float]]) -> Dataset:
    """Pair ``inputs`` with ``targets`` into samples.

    Every input must have the same width, and every target likewise. Scalars
    are not promoted to singleton vectors.
    """

    if len(inputs) == 0:
        raise DatasetError("dataset is empty")
    if len(inputs) != len(targets):
        raise DatasetError(
            f"got {len(inputs)} inputs but {len(targets)} targets"
        )
    samples: Dataset = []
    for idx, (x, y) in enumerate(zip(inputs, targets)):
        samples.append(
            Sample(
                inputs=_as_vector(x, f"inputs[{idx}]"),
                targets=_as_vector(y, f"targets[{idx}]"),
            )
        )
    in_widths = {s.inputs.shape[0] for s in samples}
    out_widths = {s.targets.shape[0] for s in samples}
    if len(in_widths) != 1 or len(out_widths) != 1:
        raise DatasetError(
            f"samples have inconsistent widths: inputs {sorted(in_widths)}, targets {sorted(out_widths)}"
        )
    return samples


__all__ = [
    "Array",
    "NetworkConfig",
    "TrainingConfig",
    "Sample",
    "Dataset",
    "TrainingHistoryEntry",
    "ForwardTrace",
    "Parameters",
    "RunResult",
    "make_dataset",
]
