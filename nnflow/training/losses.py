"""Cost registry used by the training loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.errors import ConfigurationError, ShapeError
from ..core.types import Array

ElementFn = Callable[[Array, Array], Array]


@dataclass(frozen=True)
class Cost:
    """Cost wrapper exposing the per-element value and dC/dy_pred.

    ``sample_cost`` averages the per-element cost over the output vector and
    is what gets reported. ``total_cost`` sums it instead; ``derivative`` is
    the gradient of that sum, so gradient estimates must perturb it.
    """

    name: str
    element: ElementFn
    derivative: ElementFn

    def sample_cost(self, targets: Array, predictions: Array) -> float:
        return float(np.mean(self._elements(targets, predictions)))

    def total_cost(self, targets: Array, predictions: Array) -> float:
        return float(np.sum(self._elements(targets, predictions)))

    def _elements(self, targets: Array, predictions: Array) -> Array:
        targets = np.asarray(targets, dtype=np.float64)
        predictions = np.asarray(predictions, dtype=np.float64)
        if targets.shape != predictions.shape:
            raise ShapeError(
                f"targets have shape {targets.shape} but predictions have {predictions.shape}"
            )
        return self.element(targets, predictions)

    def __call__(self, targets: Array, predictions: Array) -> float:
        return self.sample_cost(targets, predictions)


class CostRegistry:
    """Central registry for cost functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Cost] = {}

    def register(self, name: str, element: ElementFn, derivative: ElementFn) -> None:
        self._registry[name] = Cost(name, element, derivative)

    def get(self, name: str) -> Cost:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(sorted(self._registry))
            raise ConfigurationError(
                f"Unknown cost {name!r}. Available costs: {available}"
            ) from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = CostRegistry()


def _squared_error(target: Array, pred: Array) -> Array:
    return np.square(target - pred)


def _squared_error_deriv(target: Array, pred: Array) -> Array:
    # linear output layer, so no activation factor
    return 2.0 * (pred - target)


REGISTRY.register("mse", _squared_error, _squared_error_deriv)

__all__ = ["Cost", "CostRegistry", "REGISTRY"]
