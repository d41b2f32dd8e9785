"""Activation utilities for nnflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from .errors import ConfigurationError
from .types import Array

ActivationFn = Callable[[Array], Array]


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def relu_deriv(x: Array) -> Array:
    # sub-gradient at 0 is 0
    return (x > 0).astype(np.float64)


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid ``1 / (1 + e^-x)``."""

    return 1.0 / (1.0 + np.exp(-x))


def sigmoid_deriv(x: Array) -> Array:
    s = sigmoid(x)
    return s * (1.0 - s)


@dataclass(frozen=True)
class Activation:
    name: str
    fn: ActivationFn
    deriv: ActivationFn

    def __call__(self, x: Array) -> Array:
        return self.fn(x)


_REGISTRY: Dict[str, Activation] = {
    "relu": Activation("relu", relu, relu_deriv),
    "sigmoid": Activation("sigmoid", sigmoid, sigmoid_deriv),
}


def get_activation(name: str) -> Activation:
    try:
        return _REGISTRY[name]
    except KeyError as exc:
        available = ", ".join(sorted(_REGISTRY))
        raise ConfigurationError(
            f"Unknown activation {name!r}. Available activations: {available}"
        ) from exc


__all__ = [
    "Activation",
    "relu",
    "relu_deriv",
    "sigmoid",
    "sigmoid_deriv",
    "get_activation",
]
