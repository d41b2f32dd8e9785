"""Gradient strategies for nnflow.

Both strategies return per-sample gradients shaped like the network's
parameters. They differ only in how the gradient is obtained; the update
rule applied afterwards is the same.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Protocol

import numpy as np

from .errors import ConfigurationError
from .network import Network
from .types import Array, ForwardTrace, Parameters, Sample


class SampleCost(Protocol):
    """Per-sample cost summed over outputs, and its per-element derivative."""

    def total_cost(self, targets: Array, predictions: Array) -> float:
        ...

    def derivative(self, targets: Array, predictions: Array) -> Array:
        ...


class GradientStrategy(Protocol):
    """Protocol implemented by gradient computation methods."""

    name: str

    def gradients(
        self,
        network: Network,
        sample: Sample,
        trace: ForwardTrace,
        cost: SampleCost,
    ) -> Parameters:
        """Return dC/dparam for ``sample`` given its forward ``trace``."""


@dataclass
class Backpropagation:
    """Analytic gradient via the chain rule."""

    name: str = "backpropagation"

    def gradients(
        self,
        network: Network,
        sample: Sample,
        trace: ForwardTrace,
        cost: SampleCost,
    ) -> Parameters:
        grads = network.parameters().zeros_like()
        activations = trace.activations
        zs = trace.pre_activations
        deriv = network.activation.deriv

        delta = cost.derivative(sample.targets, trace.output)
        for idx in reversed(range(len(network.weights))):
            grads.biases[idx] += delta
            grads.weights[idx] += np.outer(delta, activations[idx])
            if idx > 0:
                delta = (network.weights[idx].T @ delta) * deriv(zs[idx - 1])
        return grads


@dataclass
class FiniteDifference:
    """Forward-difference estimate, one extra forward pass per parameter.

    Perturbs the summed per-sample cost, the same objective whose gradient
    :class:`Backpropagation` computes.
    """

    epsilon: float = 1e-5
    name: str = "finite-difference"

    def gradients(
        self,
        network: Network,
        sample: Sample,
        trace: ForwardTrace,
        cost: SampleCost,
    ) -> Parameters:
        live = network.parameters()
        grads = live.zeros_like()
        base_cost = cost.total_cost(sample.targets, trace.output)
        for param, grad in zip(live.arrays(), grads.arrays()):
            for index in np.ndindex(param.shape):
                original = param[index]
                param[index] = original + self.epsilon
                try:
                    perturbed = network.forward(sample.inputs).output
                    perturbed_cost = cost.total_cost(sample.targets, perturbed)
                finally:
                    param[index] = original
                grad[index] = (perturbed_cost - base_cost) / self.epsilon
        return grads


_ALIASES: Dict[str, str] = {
    "backpropagation": "backpropagation",
    "backprop": "backpropagation",
    "finite-difference": "finite-difference",
    "finite_difference": "finite-difference",
}


def resolve_strategy(name: str) -> GradientStrategy:
    key = _ALIASES.get(name)
    if key == "backpropagation":
        return Backpropagation()
    if key == "finite-difference":
        return FiniteDifference()
    available = ", ".join(sorted(set(_ALIASES.values())))
    raise ConfigurationError(f"Unknown gradient method {name!r}. Available methods: {available}")


__all__ = [
    "GradientStrategy",
    "Backpropagation",
    "FiniteDifference",
    "resolve_strategy",
]
