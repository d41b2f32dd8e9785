"""Dense feed-forward network: construction, forward pass and snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from .activations import Activation, get_activation
from .errors import ShapeError
from .types import Array, ForwardTrace, NetworkConfig, Parameters

BIAS_RANGE = 0.1


@dataclass
class Network:
    """Multilayer perceptron with a linear output layer.

    ``weights[t]`` has shape ``(layer_sizes[t + 1], layer_sizes[t])`` and
    ``biases[t]`` has shape ``(layer_sizes[t + 1],)``. Parameters are
    mutated in place by training; the architecture never changes.
    """

    config: NetworkConfig
    seed: Optional[int] = None
    weights: List[Array] = field(init=False, repr=False, compare=False)
    biases: List[Array] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._activation: Activation = get_activation(self.config.activation)
        self.reset(self.seed)

    @property
    def layer_sizes(self) -> Sequence[int]:
        return self.config.layer_sizes

    @property
    def activation(self) -> Activation:
        return self._activation

    def reset(self, seed: Optional[int] = None) -> None:
        """Re-draw every weight (Xavier uniform) and bias (uniform +-0.1)."""

        rng = np.random.default_rng(seed)
        weights: list[Array] = []
        biases: list[Array] = []
        sizes = list(self.config.layer_sizes)
        for in_dim, out_dim in zip(sizes[:-1], sizes[1:]):
            limit = np.sqrt(6.0 / (in_dim + out_dim))
            weights.append(rng.uniform(-limit, limit, size=(out_dim, in_dim)))
            biases.append(rng.uniform(-BIAS_RANGE, BIAS_RANGE, size=out_dim))
        self.weights = weights
        self.biases = biases

    def forward(self, inputs: Sequence[float] | Array) -> ForwardTrace:
        x = np.asarray(inputs, dtype=np.float64)
        expected = self.config.input_size
        if x.ndim != 1 or x.shape[0] != expected:
            raise ShapeError(f"expected an input vector of length {expected}, got shape {x.shape}")

        activations: list[Array] = [x]
        zs: list[Array] = []
        last = len(self.weights) - 1
        for idx, (W, b) in enumerate(zip(self.weights, self.biases)):
            z = W @ activations[idx] + b
            zs.append(z)
            if idx < last:
                activations.append(self._activation(z))
            else:
                activations.append(z)
        return ForwardTrace(activations=activations, pre_activations=zs, output=activations[-1])

    def predict(self, inputs: Sequence[float] | Array) -> Array:
        return self.forward(inputs).output.copy()

    def get_parameters(self) -> Parameters:
        return Parameters(weights=self.weights, biases=self.biases).copy()

    def set_parameters(self, parameters: Parameters) -> None:
        incoming = parameters.copy()
        if len(incoming.weights) != len(self.weights) or len(incoming.biases) != len(self.biases):
            raise ShapeError(
                f"snapshot has {len(incoming.weights)} transitions, network has {len(self.weights)}"
            )
        for idx, (W, b) in enumerate(zip(incoming.weights, incoming.biases)):
            if W.shape != self.weights[idx].shape:
                raise ShapeError(
                    f"weights[{idx}] has shape {W.shape}, expected {self.weights[idx].shape}"
                )
            if b.shape != self.biases[idx].shape:
                raise ShapeError(
                    f"biases[{idx}] has shape {b.shape}, expected {self.biases[idx].shape}"
                )
        self.weights = incoming.weights
        self.biases = incoming.biases

    def parameters(self) -> Parameters:
        """Live (aliased) view of the parameters, for in-place updates."""

        return Parameters(weights=self.weights, biases=self.biases)

    def parameter_count(self) -> int:
        return int(sum(w.size + b.size for w, b in zip(self.weights, self.biases)))


def create_network(config: NetworkConfig, *, seed: Optional[int] = None) -> Network:
    return Network(config=config, seed=seed)


def forward(network: Network, inputs: Sequence[float] | Array) -> ForwardTrace:
    return network.forward(inputs)


def predict(network: Network, inputs: Sequence[float] | Array) -> Array:
    return network.predict(inputs)


def get_parameters(network: Network) -> Parameters:
    return network.get_parameters()


def set_parameters(network: Network, parameters: Parameters) -> None:
    network.set_parameters(parameters)


__all__ = [
    "Network",
    "create_network",
    "forward",
    "predict",
    "get_parameters",
    "set_parameters",
]
