"""Core numerical primitives for nnflow."""

from . import activations, errors, network, strategies, types

__all__ = ["activations", "errors", "network", "strategies", "types"]
