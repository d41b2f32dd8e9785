"""Error taxonomy for the network engine."""

from __future__ import annotations


class NetworkError(Exception):
    """Base class for every error raised by :mod:`nnflow`."""


class ConfigurationError(NetworkError, ValueError):
    """Invalid network or training configuration."""


class ShapeError(NetworkError, ValueError):
    """A vector or matrix does not match the expected layer width."""


class DatasetError(NetworkError, ValueError):
    """Training data is empty or inputs and targets do not line up."""


class ObserverError(NetworkError, RuntimeError):
    """The per-step observer raised; the original exception is ``__cause__``."""

    def __init__(self, step: int, message: str) -> None:
        super().__init__(message)
        self.step = step


class NumericalError(NetworkError, ArithmeticError):
    """Loss or gradients became non-finite during training."""

    def __init__(self, step: int, message: str) -> None:
        super().__init__(message)
        self.step = step


__all__ = [
    "NetworkError",
    "ConfigurationError",
    "ShapeError",
    "DatasetError",
    "ObserverError",
    "NumericalError",
]
