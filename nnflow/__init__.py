"""nnflow public API."""

from .core import activations  # noqa: F401
from .core import strategies  # noqa: F401
from .core import types  # noqa: F401
from .core.errors import (
    ConfigurationError,
    DatasetError,
    NetworkError,
    NumericalError,
    ObserverError,
    ShapeError,
)
from .core.network import (
    Network,
    create_network,
    forward,
    get_parameters,
    predict,
    set_parameters,
)
from .core.types import (
    NetworkConfig,
    Parameters,
    Sample,
    TrainingConfig,
    TrainingHistoryEntry,
    make_dataset,
)
from .training.pipelines import load_preset, presets, run_pipeline
from .training.session import ThrottledObserver, TrainingSession
from .training.trainer import CancellationToken, Trainer, TrainingState, train

__all__ = [
    "activations",
    "strategies",
    "types",
    "Network",
    "NetworkConfig",
    "TrainingConfig",
    "Sample",
    "Parameters",
    "TrainingHistoryEntry",
    "make_dataset",
    "create_network",
    "forward",
    "predict",
    "get_parameters",
    "set_parameters",
    "train",
    "Trainer",
    "TrainingState",
    "CancellationToken",
    "TrainingSession",
    "ThrottledObserver",
    "load_preset",
    "presets",
    "run_pipeline",
    "NetworkError",
    "ConfigurationError",
    "ShapeError",
    "DatasetError",
    "ObserverError",
    "NumericalError",
]
