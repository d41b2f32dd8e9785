"""Cooperative, observable training loop for nnflow."""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence, Union

import numpy as np

from ..core.errors import (
    ConfigurationError,
    DatasetError,
    NumericalError,
    ObserverError,
    ShapeError,
)
from ..core.network import Network
from ..core.strategies import GradientStrategy, resolve_strategy
from ..core.types import Dataset, Parameters, Sample, TrainingConfig, TrainingHistoryEntry
from .losses import REGISTRY as COST_REGISTRY
from .losses import Cost

logger = logging.getLogger(__name__)

StepObserver = Callable[[int, float, Parameters], Union[None, Awaitable[None]]]

LOG_EVERY = 10


class TrainingState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CancellationToken:
    """Cooperative cancellation flag, checked once per step boundary."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class SGDOptimizer:
    """Plain gradient descent: ``param -= lr * grad``."""

    learning_rate: float

    def step(self, network: Network, grads: Parameters) -> None:
        for param, grad in zip(network.parameters().arrays(), grads.arrays()):
            param -= self.learning_rate * grad


class Trainer:
    """Run full-batch training with a pluggable gradient strategy.

    One step accumulates per-sample gradients over the whole dataset,
    averages them, applies the optimizer, records the mean loss, yields to
    the event loop and then awaits the observer with a deep-copied snapshot.
    """

    def __init__(
        self,
        network: Network,
        strategy: GradientStrategy,
        optimizer: SGDOptimizer,
        cost: Optional[Cost] = None,
    ) -> None:
        self.network = network
        self.strategy = strategy
        self.optimizer = optimizer
        self.cost = cost or COST_REGISTRY.get(network.config.cost)
        self.history: List[TrainingHistoryEntry] = []
        self.state = TrainingState.IDLE

    @classmethod
    def from_config(cls, network: Network, config: TrainingConfig) -> "Trainer":
        return cls(
            network=network,
            strategy=resolve_strategy(config.method),
            optimizer=SGDOptimizer(learning_rate=config.learning_rate),
        )

    def validate(self, dataset: Sequence[Sample]) -> None:
        if len(dataset) == 0:
            raise DatasetError("cannot train on an empty dataset")
        in_size = self.network.config.input_size
        out_size = self.network.config.output_size
        for idx, sample in enumerate(dataset):
            if np.shape(sample.inputs) != (in_size,):
                raise ShapeError(
                    f"sample {idx} input has shape {np.shape(sample.inputs)}, expected ({in_size},)"
                )
            if np.shape(sample.targets) != (out_size,):
                raise ShapeError(
                    f"sample {idx} target has shape {np.shape(sample.targets)}, expected ({out_size},)"
                )

    def train_step(self, dataset: Dataset, step: int = 0) -> float:
        """Apply one full-batch gradient step and return the mean sample cost."""

        accumulator = self.network.parameters().zeros_like()
        total_loss = 0.0
        for sample in dataset:
            trace = self.network.forward(sample.inputs)
            total_loss += self.cost.sample_cost(sample.targets, trace.output)
            grads = self.strategy.gradients(self.network, sample, trace, self.cost)
            for acc, grad in zip(accumulator.arrays(), grads.arrays()):
                acc += grad

        n = len(dataset)
        for acc in accumulator.arrays():
            acc /= n
        avg_loss = total_loss / n

        if not np.isfinite(avg_loss) or not accumulator.is_finite():
            raise NumericalError(
                step,
                f"non-finite loss or gradient at step {step} (loss={avg_loss}); "
                "try a smaller learning rate",
            )
        self.optimizer.step(self.network, accumulator)
        return avg_loss

    async def train(
        self,
        dataset: Dataset,
        steps: int,
        on_step: Optional[StepObserver] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[TrainingHistoryEntry]:
        self.history = []
        try:
            _check_steps(steps)
            self.validate(dataset)
        except (ConfigurationError, DatasetError, ShapeError):
            self.state = TrainingState.FAILED
            raise
        self.state = TrainingState.RUNNING
        logger.info(
            "training %s for %d steps with %s on %d samples",
            list(self.network.layer_sizes),
            steps,
            self.strategy.name,
            len(dataset),
        )

        try:
            for step in range(steps):
                if cancel_token is not None and cancel_token.cancelled:
                    self.state = TrainingState.CANCELLED
                    logger.info("training cancelled after %d steps", len(self.history))
                    return list(self.history)

                avg_loss = self.train_step(dataset, step)
                self.history.append(TrainingHistoryEntry(step=step, loss=avg_loss))
                if step % LOG_EVERY == 0 or step == steps - 1:
                    logger.debug("step %d loss %.6f", step, avg_loss)

                await asyncio.sleep(0)
                if on_step is not None:
                    await self._notify(on_step, step, avg_loss)
        except asyncio.CancelledError:
            self.state = TrainingState.CANCELLED
            raise
        except Exception:
            self.state = TrainingState.FAILED
            raise

        self.state = TrainingState.COMPLETED
        if self.history:
            logger.info("training completed, final loss %.6f", self.history[-1].loss)
        return list(self.history)

    def run(
        self,
        dataset: Dataset,
        steps: int,
        on_step: Optional[StepObserver] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[TrainingHistoryEntry]:
        """Synchronous wrapper around :meth:`train`."""

        return asyncio.run(self.train(dataset, steps, on_step=on_step, cancel_token=cancel_token))

    async def _notify(self, on_step: StepObserver, step: int, loss: float) -> None:
        snapshot = self.network.get_parameters()
        try:
            result = on_step(step, loss, snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            raise ObserverError(step, f"step observer failed at step {step}: {exc}") from exc


def _check_steps(steps: int) -> None:
    if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)) or steps < 1:
        raise ConfigurationError(f"steps must be a positive integer, got {steps!r}")


async def train(
    network: Network,
    dataset: Dataset,
    config: TrainingConfig,
    on_step: Optional[StepObserver] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> List[TrainingHistoryEntry]:
    """Train ``network`` in place according to ``config``."""

    trainer = Trainer.from_config(network, config)
    return await trainer.train(dataset, config.steps, on_step=on_step, cancel_token=cancel_token)


__all__ = [
    "CancellationToken",
    "SGDOptimizer",
    "StepObserver",
    "Trainer",
    "TrainingState",
    "train",
]
