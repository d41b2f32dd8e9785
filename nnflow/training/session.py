"""Training orchestration: an explicit state object owned by the host."""

from __future__ import annotations

import dataclasses
import inspect
import logging
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Sequence

from ..core.network import Network, create_network
from ..core.types import (
    Array,
    Dataset,
    NetworkConfig,
    Parameters,
    TrainingConfig,
    TrainingHistoryEntry,
)
from .trainer import CancellationToken, StepObserver, Trainer, TrainingState

logger = logging.getLogger(__name__)


class ThrottledObserver:
    """Forward at most one step per ``interval`` seconds.

    The first and the last step are always forwarded.
    """

    def __init__(
        self,
        observer: StepObserver,
        *,
        total_steps: int,
        interval: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.observer = observer
        self.total_steps = total_steps
        self.interval = interval
        self.clock = clock
        self._last: Optional[float] = None
        self.forwarded = 0

    async def __call__(self, step: int, loss: float, parameters: Parameters) -> None:
        now = self.clock()
        due = self._last is None or now - self._last >= self.interval
        if not (due or step == 0 or step == self.total_steps - 1):
            return
        self._last = now
        self.forwarded += 1
        result = self.observer(step, loss, parameters)
        if inspect.isawaitable(result):
            await result


class TrainingSession:
    """Owns a network, its training configuration and the latest training view.

    ``history`` keeps only the last ``history_limit`` entries for display;
    :meth:`train` still returns the complete history of the run.
    """

    def __init__(
        self,
        network_config: NetworkConfig,
        training_config: Optional[TrainingConfig] = None,
        *,
        seed: Optional[int] = None,
        history_limit: int = 100,
    ) -> None:
        self.network_config = network_config
        self.training_config = training_config or TrainingConfig()
        self.seed = seed
        self.history: Deque[TrainingHistoryEntry] = deque(maxlen=history_limit)
        self.state = TrainingState.IDLE
        self.current_step = 0
        self.is_trained = False
        self.prediction: Optional[Array] = None
        self._cancel_token: Optional[CancellationToken] = None
        self.network: Network = create_network(network_config, seed=seed)
        self.parameters: Parameters = self.network.get_parameters()

    @property
    def is_training(self) -> bool:
        return self.state is TrainingState.RUNNING

    def reset(self) -> None:
        """Build a fresh network, discarding learned parameters and history."""

        self._ensure_idle("reset")
        self.network = create_network(self.network_config, seed=self.seed)
        self.parameters = self.network.get_parameters()
        self.history.clear()
        self.current_step = 0
        self.is_trained = False
        self.prediction = None
        self.state = TrainingState.IDLE

    def update_config(self, **changes) -> NetworkConfig:
        self._ensure_idle("change the architecture")
        self.network_config = dataclasses.replace(self.network_config, **changes)
        self.reset()
        return self.network_config

    def update_training_config(self, **changes) -> TrainingConfig:
        self._ensure_idle("change the training configuration")
        self.training_config = dataclasses.replace(self.training_config, **changes)
        return self.training_config

    async def train(
        self,
        dataset: Dataset,
        on_step: Optional[StepObserver] = None,
    ) -> List[TrainingHistoryEntry]:
        self._ensure_idle("start training")
        self._cancel_token = CancellationToken()
        self.history.clear()
        self.current_step = 0
        trainer = Trainer.from_config(self.network, self.training_config)

        async def _observe(step: int, loss: float, parameters: Parameters) -> None:
            self.current_step = step
            self.history.append(TrainingHistoryEntry(step=step, loss=loss))
            self.parameters = parameters
            if on_step is not None:
                result = on_step(step, loss, parameters)
                if inspect.isawaitable(result):
                    await result

        self.state = TrainingState.RUNNING
        try:
            history = await trainer.train(
                dataset,
                self.training_config.steps,
                on_step=_observe,
                cancel_token=self._cancel_token,
            )
        except Exception:
            logger.exception("training failed at step %d", self.current_step)
            raise
        finally:
            self.state = trainer.state
            self.parameters = self.network.get_parameters()
            self._cancel_token = None

        self.is_trained = self.state is TrainingState.COMPLETED
        return history

    def cancel(self) -> None:
        if self._cancel_token is not None:
            self._cancel_token.cancel()

    def predict(self, inputs: Sequence[float]) -> Array:
        self.prediction = self.network.predict(inputs)
        return self.prediction

    def get_parameters(self) -> Parameters:
        return self.network.get_parameters()

    def set_parameters(self, parameters: Parameters) -> None:
        self._ensure_idle("restore parameters")
        self.network.set_parameters(parameters)
        self.parameters = self.network.get_parameters()

    def _ensure_idle(self, action: str) -> None:
        if self.state is TrainingState.RUNNING:
            raise RuntimeError(f"cannot {action} while training is running")


__all__ = ["ThrottledObserver", "TrainingSession"]
