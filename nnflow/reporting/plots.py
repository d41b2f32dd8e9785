"""Loss-curve plotting for training runs."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..core.types import Parameters


class PlotAdapter:
    """Step observer that records the mean loss and draws it on ``close``.

    matplotlib is only imported when a figure is actually written, and
    always with the ``Agg`` backend so runs stay headless.
    """

    def __init__(
        self,
        run_dir: str | Path,
        enable_plots: bool = False,
        *,
        method: str = "backpropagation",
        layer_sizes: Optional[List[int]] = None,
    ):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.method = method
        self.layer_sizes = list(layer_sizes) if layer_sizes else []
        self.steps: List[int] = []
        self.losses: List[float] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_step(self, step: int, loss: float, parameters: Parameters):
        if self.enable_plots:
            self.steps.append(step)
            self.losses.append(float(loss))

    def title(self) -> str:
        arch = f" {self.layer_sizes}" if self.layer_sizes else ""
        return f"MSE per step, {self.method}{arch}"

    def close(self) -> Optional[Path]:
        if not self.enable_plots or not self.steps:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots()
        ax.plot(self.steps, self.losses, marker="." if len(self.steps) <= 50 else None)
        # losses usually shrink by orders of magnitude
        if min(self.losses) > 0:
            ax.set_yscale("log")
        ax.set_xlabel("Training step")
        ax.set_ylabel("Mean sample cost")
        ax.set_title(self.title())
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_step
