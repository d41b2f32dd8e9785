"""Metrics sinks usable as per-step training observers."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Optional

from ..core.types import Parameters


class JsonlSink:
    """Append-only JSONL writer, one record per training step."""

    def __init__(
        self,
        path: str | Path,
        *,
        seed: Optional[int] = None,
        method: str = "",
        include_parameters: bool = False,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.seed = seed
        self.method = method
        self.include_parameters = include_parameters

    def on_step(self, step: int, loss: float, parameters: Parameters) -> None:
        record = {
            "step": int(step),
            "loss": float(loss),
            "seed": self.seed,
            "method": self.method,
        }
        if self.include_parameters:
            record.update(parameters.to_lists())
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_step


class CsvSink:
    """Write step/loss rows to CSV with a stable schema."""

    fieldnames = ("step", "loss")

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")

    def on_step(self, step: int, loss: float, parameters: Parameters) -> None:
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self.fieldnames)
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow({"step": int(step), "loss": float(loss)})

    __call__ = on_step


__all__ = ["JsonlSink", "CsvSink"]
