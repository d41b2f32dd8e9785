"""Run artifact helpers."""

from __future__ import annotations

import json
import platform
import time
from pathlib import Path
from typing import Mapping

from ..core.types import Parameters


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    summary: Mapping[str, object],
) -> str:
    """Write a manifest JSON file capturing the config and outcome of a run."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "summary": dict(summary),
        "environment": {"python": platform.python_version()},
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


def write_parameters(path: str | Path, parameters: Parameters) -> str:
    """Persist a parameter snapshot as plain nested lists."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(parameters.to_lists(), indent=2))
    return str(path)


def read_parameters(path: str | Path) -> Parameters:
    return Parameters.from_lists(json.loads(Path(path).read_text()))
