import json
from pathlib import Path

import pytest

from nnflow.core.errors import ConfigurationError, DatasetError
from nnflow.training import pipelines


def _config(tmp_path, **train):
    config = pipelines.load_preset("linear-regression")
    config["train"].update({"run_dir": str(tmp_path / "run"), **train})
    return config


def test_presets_are_independent_copies():
    names = set(pipelines.presets())
    assert {"linear-doubling", "linear-regression", "xor-sigmoid", "finite-difference-demo"} <= names
    first = pipelines.load_preset("linear-doubling")
    first["train"]["steps"] = 1
    assert pipelines.load_preset("linear-doubling")["train"]["steps"] == 30
    with pytest.raises(KeyError):
        pipelines.load_preset("nope")


def test_pipeline_produces_artifacts(tmp_path):
    result = pipelines.run_pipeline(_config(tmp_path))
    assert result.state == "completed"
    assert result.steps == 500
    assert result.final_loss < 0.01
    assert result.predictions[1][0] == pytest.approx(14.0, abs=0.5)

    metrics = [json.loads(line) for line in Path(result.metrics_path).read_text().splitlines()]
    assert len(metrics) == 500
    assert (tmp_path / "run" / "metrics.csv").exists()
    params = json.loads(Path(result.parameters_path).read_text())
    assert len(params["weights"]) == 1
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["model"]["layers"] == [1, 1]
    assert manifest["summary"]["state"] == "completed"


def test_pipeline_is_deterministic_for_a_seed(tmp_path):
    first = pipelines.run_pipeline(_config(tmp_path / "a", steps=40))
    second = pipelines.run_pipeline(_config(tmp_path / "b", steps=40))
    assert [e.loss for e in first.history] == [e.loss for e in second.history]


def test_pipeline_explicit_layers(tmp_path):
    config = _config(tmp_path, steps=5)
    config["model"] = {"layers": [1, 3, 1], "activation": "sigmoid"}
    result = pipelines.run_pipeline(config)
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["model"]["layers"] == [1, 3, 1]


def test_pipeline_rejects_bad_config(tmp_path):
    config = _config(tmp_path, method="adam")
    with pytest.raises(ConfigurationError):
        pipelines.run_pipeline(config)
    config = _config(tmp_path)
    config["data"] = {"x": [[1], [2]], "y": [[2]]}
    with pytest.raises(DatasetError):
        pipelines.run_pipeline(config)


def test_finite_difference_preset(tmp_path):
    config = pipelines.load_preset("finite-difference-demo")
    config["train"].update({"run_dir": str(tmp_path), "steps": 5})
    result = pipelines.run_pipeline(config)
    assert result.steps == 5
    assert len(result.predictions) == 1
