import numpy as np
import pytest

from nnflow.core.activations import get_activation, relu, relu_deriv, sigmoid, sigmoid_deriv
from nnflow.core.errors import ConfigurationError, DatasetError, ShapeError
from nnflow.core.types import TrainingConfig, make_dataset
from nnflow.training.losses import REGISTRY as COST_REGISTRY


def test_relu_and_subgradient_at_zero():
    x = np.array([-2.0, 0.0, 3.0])
    np.testing.assert_array_equal(relu(x), [0.0, 0.0, 3.0])
    np.testing.assert_array_equal(relu_deriv(x), [0.0, 0.0, 1.0])


def test_sigmoid_derivative_matches_definition():
    x = np.linspace(-4.0, 4.0, 9)
    s = 1.0 / (1.0 + np.exp(-x))
    np.testing.assert_allclose(sigmoid(x), s)
    np.testing.assert_allclose(sigmoid_deriv(x), s * (1 - s))
    assert sigmoid_deriv(np.array([0.0]))[0] == pytest.approx(0.25)


def test_activation_lookup():
    assert get_activation("relu").name == "relu"
    with pytest.raises(ConfigurationError):
        get_activation("softplus")


def test_mse_sample_cost_is_mean_over_outputs():
    mse = COST_REGISTRY.get("mse")
    targets = np.array([1.0, 2.0])
    preds = np.array([2.0, 5.0])
    # (1 + 9) / 2
    assert mse.sample_cost(targets, preds) == pytest.approx(5.0)
    assert mse.total_cost(targets, preds) == pytest.approx(10.0)
    np.testing.assert_allclose(mse.derivative(targets, preds), [2.0, 6.0])


def test_mse_rejects_mismatched_shapes():
    mse = COST_REGISTRY.get("mse")
    with pytest.raises(ShapeError):
        mse.sample_cost(np.zeros(2), np.zeros(3))
    with pytest.raises(ShapeError):
        mse.total_cost(np.zeros(2), np.zeros(3))


def test_unknown_cost():
    assert list(COST_REGISTRY.names()) == ["mse"]
    with pytest.raises(ConfigurationError):
        COST_REGISTRY.get("huber")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"steps": 0},
        {"steps": 2.5},
        {"learning_rate": 0.0},
        {"learning_rate": -0.1},
        {"learning_rate": float("nan")},
        {"method": "adam"},
        {"optimizer": "momentum"},
    ],
)
def test_training_config_validation(kwargs):
    with pytest.raises(ConfigurationError):
        TrainingConfig(**kwargs)


def test_training_config_defaults():
    config = TrainingConfig()
    assert (config.steps, config.learning_rate, config.method) == (30, 0.01, "backpropagation")


def test_make_dataset_validation():
    samples = make_dataset([[1.0], [2.0]], [[2.0], [4.0]])
    assert len(samples) == 2
    assert samples[1].inputs.tolist() == [2.0]
    with pytest.raises(DatasetError):
        make_dataset([], [])
    with pytest.raises(DatasetError):
        make_dataset([[1.0], [2.0]], [[2.0]])
    with pytest.raises(DatasetError):
        make_dataset([[1.0], [2.0, 3.0]], [[1.0], [2.0]])
    with pytest.raises(DatasetError):
        # scalars are not promoted to singleton vectors
        make_dataset([1.0, 2.0], [2.0, 4.0])
