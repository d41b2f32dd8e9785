import numpy as np
import pytest

from nnflow.core.errors import ConfigurationError, ShapeError
from nnflow.core.network import create_network, forward, get_parameters, predict, set_parameters
from nnflow.core.types import NetworkConfig, Parameters


@pytest.mark.parametrize("sizes", [(1, 1), (2, 2, 1), (3, 5, 4, 2), (4, 1, 3)])
def test_parameter_shapes_follow_layer_sizes(sizes):
    network = create_network(NetworkConfig(layer_sizes=sizes), seed=0)
    assert len(network.weights) == len(sizes) - 1
    for t in range(len(sizes) - 1):
        assert network.weights[t].shape == (sizes[t + 1], sizes[t])
        assert network.biases[t].shape == (sizes[t + 1],)


def test_initialisation_ranges():
    sizes = (3, 7, 2)
    network = create_network(NetworkConfig(layer_sizes=sizes), seed=1)
    for t, W in enumerate(network.weights):
        limit = np.sqrt(6.0 / (sizes[t] + sizes[t + 1]))
        assert np.all(np.abs(W) <= limit)
    for b in network.biases:
        assert np.all(np.abs(b) <= 0.1)


def test_seeded_construction_is_reproducible():
    config = NetworkConfig(layer_sizes=(2, 3, 1))
    a = create_network(config, seed=42)
    b = create_network(config, seed=42)
    for wa, wb in zip(a.weights, b.weights):
        np.testing.assert_array_equal(wa, wb)


@pytest.mark.parametrize(
    "sizes",
    [(), (3,), (2, 0, 1), (2, -1), (2.5, 1), (True, 1)],
)
def test_invalid_layer_sizes_rejected(sizes):
    with pytest.raises(ConfigurationError):
        NetworkConfig(layer_sizes=sizes)


def test_unknown_activation_rejected():
    with pytest.raises(ConfigurationError):
        NetworkConfig(layer_sizes=(1, 1), activation="tanh")


def test_from_hidden_derives_io_widths():
    config = NetworkConfig.from_hidden([4, 3], input_size=2, output_size=1)
    assert config.layer_sizes == (2, 4, 3, 1)
    assert config.transitions == 3


def test_forward_hidden_activation_and_linear_output():
    network = create_network(NetworkConfig(layer_sizes=(2, 2, 1), activation="relu"), seed=0)
    network.set_parameters(
        Parameters(
            weights=[np.array([[1.0, -1.0], [-2.0, 0.5]]), np.array([[3.0, -4.0]])],
            biases=[np.array([0.5, 0.0]), np.array([-10.0])],
        )
    )
    trace = forward(network, [1.0, 2.0])
    np.testing.assert_allclose(trace.pre_activations[0], [-0.5, -1.0])
    np.testing.assert_allclose(trace.activations[1], [0.0, 0.0])
    # output layer is linear, so the negative value survives
    np.testing.assert_allclose(trace.output, [-10.0])
    assert len(trace.activations) == 3
    assert len(trace.pre_activations) == 2


def test_forward_sigmoid_hidden_layer():
    network = create_network(NetworkConfig(layer_sizes=(1, 1, 1), activation="sigmoid"), seed=0)
    network.set_parameters(
        Parameters(
            weights=[np.array([[0.0]]), np.array([[2.0]])],
            biases=[np.array([0.0]), np.array([1.0])],
        )
    )
    trace = forward(network, [5.0])
    np.testing.assert_allclose(trace.activations[1], [0.5])
    np.testing.assert_allclose(trace.output, [2.0])


@pytest.mark.parametrize("bad", [[1.0], [1.0, 2.0, 3.0], [[1.0, 2.0]], 1.0])
def test_forward_rejects_shape_mismatch(bad):
    network = create_network(NetworkConfig(layer_sizes=(2, 1)), seed=0)
    with pytest.raises(ShapeError):
        forward(network, bad)


def test_predict_is_pure():
    network = create_network(NetworkConfig(layer_sizes=(3, 4, 2), activation="sigmoid"), seed=5)
    before = get_parameters(network)
    first = predict(network, [0.1, -0.2, 0.3])
    second = predict(network, [0.1, -0.2, 0.3])
    np.testing.assert_array_equal(first, second)
    after = get_parameters(network)
    for a, b in zip(before.arrays(), after.arrays()):
        np.testing.assert_array_equal(a, b)


def test_get_parameters_returns_independent_copy():
    network = create_network(NetworkConfig(layer_sizes=(2, 2)), seed=0)
    snapshot = get_parameters(network)
    snapshot.weights[0][0, 0] = 123.0
    assert network.weights[0][0, 0] != 123.0
    network.biases[0][0] = -55.0
    assert snapshot.biases[0][0] != -55.0


def test_set_parameters_round_trip_and_isolation():
    config = NetworkConfig(layer_sizes=(2, 3, 1))
    source = create_network(config, seed=1)
    target = create_network(config, seed=2)
    snapshot = get_parameters(source)
    set_parameters(target, snapshot)
    np.testing.assert_array_equal(predict(source, [0.3, 0.7]), predict(target, [0.3, 0.7]))
    snapshot.weights[0][:] = 0.0
    assert np.any(target.weights[0] != 0.0)


def test_set_parameters_rejects_other_architecture():
    small = create_network(NetworkConfig(layer_sizes=(2, 1)), seed=0)
    large = create_network(NetworkConfig(layer_sizes=(2, 3, 1)), seed=0)
    with pytest.raises(ShapeError):
        set_parameters(small, get_parameters(large))
    wide = create_network(NetworkConfig(layer_sizes=(3, 1)), seed=0)
    with pytest.raises(ShapeError):
        set_parameters(small, get_parameters(wide))


def test_parameters_nested_list_round_trip():
    network = create_network(NetworkConfig(layer_sizes=(2, 2, 1)), seed=0)
    payload = network.get_parameters().to_lists()
    assert isinstance(payload["weights"][0][0], list)
    restored = Parameters.from_lists(payload)
    for a, b in zip(restored.arrays(), network.parameters().arrays()):
        np.testing.assert_array_equal(a, b)


def test_reset_redraws_parameters():
    network = create_network(NetworkConfig(layer_sizes=(4, 4)), seed=0)
    before = network.get_parameters()
    network.reset(seed=1)
    assert not np.array_equal(before.weights[0], network.weights[0])
    assert network.parameter_count() == 4 * 4 + 4
