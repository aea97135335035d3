import math

import numpy as np
import pytest

from clnet.convolutional import ConvolutionalLayer
from clnet.dimensions import Dimensions, FilterDimensions, StrideDimensions
from clnet.types import ActivationType, LayerType, PaddingType


def make_layer(
    input_dims=(2, 5, 4),
    filt=(3, 2, 2, 3),
    stride=(1, 1),
    padding=PaddingType.VALID,
    activation=ActivationType.LINEAR,
    batch_size=2,
    seed=0,
    layer_id=1,
):
    return ConvolutionalLayer(
        layer_id,
        Dimensions(input_dims),
        FilterDimensions(*filt),
        StrideDimensions(*stride),
        padding,
        activation,
        batch_size,
        np.random.default_rng(seed),
    )


def random_inputs(layer, seed=1):
    rng = np.random.default_rng(seed)
    count = layer.batch_size * layer.total_input_elements()
    return rng.standard_normal(count).astype(np.float32)


def test_layer_type_and_sizes():
    layer = make_layer()
    assert layer.layer_type() is LayerType.CONVOLUTIONAL
    assert layer.weights_size() == layer.filter_dimensions.total_elements()
    assert layer.biases_size() == layer.filter_dimensions.output_channels
    assert layer.is_trainable()


def test_weights_within_limit_and_zero_biases():
    layer = make_layer()
    fh, fw = 3, 2
    limit = math.sqrt(6.0 / (2 * fh * fw + 3 * fh * fw))
    assert layer.weights.shape == (layer.weights_size(),)
    assert float(np.max(np.abs(layer.weights))) <= limit
    assert layer.biases.tolist() == [0.0, 0.0, 0.0]


def test_same_padding_keeps_spatial_size():
    layer = make_layer(input_dims=(2, 5, 4), padding=PaddingType.SAME)
    assert layer.output_dimensions[1] == 5
    assert layer.output_dimensions[2] == 4
    assert layer.output_dimensions[0] == 3


def test_one_dimensional_input_is_reshaped():
    layer = make_layer(input_dims=(2,), filt=(1, 1, 2, 4))
    assert layer.input_dimensions == Dimensions((2, 1, 1))
    assert layer.output_dimensions == Dimensions((4, 1, 1))


def test_channel_mismatch_raises():
    with pytest.raises(ValueError):
        make_layer(input_dims=(3, 5, 5), filt=(2, 2, 2, 1))


def test_filter_larger_than_input_raises():
    with pytest.raises(ValueError):
        make_layer(input_dims=(2, 2, 2), filt=(3, 3, 2, 1))


def test_identity_filter_reproduces_input():
    layer = make_layer(input_dims=(1, 3, 3), filt=(1, 1, 1, 1), batch_size=2)
    layer.weights = np.ones(1, dtype=np.float32)
    layer.biases = np.array([0.0], dtype=np.float32)
    x = random_inputs(layer)
    out = layer.run_forward(x)
    np.testing.assert_allclose(out, x, rtol=1e-6)


def test_bias_added_per_channel():
    layer = make_layer(input_dims=(1, 3, 3), filt=(1, 1, 1, 2), batch_size=1)
    layer.weights = np.zeros(2, dtype=np.float32)
    layer.biases = np.array([1.5, -2.0], dtype=np.float32)
    out = layer.run_forward(np.ones(9, dtype=np.float32)).reshape(2, 9)
    np.testing.assert_allclose(out[0], 1.5)
    np.testing.assert_allclose(out[1], -2.0)


def test_relu_forward_is_nonnegative_and_matches_linear():
    linear = make_layer(activation=ActivationType.LINEAR, seed=5)
    relu = make_layer(activation=ActivationType.RELU, seed=5)
    x = random_inputs(linear)
    lin_out = linear.run_forward(x)
    relu_out = relu.run_forward(x)
    np.testing.assert_allclose(relu_out, np.maximum(lin_out, 0.0), rtol=1e-6)


def test_compute_deltas_relu_masks_nonpositive():
    layer = make_layer(activation=ActivationType.RELU)
    layer.run_forward(random_inputs(layer))
    layer.deltas = np.ones_like(layer.outputs)
    deltas = layer.compute_deltas()
    np.testing.assert_array_equal(deltas, (layer.pre_activations > 0).astype(np.float32))


def _weighted_loss(layer, x, g):
    return float(np.sum(layer.run_forward(x).astype(np.float64) * g))


@pytest.mark.parametrize(
    "stride,padding",
    [((1, 1), PaddingType.VALID), ((2, 1), PaddingType.SAME), ((2, 2), PaddingType.VALID)],
)
def test_weight_gradients_match_finite_differences(stride, padding):
    layer = make_layer(stride=stride, padding=padding)
    x = random_inputs(layer)
    g = np.random.default_rng(3).standard_normal(
        layer.batch_size * layer.total_output_elements()
    )
    layer.run_forward(x)
    layer.deltas = g.astype(np.float32)
    layer.compute_deltas()
    wg, bg = layer.compute_gradients(x)

    eps = 0.5
    base = layer.weights.copy()
    for i in range(layer.weights_size()):
        layer.weights = base.copy()
        layer.weights[i] += eps
        up = _weighted_loss(layer, x, g)
        layer.weights[i] -= 2 * eps
        down = _weighted_loss(layer, x, g)
        numeric = (up - down) / (2 * eps) / layer.batch_size
        assert wg[i] == pytest.approx(numeric, rel=1e-3, abs=1e-3)
    layer.weights = base

    bias_base = layer.biases.copy()
    for i in range(layer.biases_size()):
        layer.biases = bias_base.copy()
        layer.biases[i] += eps
        up = _weighted_loss(layer, x, g)
        layer.biases[i] -= 2 * eps
        down = _weighted_loss(layer, x, g)
        numeric = (up - down) / (2 * eps) / layer.batch_size
        assert bg[i] == pytest.approx(numeric, rel=1e-3, abs=1e-3)


def test_backprop_deltas_match_input_gradient():
    layer = make_layer(stride=(2, 1), padding=PaddingType.SAME)
    x = random_inputs(layer)
    g = np.random.default_rng(4).standard_normal(
        layer.batch_size * layer.total_output_elements()
    )
    layer.run_forward(x)
    layer.deltas = g.astype(np.float32)
    layer.compute_deltas()
    back = layer.backprop_deltas(layer.input_dimensions)
    assert back.size == x.size

    eps = 0.5
    for i in range(0, x.size, 7):
        xp = x.copy()
        xp[i] += eps
        up = _weighted_loss(layer, xp, g)
        xp[i] -= 2 * eps
        down = _weighted_loss(layer, xp, g)
        assert back[i] == pytest.approx((up - down) / (2 * eps), rel=1e-3, abs=1e-3)


def test_backprop_rejects_wrong_dimensions():
    layer = make_layer()
    with pytest.raises(ValueError):
        layer.backprop_deltas(Dimensions((7,)))


def test_forward_rejects_short_input():
    layer = make_layer()
    with pytest.raises(ValueError):
        layer.run_forward(np.zeros(3, dtype=np.float32))


def test_save_and_load_round_trip():
    layer = make_layer(padding=PaddingType.SAME, activation=ActivationType.TANH, layer_id=4)
    group = {}
    layer.save_layer(group)
    assert group["layerType"] == int(LayerType.CONVOLUTIONAL)
    loaded = ConvolutionalLayer.from_group(group, batch_size=2)
    assert layer.equals(loaded)
    assert loaded.layer_id == 4
    assert loaded.padding_values == layer.padding_values
    assert loaded.output_dimensions == layer.output_dimensions
    x = random_inputs(layer)
    np.testing.assert_allclose(loaded.run_forward(x), layer.run_forward(x), rtol=1e-6)


def test_from_group_rejects_wrong_weight_count():
    layer = make_layer()
    group = {}
    layer.save_layer(group)
    group["weights"] = group["weights"][:-1]
    with pytest.raises(ValueError):
        ConvolutionalLayer.from_group(group)


def test_equals_detects_changed_weights_and_other_kinds():
    first = make_layer(seed=2)
    second = make_layer(seed=2)
    assert first.equals(second)
    second.weights = second.weights + np.float32(0.01)
    assert not first.equals(second)
    assert not first.equals(object())


def test_describe_lists_configuration():
    layer = make_layer(layer_id=3)
    text = layer.describe()
    assert "Convolutional Layer ID: 3" in text
    assert f"Filter Dimensions: {layer.filter_dimensions}" in text
    assert text.startswith("----- Convolutional Layer Info -----")