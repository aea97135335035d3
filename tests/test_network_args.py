import numpy as np
import pytest

from clnet.dimensions import Dimensions
from clnet.layer_args import DenseLayerArgs
from clnet.network_args import NetworkArgs
from clnet.optimizer_args import AdamOptimizerArgs
from clnet.types import ActivationType, LossFunctionType, OptimizerType


def test_defaults():
    args = NetworkArgs()
    assert args.initial_input_dimensions == Dimensions([1])
    assert args.layers_arguments == []
    assert args.optimizer_arguments is None
    assert args.batch_size == 1
    assert args.loss_function_type is LossFunctionType.MEAN_SQUARED_ERROR


def test_default_layer_lists_are_independent():
    first = NetworkArgs()
    second = NetworkArgs()
    first.layers_arguments.append(DenseLayerArgs(Dimensions([2])))
    assert len(second.layers_arguments) == 0


def test_explicit_values_are_kept():
    layers = [DenseLayerArgs(Dimensions([3]), ActivationType.RELU)]
    optimizer = AdamOptimizerArgs(learning_rate=0.001)
    args = NetworkArgs(
        Dimensions([4]),
        layers,
        optimizer,
        batch_size=8,
        loss_function_type=LossFunctionType.BINARY_CROSS_ENTROPY,
    )
    assert args.initial_input_dimensions == Dimensions([4])
    assert args.layers_arguments == layers
    assert args.optimizer_arguments.optimizer_type() is OptimizerType.ADAM
    assert args.optimizer_arguments.learning_rate == 0.001
    assert args.batch_size == 8
    assert args.loss_function_type is LossFunctionType.BINARY_CROSS_ENTROPY


def test_layers_argument_is_copied():
    layers = [DenseLayerArgs(Dimensions([3]))]
    args = NetworkArgs(Dimensions([2]), layers)
    layers.append(DenseLayerArgs(Dimensions([1])))
    assert len(args.layers_arguments) == 1


def test_loss_type_from_integer():
    args = NetworkArgs(loss_function_type=1)
    assert args.loss_function_type is LossFunctionType.BINARY_CROSS_ENTROPY


def test_invalid_loss_type_rejected():
    with pytest.raises(ValueError):
        NetworkArgs(loss_function_type=7)


def test_layers_chain_from_input_dimensions():
    args = NetworkArgs(
        Dimensions([4]),
        [
            DenseLayerArgs(Dimensions([3]), ActivationType.RELU),
            DenseLayerArgs(Dimensions([2]), ActivationType.SIGMOID),
        ],
        batch_size=2,
    )
    rng = np.random.default_rng(0)
    dims = args.initial_input_dimensions
    built = []
    for layer_id, layer_args in enumerate(args.layers_arguments):
        layer = layer_args.create_layer(layer_id, dims, args.batch_size, rng)
        built.append(layer)
        dims = layer.output_dimensions
    assert built[0].input_dimensions == args.initial_input_dimensions
    assert built[1].input_dimensions == built[0].output_dimensions
    assert dims == args.layers_arguments[-1].output_dimensions
    assert all(layer.batch_size == args.batch_size for layer in built)