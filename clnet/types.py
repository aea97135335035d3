"""Enumerations shared across the network, and the scalar loss functions."""

from __future__ import annotations

import enum
import math


class ActivationType(enum.IntEnum):
    """Activation applied after a trainable layer's affine step."""

    LINEAR = 0
    RELU = 1
    SIGMOID = 2
    TANH = 3


class LayerType(enum.IntEnum):
    """Kind of layer, as stored in saved networks."""

    DENSE = 0
    CONVOLUTIONAL = 1


class LossFunctionType(enum.IntEnum):
    """Loss used to score predictions against targets."""

    MEAN_SQUARED_ERROR = 0
    BINARY_CROSS_ENTROPY = 1


class OptimizerType(enum.IntEnum):
    """Parameter update rule."""

    SGD = 0
    ADAM = 1
    ADAMW = 2


class PaddingType(enum.IntEnum):
    """Padding policy for convolutions."""

    VALID = 0
    SAME = 1


def _from_uint(enum_cls: type[enum.IntEnum], value: int) -> enum.IntEnum:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(f"Invalid value for {enum_cls.__name__}") from None


def activation_type_from_uint(value: int) -> ActivationType:
    """Return the activation type stored as ``value``."""
    return _from_uint(ActivationType, value)


def layer_type_from_uint(value: int) -> LayerType:
    """Return the layer type stored as ``value``."""
    return _from_uint(LayerType, value)


def loss_function_type_from_uint(value: int) -> LossFunctionType:
    """Return the loss function type stored as ``value``."""
    return _from_uint(LossFunctionType, value)


def optimizer_type_from_uint(value: int) -> OptimizerType:
    """Return the optimizer type stored as ``value``."""
    return _from_uint(OptimizerType, value)


def padding_type_from_uint(value: int) -> PaddingType:
    """Return the padding type stored as ``value``."""
    return _from_uint(PaddingType, value)


_LOG_EPSILON = 1e-17


def _safe_log(value: float) -> float:
    if value > 0:
        return math.log(value)
    if value == 0:
        return -math.inf
    return math.nan


def apply_loss_function(
    loss_function: LossFunctionType, prediction: float, target: float
) -> float:
    """Loss of a single prediction against its target."""
    try:
        kind = LossFunctionType(loss_function)
    except ValueError:
        raise ValueError("Unknown LossFunctionType") from None

    if kind is LossFunctionType.MEAN_SQUARED_ERROR:
        diff = prediction - target
        return diff * diff
    return -(
        target * _safe_log(prediction + _LOG_EPSILON)
        + (1 - target) * _safe_log(1 - prediction + _LOG_EPSILON)
    )