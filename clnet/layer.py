"""Abstract layer types and the element-wise activation functions."""

from __future__ import annotations

import abc

import numpy as np

from clnet.dimensions import Dimensions
from clnet.types import ActivationType, LayerType


def apply_activation(activation_type: ActivationType, values) -> np.ndarray:
    """Apply the activation element-wise."""
    x = np.asarray(values, dtype=np.float32)
    kind = ActivationType(activation_type)
    if kind is ActivationType.LINEAR:
        return x.copy()
    if kind is ActivationType.RELU:
        return np.maximum(x, np.float32(0.0))
    if kind is ActivationType.SIGMOID:
        with np.errstate(over="ignore"):
            return (1.0 / (1.0 + np.exp(-x))).astype(np.float32)
    return np.tanh(x).astype(np.float32)


def activation_derivative(activation_type: ActivationType, values) -> np.ndarray:
    """Derivative of the activation, evaluated at the pre-activations ``values``."""
    x = np.asarray(values, dtype=np.float32)
    kind = ActivationType(activation_type)
    if kind is ActivationType.LINEAR:
        return np.ones_like(x)
    if kind is ActivationType.RELU:
        return (x > 0).astype(np.float32)
    if kind is ActivationType.SIGMOID:
        s = apply_activation(ActivationType.SIGMOID, x)
        return (s * (1.0 - s)).astype(np.float32)
    t = np.tanh(x)
    return (1.0 - t * t).astype(np.float32)


def random_uniform(low: float, high: float, rng: np.random.Generator) -> float:
    """Draw one value uniformly from ``[low, high)``."""
    if low == high:
        return float(low)
    return float(rng.uniform(low, high))


class Layer(abc.ABC):
    """A network layer with fixed input and output shapes."""

    def __init__(
        self,
        layer_id: int,
        input_dimensions: Dimensions,
        output_dimensions: Dimensions,
        batch_size: int = 1,
    ) -> None:
        self.layer_id = layer_id
        self.input_dimensions = input_dimensions
        self.output_dimensions = output_dimensions
        self.batch_size = batch_size
        self.max_batch_size = batch_size
        self.deltas: np.ndarray | None = None
        self._allocate_layer_buffers()

    def _allocate_layer_buffers(self) -> None:
        self.outputs = np.zeros(
            self.batch_size * self.total_output_elements(), dtype=np.float32
        )

    def total_output_elements(self) -> int:
        return self.output_dimensions.total_elements()

    def total_input_elements(self) -> int:
        return self.input_dimensions.total_elements()

    def is_trainable(self) -> bool:
        return False

    @abc.abstractmethod
    def layer_type(self) -> LayerType:
        """The kind of this layer."""

    @abc.abstractmethod
    def run_forward(self, inputs) -> np.ndarray:
        """Compute the outputs for a batch of inputs."""

    @abc.abstractmethod
    def compute_deltas(self) -> np.ndarray:
        """Turn output errors into deltas through the activation derivative."""

    @abc.abstractmethod
    def backprop_deltas(self, previous_output_dimensions: Dimensions) -> np.ndarray:
        """Propagate deltas to the previous layer's outputs."""

    @abc.abstractmethod
    def save_layer(self, group) -> None:
        """Write the layer's state into ``group``."""

    @abc.abstractmethod
    def equals(self, other: Layer) -> bool:
        """Whether ``other`` has the same configuration and parameters."""

    @abc.abstractmethod
    def describe(self) -> str:
        """Human-readable summary of the layer."""


class TrainableLayer(Layer):
    """A layer with weights, biases and an activation."""

    def __init__(
        self,
        layer_id: int,
        input_dimensions: Dimensions,
        output_dimensions: Dimensions,
        activation_type: ActivationType = ActivationType.LINEAR,
        batch_size: int = 1,
    ) -> None:
        super().__init__(layer_id, input_dimensions, output_dimensions, batch_size)
        self.activation_type = ActivationType(activation_type)
        self.weights: np.ndarray | None = None
        self.biases: np.ndarray | None = None
        self.weights_gradients: np.ndarray | None = None
        self.biases_gradients: np.ndarray | None = None
        self.pre_activations: np.ndarray | None = None

    def is_trainable(self) -> bool:
        return True

    @abc.abstractmethod
    def weights_size(self) -> int:
        """Number of weight values."""

    @abc.abstractmethod
    def biases_size(self) -> int:
        """Number of bias values."""

    @abc.abstractmethod
    def compute_gradients(self, inputs) -> tuple[np.ndarray, np.ndarray]:
        """Batch-averaged weight and bias gradients."""