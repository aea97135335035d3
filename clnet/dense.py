"""Fully connected layer."""

from __future__ import annotations

import math
from collections.abc import MutableMapping

import numpy as np

from clnet.dimensions import Dimensions
from clnet.layer import (
    TrainableLayer,
    activation_derivative,
    apply_activation,
)
from clnet.types import ActivationType, LayerType, activation_type_from_uint

_EPSILON = 1e-6


def _close(first: np.ndarray | None, second: np.ndarray | None) -> bool:
    if first is None or second is None:
        return first is second
    if first.shape != second.shape:
        return False
    return bool(np.all(np.abs(first - second) <= _EPSILON))


class DenseLayer(TrainableLayer):
    """A layer in which every output is an affine function of every input.

    Weights are stored row-major as ``(outputs, inputs)``; all per-sample
    buffers are flat arrays holding ``batch_size`` consecutive samples.
    """

    def __init__(
        self,
        layer_id: int,
        input_dimensions: Dimensions,
        output_dimensions: Dimensions,
        activation_type: ActivationType,
        batch_size: int,
        rng: np.random.Generator,
    ) -> None:
        super().__init__(
            layer_id,
            input_dimensions,
            Dimensions.validate_dense(output_dimensions),
            activation_type,
            batch_size,
        )
        self._initialize_weights_and_biases(rng)
        self._allocate_dense_buffers()

    @classmethod
    def from_group(cls, group, batch_size: int = 1) -> DenseLayer:
        """Rebuild a layer from the entries written by :meth:`save_layer`."""
        layer = cls.__new__(cls)
        TrainableLayer.__init__(
            layer,
            int(group["layerId"]),
            Dimensions([int(d) for d in group["inputDimensions"]]),
            Dimensions([int(d) for d in group["outputDimensions"]]),
            activation_type_from_uint(int(group["activationType"])),
            batch_size,
        )
        weights = np.asarray(group["weights"], dtype=np.float32).reshape(-1)
        biases = np.asarray(group["biases"], dtype=np.float32).reshape(-1)
        if weights.size != layer.weights_size():
            raise ValueError("Stored weights do not match the layer dimensions.")
        if biases.size != layer.biases_size():
            raise ValueError("Stored biases do not match the layer dimensions.")
        layer.weights = weights.copy()
        layer.biases = biases.copy()
        layer._allocate_dense_buffers()
        return layer

    def layer_type(self) -> LayerType:
        return LayerType.DENSE

    def weights_size(self) -> int:
        return self.total_input_elements() * self.total_output_elements()

    def biases_size(self) -> int:
        return self.total_output_elements()

    def _initialize_weights_and_biases(self, rng: np.random.Generator) -> None:
        limit = math.sqrt(
            6.0 / float(self.total_input_elements() + self.total_output_elements())
        )
        self.weights = rng.uniform(-limit, limit, self.weights_size()).astype(
            np.float32
        )
        self.biases = rng.uniform(-0.5, 0.5, self.biases_size()).astype(np.float32)

    def _allocate_dense_buffers(self) -> None:
        size = self.batch_size * self.total_output_elements()
        self.weights_gradients = np.zeros(self.weights_size(), dtype=np.float32)
        self.biases_gradients = np.zeros(self.biases_size(), dtype=np.float32)
        self.deltas = np.zeros(size, dtype=np.float32)
        self.pre_activations = np.zeros(size, dtype=np.float32)
        self.outputs = np.zeros(size, dtype=np.float32)

    def _weight_matrix(self) -> np.ndarray:
        return self.weights.reshape(
            self.total_output_elements(), self.total_input_elements()
        )

    def _batch_inputs(self, inputs) -> np.ndarray:
        flat = np.asarray(inputs, dtype=np.float32).reshape(-1)
        n_in = self.total_input_elements()
        needed = self.batch_size * n_in
        if flat.size < needed:
            raise ValueError(
                f"Expected at least {needed} input values, got {flat.size}."
            )
        return flat[:needed].reshape(self.batch_size, n_in)

    def _batch_deltas(self) -> np.ndarray:
        n_out = self.total_output_elements()
        return self.deltas[: self.batch_size * n_out].reshape(self.batch_size, n_out)

    def run_forward(self, inputs) -> np.ndarray:
        """Compute ``activation(inputs @ W.T + b)`` for the batch."""
        x = self._batch_inputs(inputs)
        pre = x @ self._weight_matrix().T + self.biases
        pre = pre.astype(np.float32).reshape(-1)
        self.pre_activations = pre
        self.outputs = apply_activation(self.activation_type, pre)
        return self.outputs

    def compute_deltas(self) -> np.ndarray:
        """Scale the stored output errors by the activation derivative."""
        count = self.batch_size * self.total_output_elements()
        derivative = activation_derivative(
            self.activation_type, self.pre_activations[:count]
        )
        self.deltas = (self.deltas[:count] * derivative).astype(np.float32)
        return self.deltas

    def backprop_deltas(self, previous_output_dimensions: Dimensions) -> np.ndarray:
        """Deltas for the previous layer's outputs: ``deltas @ W``."""
        if previous_output_dimensions.total_elements() != self.total_input_elements():
            raise ValueError(
                "Previous layer output dimensions do not match this layer's inputs."
            )
        previous = self._batch_deltas() @ self._weight_matrix()
        return previous.astype(np.float32).reshape(-1)

    def compute_gradients(self, inputs) -> tuple[np.ndarray, np.ndarray]:
        """Batch-averaged gradients of the weights and biases."""
        x = self._batch_inputs(inputs)
        deltas = self._batch_deltas()
        weights_gradients = (deltas.T @ x) / np.float32(self.batch_size)
        biases_gradients = deltas.sum(axis=0) / np.float32(self.batch_size)
        self.weights_gradients = weights_gradients.astype(np.float32).reshape(-1)
        self.biases_gradients = biases_gradients.astype(np.float32).reshape(-1)
        return self.weights_gradients, self.biases_gradients

    def save_layer(self, group: MutableMapping) -> None:
        """Write the configuration and parameters into ``group``."""
        group["layerId"] = int(self.layer_id)
        group["layerType"] = int(self.layer_type())
        group["inputDimensions"] = list(self.input_dimensions.dimensions)
        group["outputDimensions"] = list(self.output_dimensions.dimensions)
        group["activationType"] = int(self.activation_type)
        group["weights"] = self.weights[: self.weights_size()].copy()
        group["biases"] = self.biases[: self.biases_size()].copy()

    def equals(self, other) -> bool:
        if not isinstance(other, DenseLayer) or other.layer_type() != LayerType.DENSE:
            return False
        return (
            self.layer_id == other.layer_id
            and self.input_dimensions == other.input_dimensions
            and self.output_dimensions == other.output_dimensions
            and self.activation_type == other.activation_type
            and self.batch_size == other.batch_size
            and _close(self.weights, other.weights)
            and _close(self.biases, other.biases)
        )

    def describe(self) -> str:
        count = self.batch_size * self.total_output_elements()

        def row(label: str, values: np.ndarray) -> str:
            shown = " ".join(f"{v:g}" for v in values)
            return f"{label}: {shown}"

        lines = [
            "----- Dense Layer Info -----",
            f"Dense Layer ID: {self.layer_id}",
            f"Input Dimensions: {self.input_dimensions}",
            f"Output Dimensions: {self.output_dimensions}",
            f"Activation Type: {int(self.activation_type)}",
            f"Weights Size: {self.weights_size()}",
            f"Biases Size: {self.biases_size()}",
            row("Weights", self.weights),
            row("Biases", self.biases),
            row("Pre-activations", self.pre_activations[:count]),
            row("Outputs", self.outputs[:count]),
            row("Deltas", self.deltas[:count]),
            row("Weight Gradients", self.weights_gradients),
            row("Bias Gradients", self.biases_gradients),
            "----------------------------------------",
        ]
        return "\n".join(lines)