"""Two-dimensional convolutional layer built on im2col and matrix products."""

from __future__ import annotations

import math
from collections.abc import MutableMapping

import numpy as np

from clnet.conv_geometry import (
    calculate_output_dimensions,
    calculate_padding_values,
    col2im,
    im2col,
    output_dimensions_from_padding,
)
from clnet.conv_geometry import validate_input_dimensions as _validate_input
from clnet.dimensions import (
    Dimensions,
    FilterDimensions,
    PaddingValues,
    StrideDimensions,
)
from clnet.layer import TrainableLayer, activation_derivative, apply_activation
from clnet.types import (
    ActivationType,
    LayerType,
    PaddingType,
    activation_type_from_uint,
)

_EPSILON = 1e-6


def _close(first: np.ndarray | None, second: np.ndarray | None) -> bool:
    if first is None or second is None:
        return first is second
    if first.shape != second.shape:
        return False
    return bool(np.all(np.abs(first - second) <= _EPSILON))


class ConvolutionalLayer(TrainableLayer):
    """A convolution over ``(channels, height, width)`` inputs.

    Weights are stored row-major as ``(output_channels, input_channels *
    filter_height * filter_width)``. Inputs, pre-activations, outputs and
    deltas are flat arrays holding ``batch_size`` consecutive samples, each
    laid out as ``(channels, height, width)``.
    """

    def __init__(
        self,
        layer_id: int,
        input_dimensions: Dimensions,
        filter_dimensions: FilterDimensions,
        stride_dimensions: StrideDimensions,
        padding_type: PaddingType,
        activation_type: ActivationType,
        batch_size: int,
        rng: np.random.Generator,
    ) -> None:
        valid = _validate_input(input_dimensions, filter_dimensions, stride_dimensions)
        output = calculate_output_dimensions(
            valid, filter_dimensions, stride_dimensions, padding_type
        )
        super().__init__(layer_id, valid, output, activation_type, batch_size)
        self.filter_dimensions = filter_dimensions
        self.stride_dimensions = stride_dimensions
        self.padding_values = calculate_padding_values(
            valid, filter_dimensions, stride_dimensions, padding_type
        )
        self._initialize_weights_and_biases(rng)
        self._allocate_convolutional_buffers()

    @classmethod
    def from_group(cls, group, batch_size: int = 1) -> ConvolutionalLayer:
        """Rebuild a layer from the entries written by :meth:`save_layer`."""
        input_dimensions = Dimensions([int(d) for d in group["inputDimensions"]])
        filter_dimensions = FilterDimensions.from_sequence(
            [int(d) for d in group["filterDimensions"]]
        )
        stride_dimensions = StrideDimensions.from_sequence(
            [int(d) for d in group["strideDimensions"]]
        )
        padding_values = PaddingValues.from_sequence(
            [int(d) for d in group["paddingValues"]]
        )
        output = output_dimensions_from_padding(
            input_dimensions, filter_dimensions, stride_dimensions, padding_values
        )

        layer = cls.__new__(cls)
        TrainableLayer.__init__(
            layer,
            int(group["layerId"]),
            input_dimensions,
            output,
            activation_type_from_uint(int(group["activationType"])),
            batch_size,
        )
        layer.filter_dimensions = filter_dimensions
        layer.stride_dimensions = stride_dimensions
        layer.padding_values = padding_values

        weights = np.asarray(group["weights"], dtype=np.float32).reshape(-1)
        biases = np.asarray(group["biases"], dtype=np.float32).reshape(-1)
        if weights.size != layer.weights_size():
            raise ValueError("Stored weights do not match the filter dimensions.")
        if biases.size != layer.biases_size():
            raise ValueError("Stored biases do not match the filter dimensions.")
        layer.weights = weights.copy()
        layer.biases = biases.copy()
        layer._allocate_convolutional_buffers()
        return layer

    def layer_type(self) -> LayerType:
        return LayerType.CONVOLUTIONAL

    def weights_size(self) -> int:
        return self.filter_dimensions.total_elements()

    def biases_size(self) -> int:
        return self.filter_dimensions.output_channels

    @property
    def _input_channels(self) -> int:
        return self.input_dimensions[0]

    @property
    def _output_channels(self) -> int:
        return self.output_dimensions[0]

    @property
    def _output_area(self) -> int:
        return self.output_dimensions[1] * self.output_dimensions[2]

    @property
    def _column_rows(self) -> int:
        return (
            self._input_channels
            * self.filter_dimensions.height
            * self.filter_dimensions.width
        )

    def _initialize_weights_and_biases(self, rng: np.random.Generator) -> None:
        fh, fw = self.filter_dimensions.height, self.filter_dimensions.width
        fan_in = float(self._input_channels * fh * fw)
        fan_out = float(self._output_channels * fh * fw)
        limit = math.sqrt(6.0 / (fan_in + fan_out))
        count = self._output_channels * self._column_rows
        self.weights = rng.uniform(-limit, limit, count).astype(np.float32)
        self.biases = np.zeros(self._output_channels, dtype=np.float32)

    def _allocate_convolutional_buffers(self) -> None:
        size = self.batch_size * self.total_output_elements()
        self.pre_activations = np.zeros(size, dtype=np.float32)
        self.outputs = np.zeros(size, dtype=np.float32)
        self.deltas = np.zeros(size, dtype=np.float32)
        self.weights_gradients = np.zeros(self.weights_size(), dtype=np.float32)
        self.biases_gradients = np.zeros(self.biases_size(), dtype=np.float32)

    def _weight_matrix(self) -> np.ndarray:
        return self.weights.reshape(self._output_channels, self._column_rows)

    def _batch_inputs(self, inputs) -> np.ndarray:
        flat = np.asarray(inputs, dtype=np.float32).reshape(-1)
        needed = self.batch_size * self.total_input_elements()
        if flat.size < needed:
            raise ValueError(
                f"Expected at least {needed} input values, got {flat.size}."
            )
        return flat[:needed]

    def _columns(self, inputs) -> np.ndarray:
        return im2col(
            self._batch_inputs(inputs),
            self.input_dimensions,
            self.filter_dimensions,
            self.stride_dimensions,
            self.padding_values,
            self.output_dimensions,
        )

    def _to_sample_layout(self, matrix: np.ndarray) -> np.ndarray:
        """``(channels, batch * area)`` to flat ``(batch, channels, area)``."""
        shaped = matrix.reshape(self._output_channels, self.batch_size, self._output_area)
        return np.ascontiguousarray(shaped.transpose(1, 0, 2)).reshape(-1)

    def _deltas_matrix(self) -> np.ndarray:
        """Deltas as ``(channels, batch * area)`` for the GEMM formulation."""
        count = self.batch_size * self.total_output_elements()
        shaped = self.deltas[:count].reshape(
            self.batch_size, self._output_channels, self._output_area
        )
        return shaped.transpose(1, 0, 2).reshape(
            self._output_channels, self.batch_size * self._output_area
        )

    def run_forward(self, inputs) -> np.ndarray:
        """Convolve the batch, add per-channel biases and apply the activation."""
        columns = self._columns(inputs)
        product = (self._weight_matrix() @ columns).astype(np.float32)
        pre = self._to_sample_layout(product).reshape(
            self.batch_size, self._output_channels, self._output_area
        )
        pre = (pre + self.biases[None, :, None]).astype(np.float32).reshape(-1)
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
        """Deltas for the previous layer's outputs, folded back through col2im."""
        if previous_output_dimensions.total_elements() != self.total_input_elements():
            raise ValueError(
                "Previous layer output dimensions do not match this layer's inputs."
            )
        columns = (self._weight_matrix().T @ self._deltas_matrix()).astype(np.float32)
        return col2im(
            columns,
            self.input_dimensions,
            self.filter_dimensions,
            self.stride_dimensions,
            self.padding_values,
            self.output_dimensions,
        )

    def compute_gradients(self, inputs) -> tuple[np.ndarray, np.ndarray]:
        """Batch-averaged gradients of the weights and biases."""
        columns = self._columns(inputs)
        deltas = self._deltas_matrix()
        scale = np.float32(self.batch_size)
        weights_gradients = (deltas @ columns.T) / scale
        biases_gradients = deltas.sum(axis=1) / scale
        self.weights_gradients = weights_gradients.astype(np.float32).reshape(-1)
        self.biases_gradients = biases_gradients.astype(np.float32).reshape(-1)
        return self.weights_gradients, self.biases_gradients

    def save_layer(self, group: MutableMapping) -> None:
        """Write the configuration and parameters into ``group``."""
        group["layerId"] = int(self.layer_id)
        group["layerType"] = int(self.layer_type())
        group["activationType"] = int(self.activation_type)
        group["inputDimensions"] = list(self.input_dimensions.dimensions)
        group["filterDimensions"] = list(self.filter_dimensions.dimensions)
        group["strideDimensions"] = list(self.stride_dimensions.dimensions)
        group["paddingValues"] = list(self.padding_values.dimensions)
        group["weights"] = self.weights[: self.weights_size()].copy()
        group["biases"] = self.biases[: self.biases_size()].copy()

    def equals(self, other) -> bool:
        if (
            not isinstance(other, ConvolutionalLayer)
            or other.layer_type() != LayerType.CONVOLUTIONAL
        ):
            return False
        return (
            self.input_dimensions == other.input_dimensions
            and self.output_dimensions == other.output_dimensions
            and self.filter_dimensions == other.filter_dimensions
            and self.stride_dimensions == other.stride_dimensions
            and self.padding_values == other.padding_values
            and self.activation_type == other.activation_type
            and _close(self.weights, other.weights)
            and _close(self.biases, other.biases)
        )

    def describe(self) -> str:
        count = self.batch_size * self.total_output_elements()
        padding = self.padding_values

        def row(label: str, values: np.ndarray) -> str:
            shown = " ".join(f"{v:g}" for v in values)
            return f"{label}: {shown}"

        lines = [
            "----- Convolutional Layer Info -----",
            f"Convolutional Layer ID: {self.layer_id}",
            f"Input Dimensions: {self.input_dimensions}",
            f"Filter Dimensions: {self.filter_dimensions}",
            f"Stride Dimensions: {self.stride_dimensions}",
            "Padding Values (Top, Bottom, Left, Right): "
            f"({padding.top}, {padding.bottom}, {padding.left}, {padding.right})",
            f"Output Dimensions: {self.output_dimensions}",
            f"Activation Type: {int(self.activation_type)}",
            row("Weights", self.weights),
            row("Biases", self.biases),
            row("Pre-Activations", self.pre_activations[:count]),
            row("Outputs", self.outputs[:count]),
            row("Deltas", self.deltas[:count]),
            row("Weight Gradients", self.weights_gradients),
            row("Bias Gradients", self.biases_gradients),
            "-------------------------------------",
        ]
        return "\n".join(lines)