"""Layer settings from which the layers of a network are built."""

from __future__ import annotations

import abc

import numpy as np

from clnet.convolutional import ConvolutionalLayer
from clnet.dense import DenseLayer
from clnet.dimensions import Dimensions, FilterDimensions, StrideDimensions
from clnet.layer import Layer
from clnet.types import ActivationType, LayerType, PaddingType


class LayerArgs(abc.ABC):
    """Settings shared by every layer: the activation applied to its outputs."""

    def __init__(self, activation_type: ActivationType = ActivationType.LINEAR) -> None:
        self.activation_type = ActivationType(activation_type)

    @abc.abstractmethod
    def create_layer(
        self,
        layer_id: int,
        input_dimensions: Dimensions,
        batch_size: int,
        rng: np.random.Generator,
    ) -> Layer:
        """Build the layer these settings describe."""

    @abc.abstractmethod
    def layer_type(self) -> LayerType:
        """The kind of layer these settings describe."""


class DenseLayerArgs(LayerArgs):
    """Settings for a fully connected layer."""

    def __init__(
        self,
        output_dimensions: Dimensions,
        activation_type: ActivationType = ActivationType.LINEAR,
    ) -> None:
        super().__init__(activation_type)
        self.output_dimensions = output_dimensions

    def create_layer(
        self,
        layer_id: int,
        input_dimensions: Dimensions,
        batch_size: int,
        rng: np.random.Generator,
    ) -> DenseLayer:
        return DenseLayer(
            layer_id,
            input_dimensions,
            self.output_dimensions,
            self.activation_type,
            batch_size,
            rng,
        )

    def layer_type(self) -> LayerType:
        return LayerType.DENSE

    def __repr__(self) -> str:
        return (
            f"DenseLayerArgs({self.output_dimensions!r}, "
            f"{self.activation_type.name})"
        )


class ConvolutionalLayerArgs(LayerArgs):
    """Settings for a convolutional layer."""

    def __init__(
        self,
        filter_dimensions: FilterDimensions,
        stride_dimensions: StrideDimensions,
        padding_type: PaddingType,
        activation_type: ActivationType = ActivationType.LINEAR,
    ) -> None:
        super().__init__(activation_type)
        self.filter_dimensions = filter_dimensions
        self.stride_dimensions = stride_dimensions
        self.padding_type = PaddingType(padding_type)

    def create_layer(
        self,
        layer_id: int,
        input_dimensions: Dimensions,
        batch_size: int,
        rng: np.random.Generator,
    ) -> ConvolutionalLayer:
        if input_dimensions[0] != self.filter_dimensions.input_channels:
            raise ValueError(
                "Input dimensions' channels do not match filter's input channels."
            )
        return ConvolutionalLayer(
            layer_id,
            input_dimensions,
            self.filter_dimensions,
            self.stride_dimensions,
            self.padding_type,
            self.activation_type,
            batch_size,
            rng,
        )

    def layer_type(self) -> LayerType:
        return LayerType.CONVOLUTIONAL

    def __repr__(self) -> str:
        return (
            f"ConvolutionalLayerArgs({self.filter_dimensions!r}, "
            f"{self.stride_dimensions!r}, {self.padding_type.name}, "
            f"{self.activation_type.name})"
        )