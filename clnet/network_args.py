"""Complete description of a network before it is built."""

from __future__ import annotations

from dataclasses import dataclass, field

from clnet.dimensions import Dimensions
from clnet.layer_args import LayerArgs
from clnet.optimizer_args import OptimizerArgs
from clnet.types import LossFunctionType


def _default_input_dimensions() -> Dimensions:
    return Dimensions((1,))


@dataclass
class NetworkArgs:
    """Input shape, layer settings, optimizer settings, batch size and loss."""

    initial_input_dimensions: Dimensions = field(
        default_factory=_default_input_dimensions
    )
    layers_arguments: list[LayerArgs] = field(default_factory=list)
    optimizer_arguments: OptimizerArgs | None = None
    batch_size: int = 1
    loss_function_type: LossFunctionType = LossFunctionType.MEAN_SQUARED_ERROR

    def __post_init__(self) -> None:
        self.layers_arguments = list(self.layers_arguments)
        self.loss_function_type = LossFunctionType(self.loss_function_type)