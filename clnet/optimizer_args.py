"""Settings from which an optimizer is built."""

from __future__ import annotations

import abc
import dataclasses

from clnet.types import OptimizerType


@dataclasses.dataclass(frozen=True)
class OptimizerArgs(abc.ABC):
    """Learning rate and weight decay shared by every optimizer."""

    learning_rate: float = 0.01
    weight_decay_rate: float = 0.0

    @abc.abstractmethod
    def optimizer_type(self) -> OptimizerType:
        """The optimizer these settings describe."""

    @abc.abstractmethod
    def describe(self) -> str:
        """Human-readable listing of the settings."""

    def clone(self) -> OptimizerArgs:
        """An independent copy of these settings."""
        return dataclasses.replace(self)

    def _common_lines(self) -> list[str]:
        return [
            f"Learning Rate: {self.learning_rate:g}",
            f"Weight Decay Rate: {self.weight_decay_rate:g}",
        ]


@dataclasses.dataclass(frozen=True)
class SGDOptimizerArgs(OptimizerArgs):
    """Settings for plain stochastic gradient descent."""

    def optimizer_type(self) -> OptimizerType:
        return OptimizerType.SGD

    def describe(self) -> str:
        return "\n".join(["SGD Optimizer Arguments:", *self._common_lines()])


@dataclasses.dataclass(frozen=True)
class _MomentArgs(OptimizerArgs):
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8

    _title = ""

    def describe(self) -> str:
        return "\n".join(
            [
                f"{self._title} Optimizer Arguments:",
                *self._common_lines(),
                f"Beta1: {self.beta1:g}",
                f"Beta2: {self.beta2:g}",
                f"Epsilon: {self.epsilon:g}",
            ]
        )


@dataclasses.dataclass(frozen=True)
class AdamOptimizerArgs(_MomentArgs):
    """Settings for Adam."""

    _title = "Adam"

    def optimizer_type(self) -> OptimizerType:
        return OptimizerType.ADAM

    def describe(self) -> str:
        return super().describe()


@dataclasses.dataclass(frozen=True)
class AdamWOptimizerArgs(_MomentArgs):
    """Settings for Adam with decoupled weight decay."""

    _title = "AdamW"

    def optimizer_type(self) -> OptimizerType:
        return OptimizerType.ADAMW

    def describe(self) -> str:
        return super().describe()