"""Containers for a batch of training samples."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np


def _as_float_array(values) -> np.ndarray:
    return np.asarray(values, dtype=np.float32).reshape(-1)


def _check_size(size: int) -> int:
    if size < 0:
        raise ValueError("Batch size cannot be negative.")
    return size


@dataclass(frozen=True, eq=False)
class Batch:
    """Flattened inputs and targets for ``size`` samples."""

    inputs: np.ndarray = field()
    targets: np.ndarray = field()
    size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", _as_float_array(self.inputs))
        object.__setattr__(self, "targets", _as_float_array(self.targets))
        _check_size(self.size)

    def __len__(self) -> int:
        return self.size


@dataclass(frozen=True, eq=False)
class PolicyBatch:
    """Inputs, chosen actions and rewards for ``size`` samples."""

    inputs: np.ndarray
    actions: np.ndarray
    rewards: np.ndarray
    size: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", _as_float_array(self.inputs))
        object.__setattr__(self, "actions", _as_float_array(self.actions))
        object.__setattr__(self, "rewards", _as_float_array(self.rewards))
        _check_size(self.size)

    def __len__(self) -> int:
        return self.size