"""Shape descriptions: generic dimensions, filters, strides and padding."""

from __future__ import annotations

import math
import operator
from collections.abc import Iterator, Sequence


class Dimensions:
    """An immutable list of strictly positive extents."""

    __slots__ = ("_dims",)

    def __init__(self, dimensions: Sequence[int] = ()) -> None:
        dims = tuple(operator.index(d) for d in dimensions)
        self._validate(dims)
        self._dims = dims

    @classmethod
    def _validate(cls, dims: tuple[int, ...]) -> None:
        if any(d <= 0 for d in dims):
            raise ValueError("Dimensions cannot be zero or negative.")

    @property
    def dimensions(self) -> tuple[int, ...]:
        return self._dims

    def total_elements(self) -> int:
        """Product of all extents, or 0 when there are none."""
        if not self._dims:
            return 0
        return math.prod(self._dims)

    @staticmethod
    def validate_dense(dimensions: Dimensions) -> Dimensions:
        """Return ``dimensions`` if it is one-dimensional, else raise."""
        if len(dimensions.dimensions) != 1:
            raise ValueError(
                "Dense layer requires single-dimensional output dimensions."
            )
        return dimensions

    def __len__(self) -> int:
        return len(self._dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self._dims)

    def __getitem__(self, index: int) -> int:
        return self._dims[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dimensions):
            return NotImplemented
        return self._dims == other._dims

    def __hash__(self) -> int:
        return hash(self._dims)

    def __str__(self) -> str:
        if not self._dims:
            return ""
        return "[" + ", ".join(str(d) for d in self._dims) + "]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._dims)!r})"


class FilterDimensions(Dimensions):
    """Convolution filter shape: height, width, input and output channels."""

    __slots__ = ()

    def __init__(
        self,
        height: int = 1,
        width: int = 1,
        input_channels: int = 1,
        output_channels: int = 1,
    ) -> None:
        super().__init__((height, width, input_channels, output_channels))

    @classmethod
    def from_sequence(cls, dimensions: Sequence[int]) -> FilterDimensions:
        dims = tuple(dimensions)
        if len(dims) != 4:
            raise ValueError("FilterDimensions requires 4-dimensional vector.")
        return cls(*dims)

    @property
    def height(self) -> int:
        return self._dims[0]

    @property
    def width(self) -> int:
        return self._dims[1]

    @property
    def input_channels(self) -> int:
        return self._dims[2]

    @property
    def output_channels(self) -> int:
        return self._dims[3]


class StrideDimensions(Dimensions):
    """Convolution stride: vertical and horizontal step."""

    __slots__ = ()

    def __init__(self, height: int = 1, width: int = 1) -> None:
        super().__init__((height, width))

    @classmethod
    def from_sequence(cls, dimensions: Sequence[int]) -> StrideDimensions:
        dims = tuple(dimensions)
        if len(dims) != 2:
            raise ValueError("StrideDimensions requires 2-dimensional vector.")
        return cls(*dims)

    @property
    def height(self) -> int:
        return self._dims[0]

    @property
    def width(self) -> int:
        return self._dims[1]


class PaddingValues(Dimensions):
    """Zero padding on each side: top, bottom, left, right."""

    __slots__ = ()

    def __init__(
        self, top: int = 1, bottom: int = 1, left: int = 1, right: int = 1
    ) -> None:
        super().__init__((top, bottom, left, right))

    @classmethod
    def _validate(cls, dims: tuple[int, ...]) -> None:
        if any(d < 0 for d in dims):
            raise ValueError("Padding Values cannot be negative.")

    @classmethod
    def from_sequence(cls, dimensions: Sequence[int]) -> PaddingValues:
        dims = tuple(dimensions)
        if len(dims) != 4:
            raise ValueError("Padding Values require a 4-dimensional vector.")
        return cls(*dims)

    @property
    def top(self) -> int:
        return self._dims[0]

    @property
    def bottom(self) -> int:
        return self._dims[1]

    @property
    def left(self) -> int:
        return self._dims[2]

    @property
    def right(self) -> int:
        return self._dims[3]