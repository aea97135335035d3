"""Convolution geometry: padding, output shapes and the im2col/col2im transforms.

Column matrices have one row per ``(channel, filter_row, filter_col)`` triple,
in that order, and one column per ``(sample, output_row, output_col)`` triple,
in that order. Image buffers are flat, holding samples one after another,
each laid out as ``(channels, height, width)``.
"""

from __future__ import annotations

import logging

import numpy as np

from clnet.dimensions import (
    Dimensions,
    FilterDimensions,
    PaddingValues,
    StrideDimensions,
)
from clnet.types import PaddingType

logger = logging.getLogger(__name__)


def calculate_padding_values(
    input_dimensions: Dimensions,
    filter_dimensions: FilterDimensions,
    stride_dimensions: StrideDimensions,
    padding_type: PaddingType,
) -> PaddingValues:
    """Padding on each side for the given padding policy."""
    try:
        kind = PaddingType(padding_type)
    except ValueError:
        logger.warning("Unsupported padding type. Setting padding to zero.")
        return PaddingValues(0, 0, 0, 0)

    if kind is PaddingType.VALID:
        return PaddingValues(0, 0, 0, 0)

    in_h, in_w = input_dimensions[1], input_dimensions[2]
    stride_h, stride_w = stride_dimensions.height, stride_dimensions.width
    out_h = -(-in_h // stride_h)
    out_w = -(-in_w // stride_w)
    total_h = max((out_h - 1) * stride_h + filter_dimensions.height - in_h, 0)
    total_w = max((out_w - 1) * stride_w + filter_dimensions.width - in_w, 0)
    top = total_h // 2
    left = total_w // 2
    return PaddingValues(top, total_h - top, left, total_w - left)


def output_dimensions_from_padding(
    input_dimensions: Dimensions,
    filter_dimensions: FilterDimensions,
    stride_dimensions: StrideDimensions,
    padding_values: PaddingValues,
) -> Dimensions:
    """Output shape ``(channels, height, width)`` for explicit padding."""
    in_h, in_w = input_dimensions[1], input_dimensions[2]
    out_h = (
        in_h - filter_dimensions.height + padding_values.top + padding_values.bottom
    ) // stride_dimensions.height + 1
    out_w = (
        in_w - filter_dimensions.width + padding_values.left + padding_values.right
    ) // stride_dimensions.width + 1
    return Dimensions((filter_dimensions.output_channels, out_h, out_w))


def calculate_output_dimensions(
    input_dimensions: Dimensions,
    filter_dimensions: FilterDimensions,
    stride_dimensions: StrideDimensions,
    padding_type: PaddingType,
) -> Dimensions:
    """Output shape ``(channels, height, width)`` for a padding policy."""
    padding = calculate_padding_values(
        input_dimensions, filter_dimensions, stride_dimensions, padding_type
    )
    return output_dimensions_from_padding(
        input_dimensions, filter_dimensions, stride_dimensions, padding
    )


def validate_input_dimensions(
    input_dimensions: Dimensions,
    filter_dimensions: FilterDimensions,
    stride_dimensions: StrideDimensions,
) -> Dimensions:
    """Check the input shape against the filter; a 1-D shape becomes ``(c, 1, 1)``."""
    valid = Dimensions(input_dimensions.dimensions)
    if len(valid) == 1:
        valid = Dimensions((valid[0], 1, 1))

    if filter_dimensions.input_channels != valid[0]:
        raise ValueError(
            "Input channels of filter dimensions must match the channels of "
            "input dimensions."
        )
    if len(valid) != 3:
        raise ValueError(
            "Input dimensions must be 1D, 2D, or 3D (channels, height, width)."
        )
    if valid[1] < filter_dimensions.height or valid[2] < filter_dimensions.width:
        raise ValueError("Filter dimensions must not exceed input dimensions.")
    if stride_dimensions.height <= 0 or stride_dimensions.width <= 0:
        raise ValueError("Stride dimensions must be strictly positive.")
    return valid


def _chw(dimensions: Dimensions) -> tuple[int, int, int]:
    if len(dimensions) == 1:
        return dimensions[0], 1, 1
    if len(dimensions) != 3:
        raise ValueError("Input dimensions must be (channels, height, width).")
    return dimensions[0], dimensions[1], dimensions[2]


def _batch_count(values: np.ndarray, per_sample: int) -> int:
    if values.size == 0 or values.size % per_sample:
        raise ValueError(
            f"Expected a positive multiple of {per_sample} values, got {values.size}."
        )
    return values.size // per_sample


def _window(start: int, stride: int, count: int) -> slice:
    return slice(start, start + stride * (count - 1) + 1, stride)


def im2col(
    inputs,
    input_dimensions: Dimensions,
    filter_dimensions: FilterDimensions,
    stride_dimensions: StrideDimensions,
    padding_values: PaddingValues,
    output_dimensions: Dimensions,
) -> np.ndarray:
    """Unfold a batch of images into a column matrix for a convolution GEMM."""
    channels, height, width = _chw(input_dimensions)
    flat = np.asarray(inputs, dtype=np.float32).reshape(-1)
    batch = _batch_count(flat, channels * height * width)
    fh, fw = filter_dimensions.height, filter_dimensions.width
    sh, sw = stride_dimensions.height, stride_dimensions.width
    out_h, out_w = output_dimensions[1], output_dimensions[2]

    images = flat.reshape(batch, channels, height, width)
    padded = np.pad(
        images,
        (
            (0, 0),
            (0, 0),
            (padding_values.top, padding_values.bottom),
            (padding_values.left, padding_values.right),
        ),
    )
    columns = np.zeros((channels, fh, fw, batch, out_h, out_w), dtype=np.float32)
    for ky in range(fh):
        for kx in range(fw):
            patch = padded[:, :, _window(ky, sh, out_h), _window(kx, sw, out_w)]
            columns[:, ky, kx] = patch.transpose(1, 0, 2, 3)
    return columns.reshape(channels * fh * fw, batch * out_h * out_w)


def col2im(
    columns,
    input_dimensions: Dimensions,
    filter_dimensions: FilterDimensions,
    stride_dimensions: StrideDimensions,
    padding_values: PaddingValues,
    output_dimensions: Dimensions,
) -> np.ndarray:
    """Fold a column matrix back into flat images, summing overlapping entries."""
    channels, height, width = _chw(input_dimensions)
    fh, fw = filter_dimensions.height, filter_dimensions.width
    sh, sw = stride_dimensions.height, stride_dimensions.width
    out_h, out_w = output_dimensions[1], output_dimensions[2]

    flat = np.asarray(columns, dtype=np.float32).reshape(-1)
    batch = _batch_count(flat, channels * fh * fw * out_h * out_w)
    cols = flat.reshape(channels, fh, fw, batch, out_h, out_w)

    padded = np.zeros(
        (
            batch,
            channels,
            height + padding_values.top + padding_values.bottom,
            width + padding_values.left + padding_values.right,
        ),
        dtype=np.float32,
    )
    for ky in range(fh):
        for kx in range(fw):
            padded[:, :, _window(ky, sh, out_h), _window(kx, sw, out_w)] += cols[
                :, ky, kx
            ].transpose(1, 0, 2, 3)
    top, left = padding_values.top, padding_values.left
    images = padded[:, :, top:top + height, left:left + width]
    return np.ascontiguousarray(images).reshape(-1)