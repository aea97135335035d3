"""Neural-network layers, CSV data loading and training settings built on NumPy."""

__version__ = "0.1.0"

__all__ = [
    "types",
    "dimensions",
    "batch",
    "layer",
    "dataloader",
    "dense",
    "conv_geometry",
    "optimizer_args",
    "convolutional",
    "layer_args",
    "network_args",
]