# clnet

`clnet` is a set of neural-network building blocks computed with NumPy on
the CPU. It provides:

- `clnet.types`: the enumerations `ActivationType`, `LayerType`,
  `LossFunctionType`, `OptimizerType` and `PaddingType`, the
  `*_from_uint` functions that turn stored integers back into them (raising
  `ValueError` for unknown values), and `apply_loss_function` for mean
  squared error and binary cross entropy on a single prediction;
- `clnet.dimensions`: validated, immutable shapes — `Dimensions`,
  `FilterDimensions` (height, width, input channels, output channels),
  `StrideDimensions` and `PaddingValues` (top, bottom, left, right);
- `clnet.batch`: `Batch` (inputs, targets, size) and `PolicyBatch`
  (inputs, actions, rewards, size), holding flat `float32` arrays;
- `clnet.layer`: the abstract `Layer` and `TrainableLayer`, plus
  `apply_activation`, `activation_derivative` and `random_uniform`;
- `clnet.dense.DenseLayer`: a fully connected layer;
- `clnet.convolutional.ConvolutionalLayer`: a 2-D convolution computed with
  im2col and matrix products, with the geometry helpers in
  `clnet.conv_geometry` (`calculate_padding_values`,
  `calculate_output_dimensions`, `output_dimensions_from_padding`,
  `validate_input_dimensions`, `im2col`, `col2im`);
- `clnet.dataloader.CSVNumericalLoader`: reads a numeric CSV file, splits
  it into train, validation and test partitions and serves batches;
- `clnet.optimizer_args`, `clnet.layer_args`, `clnet.network_args`:
  settings objects that describe optimizers (SGD, Adam, AdamW), layers and
  whole networks.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Loading CSV data

```python
from clnet.dataloader import CSVNumericalLoader

loader = CSVNumericalLoader(batch_size=32)
loader.load_data("data.csv", ["x1", "x2"], ["y"])
loader.split_data(0.8, 0.1, seed=42)   # activates the training partition

for batch in loader:
    ...  # batch.inputs, batch.targets, batch.size

loader.activate_validation_partition()
loader.shuffle_current_partition()
```

The first line of the file is the header; the columns named in the input and
target lists are picked out of it. Rows whose number of values does not
match the number of selected columns are skipped with a logged warning, and
cells that cannot be read as numbers become `0.0`. `split_data` shuffles the
sample order with the given seed before cutting it into partitions, and the
last batch of a partition may be shorter than the batch size.

## Building layers

Layers draw their initial weights from a `numpy.random.Generator`.

```python
import numpy as np
from clnet.dimensions import Dimensions, FilterDimensions, StrideDimensions
from clnet.types import ActivationType, PaddingType
from clnet.dense import DenseLayer
from clnet.convolutional import ConvolutionalLayer

rng = np.random.default_rng(0)

dense = DenseLayer(0, Dimensions([4]), Dimensions([3]),
                   ActivationType.RELU, 8, rng)
outputs = dense.run_forward(np.zeros(8 * 4, dtype=np.float32))

conv = ConvolutionalLayer(1, Dimensions([1, 28, 28]),
                          FilterDimensions(3, 3, 1, 8),
                          StrideDimensions(1, 1),
                          PaddingType.SAME, ActivationType.RELU, 8, rng)
```

All per-sample buffers are flat arrays holding `batch_size` samples one
after another. A backward step is done by hand: store the output errors in
`layer.deltas`, call `compute_deltas()` to apply the activation derivative,
`backprop_deltas(previous_output_dimensions)` to get the previous layer's
deltas, and `compute_gradients(inputs)` for the batch-averaged weight and
bias gradients.

Layers can be summarised with `describe()`, compared with `equals()` (weights
and biases within 1e-6), and written to and read back from any mutable
mapping with `save_layer(group)` and `from_group(group, batch_size)`.

Layer settings can build layers as well:

```python
from clnet.layer_args import DenseLayerArgs

args = DenseLayerArgs(Dimensions([10]), ActivationType.SIGMOID)
layer = args.create_layer(0, Dimensions([4]), 8, rng)
```

## Optimizer and network settings

```python
from clnet.optimizer_args import AdamOptimizerArgs
from clnet.network_args import NetworkArgs

adam = AdamOptimizerArgs(learning_rate=0.001)
print(adam.describe())

network = NetworkArgs(Dimensions([4]), [args], adam, batch_size=8)
```

## What the package does not do

- There is no network object that chains layers together, and no training
  loop: layers are driven one call at a time.
- The optimizer classes hold settings only; no update rule (SGD, Adam or
  AdamW) is applied to parameters.
- Layers save into an in-memory mapping; nothing is written to or read from
  model files on disk.
- There is no command-line tool.