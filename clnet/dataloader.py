"""Loading tabular data, splitting it into partitions and serving batches."""

from __future__ import annotations

import abc
import logging
import random
import re
from collections.abc import Iterator, Sequence

import numpy as np

from clnet.batch import Batch

logger = logging.getLogger(__name__)

_FLOAT32_MAX = float(np.finfo(np.float32).max)
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)

_TRAIN = "train"
_VALIDATION = "validation"
_TEST = "test"


def _split_cells(line: str) -> list[str]:
    """Split on commas; an empty line has no cells and a trailing comma adds none."""
    if not line:
        return []
    cells = line.split(",")
    if line.endswith(","):
        cells.pop()
    return cells


def _parse_cell(cell: str) -> float:
    """Parse the leading number of ``cell``, falling back to 0.0 with a warning."""
    match = _FLOAT_PREFIX.match(cell)
    if match is None:
        logger.warning("Could not convert %r to float. Defaulting to 0.0.", cell)
        return 0.0
    value = float(match.group(1))
    if value == value and abs(value) != float("inf") and abs(value) > _FLOAT32_MAX:
        logger.warning("Value %r out of float range. Defaulting to 0.0.", cell)
        return 0.0
    return value


class DataLoader(abc.ABC):
    """A source of batches drawn from train, validation and test partitions."""

    def __init__(self, batch_size: int) -> None:
        self.batch_size = batch_size
        self._partitions: dict[str, list[int]] = {
            _TRAIN: [],
            _VALIDATION: [],
            _TEST: [],
        }
        self._active: str | None = None

    def _active_indices(self) -> list[int]:
        if self._active is None:
            raise RuntimeError("No active partition is set.")
        return self._partitions[self._active]

    def active_partition(self) -> list[int]:
        """A copy of the sample indices in the active partition."""
        return list(self._active_indices())

    def __iter__(self) -> Iterator[Batch]:
        if self.batch_size < 1:
            raise ValueError("Batch size must be positive to iterate.")
        end = len(self._active_indices())
        position = 0
        while position != end:
            if position >= self.total_samples():
                raise IndexError("Batch position out of range")
            yield self.get_batch(position, self.batch_size)
            position = min(position + self.batch_size, len(self._active_indices()))

    @abc.abstractmethod
    def get_batch(self, start: int, size: int) -> Batch:
        """The batch of up to ``size`` samples starting at ``start``."""

    @abc.abstractmethod
    def load_data(
        self,
        source: str,
        input_columns: Sequence[str],
        target_columns: Sequence[str],
    ) -> None:
        """Read samples from ``source``."""

    @abc.abstractmethod
    def split_data(self, train_ratio: float, val_ratio: float, seed: int) -> None:
        """Split samples into partitions and activate the training one."""

    @abc.abstractmethod
    def shuffle_current_partition(self) -> None:
        """Reorder the active partition randomly."""

    @abc.abstractmethod
    def total_samples(self) -> int:
        """Number of loaded samples."""

    @abc.abstractmethod
    def input_size(self) -> int:
        """Number of input features per sample."""

    @abc.abstractmethod
    def target_size(self) -> int:
        """Number of target features per sample."""

    @abc.abstractmethod
    def train_indices(self) -> list[int]:
        """Indices of the training partition."""

    @abc.abstractmethod
    def validation_indices(self) -> list[int]:
        """Indices of the validation partition."""

    @abc.abstractmethod
    def test_indices(self) -> list[int]:
        """Indices of the test partition."""

    @abc.abstractmethod
    def activate_train_partition(self) -> None:
        """Make the training partition active."""

    @abc.abstractmethod
    def activate_validation_partition(self) -> None:
        """Make the validation partition active."""

    @abc.abstractmethod
    def activate_test_partition(self) -> None:
        """Make the test partition active."""


class CSVNumericalLoader(DataLoader):
    """Loads a comma-separated file of numbers with a header row."""

    def __init__(self, batch_size: int) -> None:
        super().__init__(batch_size)
        self.file_path: str | None = None
        self.header: list[str] = []
        self._rows: list[list[float]] = []
        self._input_column_indices: list[int] = []
        self._target_column_indices: list[int] = []

    def get_batch(self, start: int, size: int) -> Batch:
        if self._active is None:
            raise RuntimeError(
                "No data partition is active. Call activate_train_partition, "
                "activate_validation_partition, or activate_test_partition "
                "before getting batches."
            )
        indices = self._partitions[self._active]
        if start > len(indices):
            raise IndexError("Batch start lies beyond the active partition.")
        end = min(start + size, len(indices))

        inputs: list[float] = []
        targets: list[float] = []
        for sample_index in indices[start:end]:
            row = self._rows[sample_index]
            for column in self._input_column_indices:
                if column >= len(row):
                    raise RuntimeError(
                        f"Input column index out of bounds for sample {sample_index}"
                    )
                inputs.append(row[column])
            for column in self._target_column_indices:
                if column >= len(row):
                    raise RuntimeError(
                        f"Target column index out of bounds for sample {sample_index}"
                    )
                targets.append(row[column])

        return Batch(
            np.array(inputs, dtype=np.float32),
            np.array(targets, dtype=np.float32),
            end - start,
        )

    def load_data(
        self,
        source: str,
        input_columns: Sequence[str],
        target_columns: Sequence[str],
    ) -> None:
        if not input_columns or not target_columns:
            raise ValueError("Input and target columns must be specified.")

        self.file_path = str(source)
        try:
            handle = open(self.file_path, encoding="utf-8", newline=None)
        except OSError as exc:
            raise OSError(f"Failed to open CSV file: {self.file_path}") from exc

        self._rows = []
        expected = 0
        with handle:
            header_processed = False
            for raw_line in handle:
                line = raw_line.rstrip("\n")
                if not header_processed:
                    header_processed = True
                    self._process_header(line, input_columns, target_columns)
                    expected = self.input_size() + self.target_size()
                    continue
                row = [_parse_cell(cell) for cell in _split_cells(line)]
                if len(row) != expected:
                    logger.warning(
                        "Row size mismatch. Expected %d, got %d. Skipping row.",
                        expected,
                        len(row),
                    )
                    continue
                self._rows.append(row)

        if not self._rows:
            raise RuntimeError(
                f"No data loaded from CSV file: {self.file_path}. "
                "File might be empty or malformed."
            )
        if len(self._rows[0]) < 2:
            raise RuntimeError(
                "CSV data must have at least one input and one target column."
            )

    def _process_header(
        self,
        header_line: str,
        input_columns: Sequence[str],
        target_columns: Sequence[str],
    ) -> None:
        self.header = _split_cells(header_line)
        wanted_inputs = set(input_columns)
        wanted_targets = set(target_columns)
        self._input_column_indices = [
            i for i, name in enumerate(self.header) if name in wanted_inputs
        ]
        self._target_column_indices = [
            i for i, name in enumerate(self.header) if name in wanted_targets
        ]

    def split_data(self, train_ratio: float, val_ratio: float, seed: int) -> None:
        train = np.float32(train_ratio)
        val = np.float32(val_ratio)
        if train < 0 or val < 0 or train + val > np.float32(1.0):
            raise ValueError(
                "Invalid train or validation ratios. They must be non-negative "
                "and sum to less than or equal to 1.0."
            )

        total = self.total_samples()
        order = [int(i) for i in np.random.default_rng(seed).permutation(total)]
        num_train = int(np.float32(total) * train)
        num_val = int(np.float32(total) * val)

        self._partitions[_TRAIN] = order[:num_train]
        self._partitions[_VALIDATION] = order[num_train:num_train + num_val]
        self._partitions[_TEST] = order[num_train + num_val:]
        self.activate_train_partition()

    def shuffle_current_partition(self) -> None:
        if self._active is None:
            raise RuntimeError(
                "No data partition is active to shuffle. Call "
                "activate_train_partition, activate_validation_partition, or "
                "activate_test_partition first."
            )
        random.Random().shuffle(self._partitions[self._active])

    def total_samples(self) -> int:
        return len(self._rows)

    def input_size(self) -> int:
        return len(self._input_column_indices)

    def target_size(self) -> int:
        return len(self._target_column_indices)

    def train_indices(self) -> list[int]:
        return list(self._partitions[_TRAIN])

    def validation_indices(self) -> list[int]:
        return list(self._partitions[_VALIDATION])

    def test_indices(self) -> list[int]:
        return list(self._partitions[_TEST])

    def activate_train_partition(self) -> None:
        self._active = _TRAIN

    def activate_validation_partition(self) -> None:
        self._active = _VALIDATION

    def activate_test_partition(self) -> None:
        self._active = _TEST