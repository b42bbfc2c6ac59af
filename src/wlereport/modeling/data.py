"""
Training data partitioning.

Splits a labeled frame into stratified training and test partitions
that preserve the label proportions of the full dataset.
"""

import math
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from wlereport.errors import InsufficientDataError, SchemaError
from wlereport.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Partition:
    """
    Disjoint training and test row labels.

    Attributes:
        train_index: Index labels of the training rows.
        test_index: Index labels of the test rows.
    """

    train_index: pd.Index
    test_index: pd.Index

    @property
    def n_train(self) -> int:
        """Number of training rows."""
        return len(self.train_index)

    @property
    def n_test(self) -> int:
        """Number of test rows."""
        return len(self.test_index)

    @property
    def train_fraction(self) -> float:
        """Realised training fraction."""
        total = self.n_train + self.n_test
        return self.n_train / total if total else 0.0

    def split(self, df: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
        """Return (training, test) frames for this partition."""
        return df.loc[self.train_index], df.loc[self.test_index]


def min_rows_per_class(train_fraction: float) -> int:
    """Smallest class size that leaves at least one row on each side."""
    # Round away float noise: 1 - 0.8 is 0.19999999999999996
    return math.ceil(round(1.0 / min(train_fraction, 1.0 - train_fraction), 9))


def class_proportions(labels: pd.Series) -> pd.Series:
    """Share of each label value, sorted by label."""
    return labels.value_counts(normalize=True).sort_index()


def stratified_partition(
    df: pd.DataFrame,
    label_column: str,
    train_fraction: float = 0.7,
    seed: int = 1337,
) -> Partition:
    """
    Split rows into stratified training and test partitions.

    Args:
        df: Labeled frame. Its index must be unique.
        label_column: Column to stratify on.
        train_fraction: Target share of rows in the training partition.
        seed: Random seed; the same seed and input give the same split.

    Returns:
        Partition with disjoint index sets covering every row.

    Raises:
        SchemaError: If the label column is missing.
        InsufficientDataError: If the fraction is invalid or a class has
            too few rows to appear in both partitions.
    """
    if label_column not in df.columns:
        msg = f"Label column '{label_column}' not in dataset"
        raise SchemaError(msg)
    if not 0.0 < train_fraction < 1.0:
        msg = f"Training fraction must be in (0, 1), got {train_fraction}"
        raise InsufficientDataError(msg)
    if not df.index.is_unique:
        msg = "Dataset index must be unique to partition rows"
        raise SchemaError(msg)

    labels = df[label_column]
    if labels.isna().any():
        msg = f"Label column '{label_column}' contains missing values"
        raise InsufficientDataError(msg)

    counts = labels.value_counts()
    required = min_rows_per_class(train_fraction)
    too_small = counts[counts < required]
    if not too_small.empty:
        msg = (
            f"Cannot stratify at fraction {train_fraction}: classes "
            f"{too_small.to_dict()} have fewer than {required} rows"
        )
        raise InsufficientDataError(msg)

    try:
        train_pos, test_pos = train_test_split(
            np.arange(len(df)),
            train_size=train_fraction,
            random_state=seed,
            shuffle=True,
            stratify=labels,
        )
    except ValueError as e:
        raise InsufficientDataError(str(e)) from e

    partition = Partition(
        train_index=df.index.take(np.sort(train_pos)),
        test_index=df.index.take(np.sort(test_pos)),
    )

    log.info(
        "Partitioned dataset",
        n_train=partition.n_train,
        n_test=partition.n_test,
        train_fraction=f"{partition.train_fraction:.3f}",
        n_classes=len(counts),
    )
    return partition
