"""
Column selection for model input.

Keeps complete numeric sensor columns and the label; drops identifiers,
bookkeeping columns, sparse summary columns and text/categorical fields.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import pandas as pd
from pandas.api.types import is_bool_dtype, is_numeric_dtype

from wlereport.errors import SchemaError
from wlereport.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class ColumnSelection:
    """Record of which columns were kept and why the rest were dropped."""

    kept: list[str] = field(default_factory=list)
    dropped_excluded: list[str] = field(default_factory=list)
    dropped_missing: list[str] = field(default_factory=list)
    dropped_non_numeric: list[str] = field(default_factory=list)

    @property
    def n_dropped(self) -> int:
        """Total number of dropped columns."""
        return (
            len(self.dropped_excluded)
            + len(self.dropped_missing)
            + len(self.dropped_non_numeric)
        )


def select_columns(
    df: pd.DataFrame,
    label_column: str,
    id_column: str | None = None,
    exclude: Iterable[str] = (),
) -> ColumnSelection:
    """
    Decide which columns to keep.

    Args:
        df: Input frame.
        label_column: Label column, always kept.
        id_column: Row identifier column, always dropped.
        exclude: Further columns to drop regardless of content.

    Returns:
        ColumnSelection describing the decision.

    Raises:
        SchemaError: If the label column is missing.
    """
    if label_column not in df.columns:
        msg = f"Label column '{label_column}' not in dataset"
        raise SchemaError(msg)

    excluded = set(exclude)
    if id_column is not None:
        excluded.add(id_column)
    excluded.discard(label_column)

    selection = ColumnSelection()
    for col in df.columns:
        if col == label_column:
            selection.kept.append(col)
        elif col in excluded:
            selection.dropped_excluded.append(col)
        elif df[col].isna().any():
            selection.dropped_missing.append(col)
        elif not is_numeric_dtype(df[col]) or is_bool_dtype(df[col]):
            selection.dropped_non_numeric.append(col)
        else:
            selection.kept.append(col)

    return selection


def filter_columns(
    df: pd.DataFrame,
    label_column: str,
    id_column: str | None = None,
    exclude: Iterable[str] = (),
) -> pd.DataFrame:
    """
    Project a frame onto complete numeric columns plus the label.

    The input frame is not modified.

    Args:
        df: Input frame.
        label_column: Label column, kept regardless of type or content.
        id_column: Row identifier column, dropped regardless of type.
        exclude: Further columns to drop regardless of content.

    Returns:
        Projected copy of the frame.

    Raises:
        SchemaError: If the label column is missing.
    """
    selection = select_columns(df, label_column, id_column, exclude)

    log.info(
        "Filtered columns",
        kept=len(selection.kept),
        dropped_excluded=len(selection.dropped_excluded),
        dropped_missing=len(selection.dropped_missing),
        dropped_non_numeric=len(selection.dropped_non_numeric),
    )
    if selection.dropped_excluded:
        log.debug("Excluded columns", columns=selection.dropped_excluded)

    return df.loc[:, selection.kept].copy()
