"""
Dataset loading.

Reads the sensor CSV exports into DataFrames, normalising the several
spellings of "missing" the exports use.
"""

from pathlib import Path

import pandas as pd
from pandera import errors as pandera_errors

from wlereport.errors import SchemaError
from wlereport.schemas.dataset import LABEL_VALUES, label_schema
from wlereport.utils.logging import get_logger

log = get_logger(__name__)

# Missing-value markers found in the exports (division errors included)
DEFAULT_NA_VALUES = ["NA", "", "#DIV/0!"]

# Name given to a row-number column whose header cell is blank
INDEX_COLUMN = "X"


def load_dataset(
    path: Path,
    label_column: str | None = None,
    *,
    label_values: list[str] | None = None,
    na_values: list[str] | None = None,
) -> pd.DataFrame:
    """
    Load a dataset from CSV.

    Args:
        path: CSV file with a header row.
        label_column: Label column to validate. None loads an unlabeled
            dataset without validation.
        label_values: Allowed label values (default: A-E).
        na_values: Strings treated as missing.

    Returns:
        DataFrame with a fresh RangeIndex. A leading column with a blank
        header (the row numbers R writes) is named INDEX_COLUMN.

    Raises:
        FileNotFoundError: If the file does not exist.
        SchemaError: If the label column is missing or holds values outside
            the allowed domain.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Dataset file not found: {path}"
        raise FileNotFoundError(msg)

    log.info("Loading dataset", path=str(path))
    df = pd.read_csv(
        path,
        na_values=na_values if na_values is not None else DEFAULT_NA_VALUES,
        keep_default_na=False,
        low_memory=False,
    )
    df = _name_index_column(df).reset_index(drop=True)
    log.info("Loaded dataset", rows=len(df), columns=len(df.columns))

    if label_column is not None:
        df = validate_labels(df, label_column, label_values or LABEL_VALUES)

    return df


def validate_labels(
    df: pd.DataFrame,
    label_column: str,
    label_values: list[str],
) -> pd.DataFrame:
    """
    Validate the label column against its domain.

    Raises:
        SchemaError: If the column is missing or holds unexpected values.
    """
    if label_column not in df.columns:
        msg = f"Label column '{label_column}' not in dataset"
        raise SchemaError(msg)

    try:
        validated = label_schema(label_column, label_values).validate(df, lazy=True)
    except (pandera_errors.SchemaError, pandera_errors.SchemaErrors) as e:
        bad = sorted(set(df[label_column].astype(str)) - set(label_values))
        msg = f"Label column '{label_column}' has values outside {label_values}: {bad}"
        raise SchemaError(msg) from e

    counts = validated[label_column].value_counts().sort_index().to_dict()
    log.info("Validated labels", label=label_column, counts=counts)
    return validated


def _name_index_column(df: pd.DataFrame) -> pd.DataFrame:
    """Name a leading row-number column with a blank header as INDEX_COLUMN."""
    first = df.columns[0] if len(df.columns) else None
    if first != "Unnamed: 0":
        return df
    if INDEX_COLUMN in df.columns:
        log.warning(
            "Blank leading header left unnamed",
            column=first,
            reason=f"'{INDEX_COLUMN}' already present",
        )
        return df
    return df.rename(columns={first: INDEX_COLUMN})
