"""
Pandera schemas for the Weight Lifting Exercises dataset.

The dataset has one row per sensor window; the label records how the
exercise was performed (A = correctly, B-E = common mistakes). Only the
label is constrained; sensor columns vary between exports and are handled
by the column filter.
"""

import pandera.pandas as pa

LABEL_VALUES = ["A", "B", "C", "D", "E"]


def label_schema(
    label_column: str,
    label_values: list[str] | None = None,
) -> pa.DataFrameSchema:
    """
    Build the label-domain schema.

    Args:
        label_column: Name of the label column.
        label_values: Allowed label values (default: A-E).

    Returns:
        DataFrameSchema checking only the label column.
    """
    return pa.DataFrameSchema(
        {
            label_column: pa.Column(
                str,
                checks=pa.Check.isin(label_values or LABEL_VALUES),
                nullable=False,
                coerce=True,
                description="Exercise execution class",
            )
        },
        strict=False,
        name="LabeledDatasetSchema",
    )
