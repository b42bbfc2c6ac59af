"""
Submission files.

Predicts every row of an unlabeled dataset and writes one text file per
row holding only the predicted label.
"""

from pathlib import Path

import pandas as pd

from wlereport.modeling.training import FittedModel, predict
from wlereport.utils.logging import get_logger

log = get_logger(__name__)


def write_submission(
    model: FittedModel,
    data: pd.DataFrame,
    output_dir: Path,
    id_column: str = "problem_id",
) -> list[Path]:
    """
    Write one prediction file per row.

    Files are named ``problem_id_<id>.txt``; without an id column the
    1-based row number is used.

    Args:
        model: Fitted model.
        data: Unlabeled frame with the model's predictor columns.
        output_dir: Directory to write into.
        id_column: Column holding the row identifier.

    Returns:
        Paths written, in row order.

    Raises:
        ShapeMismatchError: If predictor columns are missing.
    """
    predictions = predict(model, data)

    if id_column in data.columns:
        ids = [str(v) for v in data[id_column]]
    else:
        ids = [str(i) for i in range(1, len(data) + 1)]

    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for row_id, prediction in zip(ids, predictions):
        path = output_dir / f"problem_id_{row_id}.txt"
        path.write_text(str(prediction), encoding="utf-8")
        paths.append(path)

    log.info("Wrote submission files", n_files=len(paths), output_dir=str(output_dir))
    return paths
