"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pytest

from wlereport.config.settings import (
    DataPathsConfig,
    ModelSpec,
    OutputConfig,
    PipelineConfig,
    SplitConfig,
)

CLASSES = ["A", "B", "C", "D", "E"]


def make_wle_frame(n_per_class: int = 40, seed: int = 42) -> pd.DataFrame:
    """
    Build a raw frame shaped like the sensor export.

    Classes are well separated on roll_belt and pitch_belt; the remaining
    columns exercise the column filter (identifier, bookkeeping, text and
    sparse summary columns).
    """
    rng = np.random.default_rng(seed)
    frames = []
    for i, cls in enumerate(CLASSES):
        n = n_per_class
        frames.append(
            pd.DataFrame(
                {
                    "user_name": rng.choice(["carlitos", "pedro", "adelmo"], size=n),
                    "raw_timestamp_part_1": rng.integers(
                        1322489600, 1323084200, size=n
                    ),
                    "new_window": rng.choice(["no", "yes"], size=n, p=[0.9, 0.1]),
                    "num_window": rng.integers(1, 864, size=n),
                    "roll_belt": i * 5.0 + rng.normal(0.0, 1.0, size=n),
                    "pitch_belt": -i * 3.0 + rng.normal(0.0, 1.0, size=n),
                    "yaw_belt": rng.normal(0.0, 1.0, size=n),
                    "total_accel_belt": rng.integers(0, 30, size=n),
                    "classe": cls,
                }
            )
        )

    df = pd.concat(frames, ignore_index=True)
    df = df.sample(frac=1.0, random_state=seed).reset_index(drop=True)
    df.insert(0, "X", np.arange(1, len(df) + 1))

    # Sparse summary column: mostly missing, with division-error markers
    kurtosis = np.full(len(df), "", dtype=object)
    kurtosis[::10] = "#DIV/0!"
    kurtosis[5::10] = "-1.2"
    df["kurtosis_roll_belt"] = kurtosis
    return df


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def raw_frame() -> pd.DataFrame:
    """Raw frame as it would come from the CSV export (before NA handling)."""
    return make_wle_frame()


@pytest.fixture
def labeled_data() -> pd.DataFrame:
    """Numeric predictors plus the label, ready for training."""
    df = make_wle_frame()
    return df[["roll_belt", "pitch_belt", "yaw_belt", "total_accel_belt", "classe"]]


@pytest.fixture
def training_csv(tmp_path: Path, raw_frame: pd.DataFrame) -> Path:
    """Labeled CSV written to a temporary data directory."""
    path = tmp_path / "data" / "pml-training.csv"
    path.parent.mkdir(parents=True, exist_ok=True)
    # The export writes its row-number column with a blank header
    raw_frame.rename(columns={"X": ""}).to_csv(path, index=False)
    return path


@pytest.fixture
def submission_csv(tmp_path: Path) -> Path:
    """Unlabeled CSV with a problem_id column."""
    df = make_wle_frame(n_per_class=2, seed=7).drop(columns=["classe"])
    df["problem_id"] = np.arange(1, len(df) + 1)
    path = tmp_path / "data" / "pml-testing.csv"
    path.parent.mkdir(parents=True, exist_ok=True)
    df.rename(columns={"X": ""}).to_csv(path, index=False)
    return path


def small_model_specs() -> list[dict[str, Any]]:
    """One quick configuration per supported method."""
    return [
        {"label": "LDA", "options": {"method": "lda", "cv_folds": 3}},
        {"label": "QDA", "options": {"method": "qda", "cv_folds": 3}},
        {
            "label": "GBM",
            "options": {"method": "gbm", "cv_folds": 3, "n_estimators": 10},
        },
        {
            "label": "Rules",
            "options": {
                "method": "rule_ensemble",
                "cv_folds": 3,
                "trials": 3,
                "max_depth": 3,
            },
        },
        {
            "label": "RF",
            "options": {"method": "rf", "cv_folds": 3, "n_estimators": 10},
        },
    ]


@pytest.fixture
def model_spec_dicts() -> list[dict[str, Any]]:
    """Quick model configurations as they appear in YAML."""
    return small_model_specs()


@pytest.fixture
def pipeline_config(
    tmp_path: Path,
    training_csv: Path,
    submission_csv: Path,
) -> PipelineConfig:
    """Minimal configuration pointing at the temporary CSV files."""
    return PipelineConfig(
        project="test-wle",
        data=DataPathsConfig(
            data_root=training_csv.parent,
            training=Path(training_csv.name),
            submission=Path(submission_csv.name),
        ),
        split=SplitConfig(train_fraction=0.7, seed=1337),
        models=[ModelSpec.model_validate(spec) for spec in small_model_specs()],
        output=OutputConfig(output_root=tmp_path / "output"),
    )
