"""
Model training functionality.

Fits one supported method on a training frame and records the metadata
the report needs: elapsed time and the best resampled accuracy.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import numpy as np
import pandas as pd
from pydantic import BaseModel
from sklearn.base import BaseEstimator
from sklearn.model_selection import GridSearchCV, StratifiedKFold, cross_val_score

from wlereport.errors import ShapeMismatchError, TrainingError
from wlereport.modeling.formula import Formula
from wlereport.modeling.methods import (
    Method,
    build_estimator,
    build_options,
    configuration_payload,
    param_grid,
)
from wlereport.utils.hashing import hash_config
from wlereport.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class FittedModel:
    """
    Container for a trained model with metadata.

    Attributes:
        method: Training method.
        estimator: Fitted scikit-learn pipeline.
        formula: Formula the model was trained with.
        feature_names: Predictor columns, in training order.
        classes: Class labels known to the model.
        training_time_s: Wall-clock fitting time including resampling.
        training_accuracy: Best mean cross-validated accuracy across the
            tuning grid (a single point when no grid is configured).
        best_params: Best grid parameters, if tuned.
        options: Canonical configuration the model was trained with.
        fingerprint: Configuration fingerprint.
        fitted_at: ISO timestamp of the fit.
    """

    method: Method
    estimator: BaseEstimator
    formula: Formula
    feature_names: tuple[str, ...]
    classes: tuple[str, ...]
    training_time_s: float
    training_accuracy: float
    best_params: dict[str, Any] | None = None
    options: dict[str, Any] = field(default_factory=dict)
    fingerprint: str = ""
    fitted_at: str = ""

    @property
    def label_column(self) -> str:
        """Label column the model predicts."""
        return self.formula.label

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        """Predict labels for every row of a frame."""
        return predict(self, df)


def fit(
    method: "str | Method",
    formula: "str | Formula",
    training_data: pd.DataFrame,
    options: Any = None,
) -> FittedModel:
    """
    Fit a classification model.

    Args:
        method: Method identifier (see ``Method``).
        formula: Model formula, e.g. ``"classe ~ ."``.
        training_data: Training frame containing label and predictors.
        options: Option mapping or typed options for the method.

    Returns:
        Fitted model with training metadata.

    Raises:
        UnknownMethodError: If the method is not supported.
        ConfigurationError: If the options are invalid for the method.
        TrainingError: If the formula is malformed or the backend fails.
    """
    typed = build_options(method, options)
    method = Method.parse(typed.method)
    formula = Formula.parse(formula)
    feature_names = formula.feature_columns(training_data)

    X = training_data[feature_names]
    y = training_data[formula.label].astype(str)

    log.info(
        "Training model",
        method=method.value,
        formula=str(formula),
        n_samples=len(X),
        n_features=len(feature_names),
    )

    training_start = time.perf_counter()
    try:
        estimator, training_accuracy, best_params = _fit_with_resampling(typed, X, y)
    except Exception as e:
        msg = f"Training failed for method '{method.value}': {e}"
        raise TrainingError(msg) from e
    training_time_s = time.perf_counter() - training_start

    log.info(
        "Training complete",
        method=method.value,
        training_accuracy=f"{training_accuracy:.4f}",
        training_time_s=f"{training_time_s:.2f}",
    )

    return FittedModel(
        method=method,
        estimator=estimator,
        formula=formula,
        feature_names=tuple(feature_names),
        classes=tuple(str(c) for c in estimator.classes_),
        training_time_s=training_time_s,
        training_accuracy=training_accuracy,
        best_params=best_params,
        options=configuration_payload(typed),
        fingerprint=hash_config(configuration_payload(typed)),
        fitted_at=datetime.now(timezone.utc).isoformat(),
    )


def _fit_with_resampling(
    options: BaseModel,
    X: pd.DataFrame,
    y: pd.Series,
) -> tuple[BaseEstimator, float, dict[str, Any] | None]:
    """Fit the estimator, estimating accuracy with stratified K-fold CV."""
    estimator = build_estimator(options)
    cv = StratifiedKFold(
        n_splits=options.cv_folds,  # type: ignore[attr-defined]
        shuffle=True,
        random_state=options.random_state,  # type: ignore[attr-defined]
    )

    grid = param_grid(options)
    if grid:
        gs = GridSearchCV(
            estimator,
            param_grid=grid,
            cv=cv,
            scoring="accuracy",
            refit=True,
        )
        gs.fit(X, y)
        log.info("Hyperparameter tuning complete", best_params=gs.best_params_)
        return gs.best_estimator_, float(gs.best_score_), dict(gs.best_params_)

    scores = cross_val_score(estimator, X, y, cv=cv, scoring="accuracy")
    estimator.fit(X, y)
    return estimator, float(np.mean(scores)), None


def predict(model: FittedModel, df: pd.DataFrame) -> np.ndarray:
    """
    Predict labels with a fitted model.

    Raises:
        ShapeMismatchError: If predictor columns are missing or hold values
            the estimator cannot handle (missing or non-numeric).
    """
    missing = [c for c in model.feature_names if c not in df.columns]
    if missing:
        msg = f"Input lacks predictor columns required by the model: {missing}"
        raise ShapeMismatchError(msg)

    try:
        predicted = model.estimator.predict(df[list(model.feature_names)])
    except ValueError as e:
        msg = f"Cannot predict with '{model.method.value}' model: {e}"
        raise ShapeMismatchError(msg) from e
    return np.asarray(predicted)
