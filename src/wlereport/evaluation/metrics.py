"""
Evaluation metrics for classification models.

Accuracy with an exact (Clopper-Pearson) binomial confidence interval,
plus confusion-matrix statistics per class.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.stats import binomtest
from sklearn.metrics import cohen_kappa_score, confusion_matrix

from wlereport.errors import ShapeMismatchError
from wlereport.modeling.training import FittedModel, predict
from wlereport.utils.logging import get_logger

log = get_logger(__name__)


def accuracy_interval(
    n_correct: int,
    n_total: int,
    confidence: float = 0.95,
) -> tuple[float, float]:
    """
    Exact binomial confidence interval for an accuracy.

    Args:
        n_correct: Number of correct predictions.
        n_total: Number of predictions.
        confidence: Confidence level.

    Returns:
        (lower, upper) bounds.
    """
    if n_total == 0:
        return 0.0, 1.0
    ci = binomtest(n_correct, n_total).proportion_ci(
        confidence_level=confidence, method="exact"
    )
    return float(ci.low), float(ci.high)


@dataclass(frozen=True)
class ConfusionStats:
    """
    Confusion matrix with derived statistics.

    Attributes:
        matrix: Counts with predicted labels as rows and reference labels
            as columns.
        kappa: Cohen's kappa.
        no_information_rate: Share of the largest reference class.
        by_class: Per-class sensitivity, specificity, precision and
            balanced accuracy, indexed by class.
    """

    matrix: pd.DataFrame
    kappa: float
    no_information_rate: float
    by_class: pd.DataFrame


def confusion_stats(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    classes: list[str] | None = None,
) -> ConfusionStats:
    """
    Compute confusion-matrix statistics.

    Args:
        y_true: Reference labels.
        y_pred: Predicted labels.
        classes: Class order (default: sorted union of observed labels).

    Returns:
        ConfusionStats.
    """
    y_true = np.asarray(y_true).astype(str)
    y_pred = np.asarray(y_pred).astype(str)
    if classes is None:
        classes = sorted(set(y_true) | set(y_pred))

    # sklearn puts reference on rows; transpose for predicted x reference
    counts = confusion_matrix(y_true, y_pred, labels=classes).T
    matrix = pd.DataFrame(
        counts,
        index=pd.Index(classes, name="Prediction"),
        columns=pd.Index(classes, name="Reference"),
    )

    total = counts.sum()
    rows = []
    for i, cls in enumerate(classes):
        tp = counts[i, i]
        fp = counts[i, :].sum() - tp
        fn = counts[:, i].sum() - tp
        tn = total - tp - fp - fn
        sensitivity = tp / (tp + fn) if tp + fn else float("nan")
        specificity = tn / (tn + fp) if tn + fp else float("nan")
        precision = tp / (tp + fp) if tp + fp else float("nan")
        rows.append(
            {
                "class": cls,
                "sensitivity": float(sensitivity),
                "specificity": float(specificity),
                "precision": float(precision),
                "balanced_accuracy": float((sensitivity + specificity) / 2),
                "prevalence": float(counts[:, i].sum() / total) if total else 0.0,
            }
        )

    by_class = pd.DataFrame(rows).set_index("class")
    nir = float(by_class["prevalence"].max()) if total else 0.0
    kappa = float(cohen_kappa_score(y_true, y_pred, labels=classes)) if total else 0.0

    return ConfusionStats(
        matrix=matrix,
        kappa=kappa,
        no_information_rate=nir,
        by_class=by_class,
    )


@dataclass(frozen=True)
class EvaluationSummary:
    """
    Held-out evaluation of one fitted model.

    Attributes:
        label: Display label of the model configuration.
        method: Method identifier.
        training_time_s: Fitting time recorded on the model.
        training_accuracy: Best resampled accuracy recorded on the model.
        test_accuracy: Accuracy on the held-out rows.
        ci_lower: Lower bound of the accuracy confidence interval.
        ci_upper: Upper bound of the accuracy confidence interval.
        confidence: Confidence level of the interval.
        n_test: Number of held-out rows.
        confusion: Confusion-matrix statistics.
    """

    label: str
    method: str
    training_time_s: float
    training_accuracy: float
    test_accuracy: float
    ci_lower: float
    ci_upper: float
    confidence: float
    n_test: int
    confusion: ConfusionStats

    @property
    def out_of_sample_error(self) -> float:
        """Expected out-of-sample error rate (1 - test accuracy)."""
        return 1.0 - self.test_accuracy

    def to_dict(self) -> dict[str, float | str | int]:
        """Convert to dictionary (without the confusion matrix)."""
        return {
            "label": self.label,
            "method": self.method,
            "training_time_s": self.training_time_s,
            "training_accuracy": self.training_accuracy,
            "test_accuracy": self.test_accuracy,
            "ci_lower": self.ci_lower,
            "ci_upper": self.ci_upper,
            "n_test": self.n_test,
        }

    def __str__(self) -> str:
        """String representation."""
        return (
            f"{self.label}: acc={self.test_accuracy:.4f} "
            f"[{self.ci_lower:.4f}, {self.ci_upper:.4f}], "
            f"train acc={self.training_accuracy:.4f}, "
            f"time={self.training_time_s:.1f}s"
        )


def evaluate(
    model: FittedModel,
    test_data: pd.DataFrame,
    label_column: str,
    label: str | None = None,
    confidence: float = 0.95,
) -> EvaluationSummary:
    """
    Evaluate a fitted model on held-out data.

    Args:
        model: Fitted model.
        test_data: Held-out frame with label and predictor columns.
        label_column: Label column.
        label: Display label (default: method title).
        confidence: Confidence level of the accuracy interval.

    Returns:
        EvaluationSummary.

    Raises:
        ShapeMismatchError: If the label or predictor columns are missing,
            or the frame is empty.
    """
    if label_column not in test_data.columns:
        msg = f"Test data lacks label column '{label_column}'"
        raise ShapeMismatchError(msg)
    if test_data.empty:
        msg = "Test data has no rows"
        raise ShapeMismatchError(msg)

    y_pred = predict(model, test_data).astype(str)
    y_true = test_data[label_column].astype(str).to_numpy()

    n_correct = int(np.sum(y_pred == y_true))
    n_test = len(y_true)
    test_accuracy = n_correct / n_test
    ci_lower, ci_upper = accuracy_interval(n_correct, n_test, confidence)

    classes = sorted(set(model.classes) | set(y_true) | set(y_pred))
    summary = EvaluationSummary(
        label=label or model.method.title,
        method=model.method.value,
        training_time_s=model.training_time_s,
        training_accuracy=model.training_accuracy,
        test_accuracy=test_accuracy,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        confidence=confidence,
        n_test=n_test,
        confusion=confusion_stats(y_true, y_pred, classes),
    )

    log.info(
        "Evaluated model",
        label=summary.label,
        test_accuracy=f"{test_accuracy:.4f}",
        ci=f"[{ci_lower:.4f}, {ci_upper:.4f}]",
    )
    return summary


def select_best(summaries: list[EvaluationSummary]) -> EvaluationSummary | None:
    """Pick the summary with the highest test accuracy (first on ties)."""
    if not summaries:
        return None
    return max(summaries, key=lambda s: s.test_accuracy)
