"""Tests for evaluation metrics."""

import numpy as np
import pandas as pd
import pytest

from wlereport.errors import ShapeMismatchError
from wlereport.evaluation.metrics import (
    accuracy_interval,
    confusion_stats,
    evaluate,
    select_best,
)
from wlereport.modeling.data import stratified_partition
from wlereport.modeling.training import FittedModel, fit


@pytest.fixture
def split(labeled_data: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    partition = stratified_partition(labeled_data, "classe", 0.7, seed=1337)
    return partition.split(labeled_data)


@pytest.fixture
def lda_model(split: tuple[pd.DataFrame, pd.DataFrame]) -> FittedModel:
    train, _test = split
    return fit("lda", "classe ~ .", train, {"cv_folds": 3})


class TestAccuracyInterval:
    """Tests for the exact binomial interval."""

    def test_half(self) -> None:
        lower, upper = accuracy_interval(50, 100)
        assert lower == pytest.approx(0.3983, abs=1e-3)
        assert upper == pytest.approx(0.6017, abs=1e-3)

    def test_perfect(self) -> None:
        lower, upper = accuracy_interval(60, 60)
        assert upper == 1.0
        assert lower == pytest.approx(0.025 ** (1 / 60), abs=1e-6)

    def test_wider_at_higher_confidence(self) -> None:
        narrow = accuracy_interval(80, 100, confidence=0.9)
        wide = accuracy_interval(80, 100, confidence=0.99)
        assert wide[0] < narrow[0] < narrow[1] < wide[1]

    def test_empty(self) -> None:
        assert accuracy_interval(0, 0) == (0.0, 1.0)


class TestConfusionStats:
    """Tests for confusion_stats."""

    def test_orientation(self) -> None:
        """Test rows are predictions and columns are references."""
        y_true = np.array(["A", "A", "B", "B"])
        y_pred = np.array(["A", "B", "B", "B"])
        stats = confusion_stats(y_true, y_pred)

        assert stats.matrix.loc["B", "A"] == 1
        assert stats.matrix.loc["A", "A"] == 1
        assert stats.matrix.loc["B", "B"] == 2
        assert stats.matrix.loc["A", "B"] == 0
        assert stats.by_class.loc["A", "sensitivity"] == pytest.approx(0.5)
        assert stats.by_class.loc["B", "precision"] == pytest.approx(2 / 3)
        assert stats.no_information_rate == pytest.approx(0.5)

    def test_perfect_kappa(self) -> None:
        labels = np.array(["A", "B", "C", "A"])
        assert confusion_stats(labels, labels).kappa == pytest.approx(1.0)

    def test_explicit_classes(self) -> None:
        stats = confusion_stats(np.array(["A"]), np.array(["A"]), ["A", "B", "C"])
        assert list(stats.matrix.columns) == ["A", "B", "C"]
        assert np.isnan(stats.by_class.loc["B", "sensitivity"])


class TestEvaluate:
    """Tests for evaluate."""

    def test_summary(
        self, lda_model: FittedModel, split: tuple[pd.DataFrame, pd.DataFrame]
    ) -> None:
        _train, test = split
        summary = evaluate(lda_model, test, "classe", label="LDA")

        assert summary.label == "LDA"
        assert summary.method == "lda"
        assert summary.n_test == len(test)
        assert summary.test_accuracy > 0.9
        assert summary.ci_lower <= summary.test_accuracy <= summary.ci_upper
        assert summary.out_of_sample_error == pytest.approx(1 - summary.test_accuracy)
        assert summary.training_accuracy == lda_model.training_accuracy
        assert int(summary.confusion.matrix.to_numpy().sum()) == len(test)
        assert "LDA" in str(summary)
        assert summary.to_dict()["n_test"] == len(test)

    def test_default_label(
        self, lda_model: FittedModel, split: tuple[pd.DataFrame, pd.DataFrame]
    ) -> None:
        summary = evaluate(lda_model, split[1], "classe")
        assert summary.label == "Linear discriminant analysis"

    def test_missing_label_column(
        self, lda_model: FittedModel, split: tuple[pd.DataFrame, pd.DataFrame]
    ) -> None:
        """Test a test set without the label raises ShapeMismatchError."""
        _train, test = split
        with pytest.raises(ShapeMismatchError, match="classe"):
            evaluate(lda_model, test.drop(columns=["classe"]), "classe")

    def test_missing_feature_column(
        self, lda_model: FittedModel, split: tuple[pd.DataFrame, pd.DataFrame]
    ) -> None:
        _train, test = split
        with pytest.raises(ShapeMismatchError):
            evaluate(lda_model, test.drop(columns=["roll_belt"]), "classe")

    def test_empty_test_data(
        self, lda_model: FittedModel, split: tuple[pd.DataFrame, pd.DataFrame]
    ) -> None:
        _train, test = split
        with pytest.raises(ShapeMismatchError, match="no rows"):
            evaluate(lda_model, test.iloc[0:0], "classe")

    def test_select_best(
        self, lda_model: FittedModel, split: tuple[pd.DataFrame, pd.DataFrame]
    ) -> None:
        _train, test = split
        good = evaluate(lda_model, test, "classe", label="good")
        shuffled = test.assign(classe=np.roll(test["classe"].to_numpy(), 7))
        bad = evaluate(lda_model, shuffled, "classe", label="bad")

        assert select_best([bad, good]) is good
        assert select_best([]) is None
