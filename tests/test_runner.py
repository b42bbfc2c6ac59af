"""Tests for the training runner."""

from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from wlereport.config.settings import ModelSpec
from wlereport.modeling.cache import ModelCache
from wlereport.modeling.formula import Formula
from wlereport.modeling.methods import Method
from wlereport.modeling.runner import TrainingRunner, train_all
from wlereport.modeling.training import FittedModel, fit


def _specs() -> list[ModelSpec]:
    raw = [
        {"label": "LDA", "options": {"method": "lda", "cv_folds": 3}},
        {"label": "QDA", "options": {"method": "qda", "cv_folds": 3}},
        {"label": "RF", "options": {"method": "rf", "cv_folds": 3, "n_estimators": 5}},
    ]
    return [ModelSpec.model_validate(spec) for spec in raw]


def failing_qda(
    method: Method,
    formula: Formula,
    training_data: pd.DataFrame,
    options: Any,
) -> FittedModel:
    """Trainer that fails for QDA only."""
    if method is Method.QDA:
        msg = "backend exploded"
        raise RuntimeError(msg)
    return fit(method, formula, training_data, options)


class TestTrainingRunner:
    """Tests for TrainingRunner."""

    def test_invalid_workers(self) -> None:
        with pytest.raises(ValueError, match="max_workers"):
            TrainingRunner(max_workers=0)

    def test_pool_scoped_to_context(self) -> None:
        runner = TrainingRunner(max_workers=2)
        assert not runner.parallel
        with runner:
            assert runner.parallel
        assert not runner.parallel

    def test_sequential_runner_has_no_pool(self) -> None:
        with TrainingRunner(max_workers=1) as runner:
            assert not runner.parallel

    @pytest.mark.parametrize("workers", [1, 3])
    def test_failure_isolated(
        self, tmp_path: Path, labeled_data: pd.DataFrame, workers: int
    ) -> None:
        """Test one failing configuration does not abort its siblings."""
        cache = ModelCache(tmp_path / "cache", trainer=failing_qda)
        with TrainingRunner(max_workers=workers) as runner:
            outcomes = runner.run(cache, _specs(), labeled_data, "classe ~ .")

        assert list(outcomes) == ["LDA", "QDA", "RF"]
        assert outcomes["LDA"].ok
        assert outcomes["RF"].ok
        assert not outcomes["QDA"].ok
        assert outcomes["QDA"].error_type == "RuntimeError"
        assert "backend exploded" in (outcomes["QDA"].error or "")
        assert len(cache.entries()) == 2

    def test_parallel_matches_sequential(
        self, tmp_path: Path, labeled_data: pd.DataFrame
    ) -> None:
        sequential = train_all(
            ModelCache(tmp_path / "seq"), _specs(), labeled_data, "classe ~ ."
        )
        with TrainingRunner(max_workers=3) as runner:
            parallel = train_all(
                ModelCache(tmp_path / "par"),
                _specs(),
                labeled_data,
                "classe ~ .",
                runner,
            )

        X = labeled_data.drop(columns=["classe"])
        for label in ("LDA", "QDA", "RF"):
            left = sequential[label].model
            right = parallel[label].model
            assert left is not None and right is not None
            assert left.fingerprint == right.fingerprint
            assert (left.predict(X) == right.predict(X)).all()

    def test_second_run_hits_cache(
        self, tmp_path: Path, labeled_data: pd.DataFrame
    ) -> None:
        cache = ModelCache(tmp_path / "cache")
        train_all(cache, _specs(), labeled_data, "classe ~ .")
        train_all(cache, _specs(), labeled_data, "classe ~ .")
        assert cache.stats.misses == 3
        assert cache.stats.hits == 3
