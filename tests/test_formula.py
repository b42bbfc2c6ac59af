"""Tests for model formulas."""

import pandas as pd
import pytest

from wlereport.errors import TrainingError
from wlereport.modeling.formula import Formula


class TestFormulaParse:
    """Tests for Formula.parse."""

    def test_all_columns(self) -> None:
        formula = Formula.parse("classe ~ .")
        assert formula.label == "classe"
        assert formula.features is None

    def test_named_predictors(self) -> None:
        formula = Formula.parse("classe ~ roll_belt + pitch_belt")
        assert formula.features == ("roll_belt", "pitch_belt")

    def test_str_round_trip(self) -> None:
        text = "classe ~ roll_belt + pitch_belt"
        assert str(Formula.parse(text)) == text
        assert str(Formula.parse("classe~.")) == "classe ~ ."

    def test_formula_passthrough(self) -> None:
        formula = Formula(label="classe")
        assert Formula.parse(formula) is formula

    @pytest.mark.parametrize(
        "text",
        ["classe", "~ .", "classe ~", "classe ~ a + ", "classe ~ a + classe", "1x ~ ."],
    )
    def test_malformed(self, text: str) -> None:
        """Test malformed formulas raise TrainingError."""
        with pytest.raises(TrainingError, match="Malformed formula"):
            Formula.parse(text)


class TestFeatureColumns:
    """Tests for Formula.feature_columns."""

    @pytest.fixture
    def frame(self) -> pd.DataFrame:
        return pd.DataFrame({"a": [1.0], "b": [2.0], "classe": ["A"]})

    def test_dot_expands(self, frame: pd.DataFrame) -> None:
        assert Formula.parse("classe ~ .").feature_columns(frame) == ["a", "b"]

    def test_named(self, frame: pd.DataFrame) -> None:
        assert Formula.parse("classe ~ b").feature_columns(frame) == ["b"]

    def test_missing_predictor(self, frame: pd.DataFrame) -> None:
        with pytest.raises(TrainingError, match="missing"):
            Formula.parse("classe ~ a + z").feature_columns(frame)

    def test_missing_label(self, frame: pd.DataFrame) -> None:
        with pytest.raises(TrainingError, match="Label column"):
            Formula.parse("y ~ .").feature_columns(frame)
