"""Tests for configuration system."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from wlereport.config import (
    ColumnsConfig,
    DataPathsConfig,
    ModelSpec,
    PipelineConfig,
    SplitConfig,
    load_config,
)
from wlereport.config.loader import _deep_merge, _interpolate_env_vars
from wlereport.modeling.methods import LdaOptions, RandomForestOptions


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestColumnsConfig:
    """Tests for ColumnsConfig."""

    def test_defaults(self) -> None:
        """Test default column roles match the sensor export."""
        config = ColumnsConfig()
        assert config.label == "classe"
        assert config.id_column == "X"
        assert config.label_values == ["A", "B", "C", "D", "E"]
        assert "user_name" in config.exclude
        assert "#DIV/0!" in config.na_values

    def test_single_label_value_rejected(self) -> None:
        """Test that fewer than two classes is invalid."""
        with pytest.raises(ValueError, match="at least two distinct"):
            ColumnsConfig(label_values=["A", "A"])


class TestSplitConfig:
    """Tests for SplitConfig."""

    @pytest.mark.parametrize("fraction", [0.0, 1.0, 1.5])
    def test_invalid_fraction(self, fraction: float) -> None:
        """Test that the fraction must lie strictly between 0 and 1."""
        with pytest.raises(ValueError):
            SplitConfig(train_fraction=fraction)


class TestModelSpec:
    """Tests for ModelSpec option variants."""

    def test_discriminated_options(self) -> None:
        """Test that the method tag selects the options variant."""
        spec = ModelSpec.model_validate(
            {"label": "Forest", "options": {"method": "rf", "n_estimators": 50}}
        )
        assert isinstance(spec.options, RandomForestOptions)
        assert spec.options.n_estimators == 50
        assert spec.method == "rf"

    def test_unknown_method_rejected(self) -> None:
        """Test that an unsupported method fails validation."""
        with pytest.raises(ValidationError):
            ModelSpec.model_validate({"label": "X", "options": {"method": "xyz"}})

    def test_foreign_option_rejected(self) -> None:
        """Test that options of another method are rejected."""
        with pytest.raises(ValidationError):
            ModelSpec.model_validate(
                {"label": "LDA", "options": {"method": "lda", "n_estimators": 10}}
            )


class TestPipelineConfig:
    """Tests for PipelineConfig."""

    def _config(self, **overrides: object) -> PipelineConfig:
        values: dict[str, object] = {
            "project": "wle-test",
            "data": DataPathsConfig(training=Path("train.csv")),
            "models": [{"label": "LDA", "options": {"method": "lda"}}],
        }
        values.update(overrides)
        return PipelineConfig.model_validate(values)

    def test_default_formula(self) -> None:
        """Test formula defaults to the label against every column."""
        config = self._config()
        assert config.formula == "classe ~ ."

    def test_output_paths(self) -> None:
        """Test project-scoped output paths."""
        config = self._config()
        assert config.project_dir == Path("./output/wle-test")
        assert config.cache_dir == Path("./output/wle-test/cache")
        assert config.report_path == Path("./output/wle-test/report.html")
        assert config.submission_dir == Path("./output/wle-test/submission")

    def test_duplicate_labels_rejected(self) -> None:
        """Test that model labels must be unique."""
        with pytest.raises(ValueError, match="Duplicate model labels"):
            self._config(
                models=[
                    {"label": "M", "options": {"method": "lda"}},
                    {"label": "M", "options": {"method": "qda"}},
                ]
            )

    def test_empty_models_rejected(self) -> None:
        """Test that at least one model is required."""
        with pytest.raises(ValueError):
            self._config(models=[])

    def test_resolve_unset_submission(self) -> None:
        """Test resolving an unconfigured path raises."""
        config = self._config()
        with pytest.raises(ValueError, match="not configured"):
            config.data.resolve("submission")


class TestEnvInterpolation:
    """Tests for ${VAR:default} interpolation."""

    def test_default_used(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("WLE_TEST_ROOT", raising=False)
        assert _interpolate_env_vars("${WLE_TEST_ROOT:./data}/x") == "./data/x"

    def test_env_overrides_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WLE_TEST_ROOT", "/srv/wle")
        assert _interpolate_env_vars("${WLE_TEST_ROOT:./data}/x") == "/srv/wle/x"

    def test_deep_merge(self) -> None:
        """Test nested override keeps sibling keys."""
        merged = _deep_merge(
            {"split": {"seed": 1, "train_fraction": 0.7}, "project": "a"},
            {"split": {"seed": 2}},
        )
        assert merged == {"split": {"seed": 2, "train_fraction": 0.7}, "project": "a"}


class TestLoadConfig:
    """Tests for load_config."""

    def test_minimal_config(self, tmp_path: Path) -> None:
        """Test loading a config with only the required keys."""
        path = _write(
            tmp_path / "wle.yaml",
            """
project: wle-test
data:
  training: train.csv
models:
  - label: LDA
    options:
      method: lda
      shrinkage: 0.1
""",
        )
        config = load_config(path)
        assert config.project == "wle-test"
        assert config.data.training == Path("train.csv")
        assert isinstance(config.models[0].options, LdaOptions)
        assert config.models[0].options.shrinkage == 0.1

    def test_base_merge_and_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test base.yaml is merged and env vars are interpolated."""
        monkeypatch.setenv("WLE_TEST_DATA", "/data/wle")
        _write(
            tmp_path / "base.yaml",
            """
data:
  root: ${WLE_TEST_DATA:./data}
split:
  seed: 99
  train_fraction: 0.6
training:
  max_workers: 3
""",
        )
        path = _write(
            tmp_path / "wle.yaml",
            """
project: wle-test
data:
  training: train.csv
split:
  seed: 7
models:
  - label: RF
    options:
      method: rf
""",
        )
        config = load_config(path)
        assert config.data.data_root == Path("/data/wle")
        assert config.split.seed == 7
        assert config.split.train_fraction == 0.6
        assert config.training.max_workers == 3

    def test_missing_project(self, tmp_path: Path) -> None:
        """Test that the project name is required."""
        path = _write(
            tmp_path / "wle.yaml",
            "data:\n  training: train.csv\n"
            "models:\n  - label: LDA\n    options:\n      method: lda\n",
        )
        with pytest.raises(ValueError, match="project"):
            load_config(path)

    def test_missing_models(self, tmp_path: Path) -> None:
        """Test that at least one model entry is required."""
        path = _write(
            tmp_path / "wle.yaml",
            "project: p\ndata:\n  training: train.csv\n",
        )
        with pytest.raises(ValueError, match="models"):
            load_config(path)

    def test_shipped_config_loads(self, project_root: Path) -> None:
        """Test the example project config validates."""
        config = load_config(project_root / "configs" / "wle-2013.yaml")
        assert [spec.method for spec in config.models] == [
            "lda",
            "qda",
            "gbm",
            "rule_ensemble",
            "rf",
        ]
        assert config.columns.label == "classe"
