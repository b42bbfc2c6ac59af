"""
Typed configuration models using Pydantic.

All configuration is defined here with explicit typing and validation.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wlereport.modeling.methods import MethodOptions
from wlereport.schemas.dataset import LABEL_VALUES

# Bookkeeping columns of the sensor exports; they identify the subject and
# recording time rather than the movement
DEFAULT_EXCLUDED_COLUMNS = [
    "user_name",
    "raw_timestamp_part_1",
    "raw_timestamp_part_2",
    "cvtd_timestamp",
    "new_window",
    "num_window",
]


class DataPathsConfig(BaseModel):
    """Data file paths configuration.

    Paths are relative to data_root. Use resolve() to get full paths.
    """

    model_config = ConfigDict(frozen=True)

    data_root: Path = Field(
        default=Path("./data"), description="Root directory for all data files"
    )
    training: Path = Field(description="Labeled training CSV")
    submission: Path | None = Field(
        default=None, description="Unlabeled CSV to predict for submission"
    )

    def resolve(self, path_attr: str) -> Path:
        """Resolve a relative path against data_root."""
        rel_path = getattr(self, path_attr)
        if rel_path is None:
            msg = f"Path '{path_attr}' is not configured"
            raise ValueError(msg)
        return self.data_root / rel_path


class ColumnsConfig(BaseModel):
    """Dataset column roles."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(default="classe", description="Label column")
    label_values: list[str] = Field(default_factory=lambda: list(LABEL_VALUES))
    id_column: str | None = Field(default="X", description="Row identifier column")
    exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_COLUMNS),
        description="Columns dropped regardless of content",
    )
    na_values: list[str] = Field(default_factory=lambda: ["NA", "", "#DIV/0!"])
    submission_id: str = Field(
        default="problem_id", description="Row identifier of the submission dataset"
    )

    @field_validator("label_values")
    @classmethod
    def validate_label_values(cls, v: list[str]) -> list[str]:
        """Ensure at least two distinct classes."""
        if len(set(v)) < 2:
            msg = f"label_values needs at least two distinct values, got: {v}"
            raise ValueError(msg)
        return v


class SplitConfig(BaseModel):
    """Train/test partitioning configuration."""

    model_config = ConfigDict(frozen=True)

    train_fraction: float = Field(default=0.7, gt=0.0, lt=1.0)
    seed: int = Field(default=1337)


class TrainingConfig(BaseModel):
    """Training run configuration."""

    model_config = ConfigDict(frozen=True)

    formula: str | None = Field(
        default=None, description="Model formula (default: '<label> ~ .')"
    )
    max_workers: int = Field(
        default=1, ge=1, le=64, description="Configurations trained concurrently"
    )
    confidence_level: float = Field(default=0.95, gt=0.0, lt=1.0)


class ModelSpec(BaseModel):
    """One model configuration: a display label plus typed method options."""

    model_config = ConfigDict(frozen=True)

    label: str = Field(description="Display label in the report")
    options: MethodOptions

    @property
    def method(self) -> str:
        """Method identifier."""
        return self.options.method


class OutputConfig(BaseModel):
    """Output paths configuration.

    Structure: ./output/{project}/cache, ./output/{project}/report.html, etc.
    """

    model_config = ConfigDict(frozen=True)

    output_root: Path = Field(
        default=Path("./output"), description="Root directory for all outputs"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_output: bool = Field(default=False)


class PipelineConfig(BaseModel):
    """Complete pipeline configuration.

    The project name drives the output directory structure:
    ./output/{project}/
    """

    model_config = ConfigDict(frozen=True)

    project: str = Field(description="Project identifier (e.g., 'wle-2013')")

    data: DataPathsConfig
    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    split: SplitConfig = Field(default_factory=SplitConfig)
    training: TrainingConfig = Field(default_factory=TrainingConfig)
    models: list[ModelSpec] = Field(min_length=1)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("models")
    @classmethod
    def validate_unique_labels(cls, v: list[ModelSpec]) -> list[ModelSpec]:
        """Ensure model labels are unique."""
        labels = [spec.label for spec in v]
        duplicates = sorted({label for label in labels if labels.count(label) > 1})
        if duplicates:
            msg = f"Duplicate model labels: {duplicates}"
            raise ValueError(msg)
        return v

    @property
    def formula(self) -> str:
        """Model formula, defaulting to the label against every kept column."""
        return self.training.formula or f"{self.columns.label} ~ ."

    # Output path helpers
    @property
    def project_dir(self) -> Path:
        """Path to the project's output directory."""
        return self.output.output_root / self.project

    @property
    def cache_dir(self) -> Path:
        """Path to the model artifact cache."""
        return self.project_dir / "cache"

    @property
    def report_path(self) -> Path:
        """Path to the HTML report."""
        return self.project_dir / "report.html"

    @property
    def submission_dir(self) -> Path:
        """Path to submission prediction files."""
        return self.project_dir / "submission"
