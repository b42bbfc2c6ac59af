"""
Report pipeline orchestration.

Load -> filter columns -> partition -> resolve models through the cache
-> evaluate -> render report -> optional submission files.
"""

from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd
from rich.console import Console

from wlereport.config.settings import PipelineConfig
from wlereport.errors import ConfigurationError
from wlereport.evaluation.metrics import EvaluationSummary, evaluate, select_best
from wlereport.evaluation.report import FailedConfiguration, ReportData, render_report
from wlereport.evaluation.submission import write_submission
from wlereport.ingestion.dataset import load_dataset
from wlereport.modeling.cache import ModelCache
from wlereport.modeling.data import Partition, class_proportions, stratified_partition
from wlereport.modeling.formula import Formula
from wlereport.modeling.runner import TrainingOutcome, TrainingRunner
from wlereport.modeling.training import FittedModel
from wlereport.preprocessing.columns import filter_columns
from wlereport.utils.hashing import hash_file_content
from wlereport.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class PipelineResult:
    """Result of a pipeline run."""

    report_path: Path
    partition: Partition
    feature_names: list[str]
    outcomes: dict[str, TrainingOutcome]
    summaries: list[EvaluationSummary]
    failures: list[FailedConfiguration]
    best: EvaluationSummary | None = None
    submission_paths: list[Path] = field(default_factory=list)

    @property
    def models(self) -> dict[str, FittedModel]:
        """Fitted models keyed by label."""
        return {
            label: outcome.model
            for label, outcome in self.outcomes.items()
            if outcome.model is not None
        }


def prepare_data(config: PipelineConfig) -> tuple[pd.DataFrame, pd.DataFrame, Path]:
    """
    Load and column-filter the labeled dataset.

    Returns:
        Tuple of (raw frame, filtered frame, dataset path).
    """
    columns = config.columns
    path = config.data.resolve("training")
    raw = load_dataset(
        path,
        columns.label,
        label_values=columns.label_values,
        na_values=columns.na_values,
    )
    filtered = filter_columns(
        raw,
        columns.label,
        id_column=columns.id_column,
        exclude=columns.exclude,
    )
    return raw, filtered, path


def run_pipeline(
    config: PipelineConfig,
    console: Console | None = None,
    *,
    max_workers: int | None = None,
    report_path: Path | None = None,
    submission: bool = True,
) -> PipelineResult:
    """
    Run the full report pipeline.

    Args:
        config: Pipeline configuration.
        console: Optional console for printing tables.
        max_workers: Override for concurrently trained configurations.
        report_path: Override for the HTML report path.
        submission: Whether to write submission files when configured.

    Returns:
        PipelineResult.

    Raises:
        FileNotFoundError: If the dataset is missing.
        SchemaError: If the dataset lacks or violates the label column.
        InsufficientDataError: If the dataset cannot be stratified.
        ConfigurationError: If the formula does not match the label column.
    """
    formula = Formula.parse(config.formula)
    if formula.label != config.columns.label:
        msg = (
            f"Formula label '{formula.label}' does not match "
            f"label column '{config.columns.label}'"
        )
        raise ConfigurationError(msg)

    raw, filtered, dataset_path = prepare_data(config)

    partition = stratified_partition(
        filtered,
        config.columns.label,
        train_fraction=config.split.train_fraction,
        seed=config.split.seed,
    )
    train_df, test_df = partition.split(filtered)

    cache = ModelCache(config.cache_dir)
    workers = max_workers or config.training.max_workers
    with TrainingRunner(max_workers=workers) as runner:
        outcomes = runner.run(cache, config.models, train_df, formula)

    summaries: list[EvaluationSummary] = []
    failures: list[FailedConfiguration] = []
    for spec in config.models:
        outcome = outcomes[spec.label]
        if outcome.model is None:
            failures.append(
                FailedConfiguration(
                    label=spec.label,
                    method=spec.method,
                    stage="training",
                    error_type=outcome.error_type or "Error",
                    error=outcome.error or "",
                )
            )
            continue
        try:
            summaries.append(
                evaluate(
                    outcome.model,
                    test_df,
                    config.columns.label,
                    label=spec.label,
                    confidence=config.training.confidence_level,
                )
            )
        except Exception as e:
            log.error("Evaluation failed", model=spec.label, error=str(e))
            failures.append(
                FailedConfiguration(
                    label=spec.label,
                    method=spec.method,
                    stage="evaluation",
                    error_type=type(e).__name__,
                    error=str(e),
                )
            )

    feature_names = [c for c in filtered.columns if c != config.columns.label]
    report_data = ReportData(
        project=config.project,
        dataset_path=str(dataset_path),
        dataset_hash=hash_file_content(dataset_path),
        formula=str(formula),
        n_rows=len(raw),
        n_raw_columns=len(raw.columns),
        feature_names=feature_names,
        n_train=partition.n_train,
        n_test=partition.n_test,
        class_proportions=class_proportions(filtered[config.columns.label]).to_dict(),
        summaries=summaries,
        failures=failures,
        cache_hits=cache.stats.hits,
        cache_misses=cache.stats.misses,
    )
    written = render_report(report_data, report_path or config.report_path, console)

    best = select_best(summaries)
    submission_paths: list[Path] = []
    if submission and best is not None and config.data.submission is not None:
        submission_paths = predict_submission(config, outcomes[best.label].model)

    if failures:
        log.warning(
            "Some model configurations failed",
            failed=[f.label for f in failures],
        )

    return PipelineResult(
        report_path=written,
        partition=partition,
        feature_names=feature_names,
        outcomes=outcomes,
        summaries=summaries,
        failures=failures,
        best=best,
        submission_paths=submission_paths,
    )


def predict_submission(
    config: PipelineConfig,
    model: FittedModel | None,
    output_dir: Path | None = None,
) -> list[Path]:
    """
    Predict the unlabeled submission dataset with a fitted model.

    Raises:
        ValueError: If no submission dataset is configured or no model given.
    """
    if model is None:
        msg = "No fitted model to predict the submission dataset"
        raise ValueError(msg)

    data = load_dataset(
        config.data.resolve("submission"),
        na_values=config.columns.na_values,
    )
    return write_submission(
        model,
        data,
        output_dir or config.submission_dir,
        id_column=config.columns.submission_id,
    )
