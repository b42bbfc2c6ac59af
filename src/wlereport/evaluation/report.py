"""
Report generation.

Renders a self-contained HTML report with the model summary table, the
failed configurations, and the confusion matrix of the best model. The
same tables are printed to the console with rich.
"""

import base64
import html
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from pathlib import Path

import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from rich.console import Console
from rich.table import Table

from wlereport.evaluation.metrics import EvaluationSummary, select_best
from wlereport.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class FailedConfiguration:
    """A model configuration that produced no evaluation."""

    label: str
    method: str
    stage: str  # "training" or "evaluation"
    error_type: str
    error: str


@dataclass
class ReportData:
    """Data for generating the report."""

    project: str
    dataset_path: str
    dataset_hash: str
    formula: str
    n_rows: int
    n_raw_columns: int
    feature_names: list[str]
    n_train: int
    n_test: int
    class_proportions: dict[str, float]
    summaries: list[EvaluationSummary]
    failures: list[FailedConfiguration] = field(default_factory=list)
    cache_hits: int = 0
    cache_misses: int = 0

    @property
    def best(self) -> EvaluationSummary | None:
        """Best model by test accuracy."""
        return select_best(self.summaries)


def summary_frame(summaries: list[EvaluationSummary]) -> pd.DataFrame:
    """One row per evaluated model."""
    rows = [
        {
            "Model": s.label,
            "Method": s.method,
            "Train Time (s)": s.training_time_s,
            "Train Accuracy": s.training_accuracy,
            "Test Accuracy": s.test_accuracy,
            "CI Lower": s.ci_lower,
            "CI Upper": s.ci_upper,
        }
        for s in summaries
    ]
    return pd.DataFrame(
        rows,
        columns=[
            "Model",
            "Method",
            "Train Time (s)",
            "Train Accuracy",
            "Test Accuracy",
            "CI Lower",
            "CI Upper",
        ],
    )


def generate_summary_table(
    summaries: list[EvaluationSummary],
    failures: list[FailedConfiguration],
    console: Console | None = None,
) -> tuple[pd.DataFrame, str]:
    """
    Generate the model summary table.

    Failed configurations are listed as rows marked FAILED in the console
    table; the HTML report lists them in a dedicated section.

    Returns both a DataFrame and HTML string.
    """
    df = summary_frame(summaries)

    if console is not None:
        table = Table(title="Model Summary")
        table.add_column("Model", style="cyan")
        table.add_column("Train (s)", style="dim")
        table.add_column("Train Acc", style="green")
        table.add_column("Test Acc", style="green")
        table.add_column("CI Lower", style="yellow")
        table.add_column("CI Upper", style="yellow")

        for s in summaries:
            table.add_row(
                s.label,
                f"{s.training_time_s:.1f}",
                f"{s.training_accuracy:.4f}",
                f"{s.test_accuracy:.4f}",
                f"{s.ci_lower:.4f}",
                f"{s.ci_upper:.4f}",
            )
        for f in failures:
            table.add_row(f.label, "[red]FAILED[/red]", "-", "-", "-", "-")

        console.print(table)

    html_table = df.to_html(
        index=False,
        float_format=lambda x: f"{x:.4f}",
        classes="summary-table",
    )
    return df, html_table


def generate_confusion_table(
    summary: EvaluationSummary,
    console: Console | None = None,
) -> tuple[str, str]:
    """
    Generate the confusion matrix and per-class statistics tables.

    Returns:
        Tuple of (matrix HTML, per-class HTML).
    """
    matrix = summary.confusion.matrix
    by_class = summary.confusion.by_class

    if console is not None:
        table = Table(title=f"Confusion Matrix: {summary.label}")
        table.add_column("Prediction \\ Reference", style="cyan")
        for cls in matrix.columns:
            table.add_column(str(cls), justify="right")
        for cls, row in matrix.iterrows():
            table.add_row(str(cls), *(str(int(v)) for v in row))
        console.print(table)

    matrix_html = matrix.to_html(classes="confusion-table")
    by_class_html = by_class.rename(
        columns={
            "sensitivity": "Sensitivity",
            "specificity": "Specificity",
            "precision": "Pos Pred Value",
            "balanced_accuracy": "Balanced Accuracy",
            "prevalence": "Prevalence",
        }
    ).to_html(float_format=lambda x: f"{x:.4f}", classes="class-table")
    return matrix_html, by_class_html


def generate_failures_html(failures: list[FailedConfiguration]) -> str:
    """HTML list of failed configurations."""
    if not failures:
        return "<p>All configured models were trained and evaluated.</p>"

    items = "\n".join(
        f"            <li><strong>{html.escape(f.label)}</strong> "
        f"({html.escape(f.method)}) failed during {html.escape(f.stage)}: "
        f"<code>{html.escape(f.error_type)}: {html.escape(f.error)}</code></li>"
        for f in failures
    )
    return f"""<ul class="failures">
{items}
        </ul>"""


def _fig_to_base64(fig: Figure) -> str:
    """Convert matplotlib figure to base64 PNG string."""
    buf = BytesIO()
    fig.savefig(buf, format="png", dpi=150, bbox_inches="tight")
    buf.seek(0)
    return base64.b64encode(buf.read()).decode("utf-8")


def generate_confusion_heatmap(summary: EvaluationSummary) -> str:
    """
    Generate a heatmap of the confusion matrix, normalised per reference class.

    Returns:
        Base64 encoded PNG image.
    """
    matrix = summary.confusion.matrix
    counts = matrix.to_numpy().astype(float)
    col_totals = counts.sum(axis=0, keepdims=True)
    shares = np.divide(
        counts, col_totals, out=np.zeros_like(counts), where=col_totals > 0
    )

    fig = Figure(figsize=(6, 5))
    ax = fig.subplots()
    image = ax.imshow(shares, cmap="Blues", vmin=0.0, vmax=1.0)
    fig.colorbar(image, ax=ax, label="Share of reference class")

    for i in range(counts.shape[0]):
        for j in range(counts.shape[1]):
            ax.text(
                j,
                i,
                f"{int(counts[i, j])}",
                ha="center",
                va="center",
                color="white" if shares[i, j] > 0.5 else "black",
                fontsize=9,
            )

    ax.set_xticks(range(len(matrix.columns)))
    ax.set_xticklabels([str(c) for c in matrix.columns])
    ax.set_yticks(range(len(matrix.index)))
    ax.set_yticklabels([str(c) for c in matrix.index])
    ax.set_xlabel("Reference")
    ax.set_ylabel("Prediction")
    ax.set_title(f"{summary.label}: Confusion Matrix")
    fig.tight_layout()

    return _fig_to_base64(fig)


_STYLE = """
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, sans-serif;
            max-width: 1100px;
            margin: 0 auto;
            padding: 20px;
            background-color: #f5f5f5;
        }
        h1 {
            color: #333;
            border-bottom: 2px solid #4a90a4;
            padding-bottom: 10px;
        }
        h2 {
            color: #4a90a4;
            margin-top: 30px;
        }
        .section {
            background: white;
            border-radius: 8px;
            padding: 20px;
            margin-bottom: 20px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }
        .metadata {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 15px;
        }
        .metadata-item {
            background: #f8f9fa;
            padding: 10px 15px;
            border-radius: 4px;
        }
        .metadata-item strong {
            display: block;
            color: #666;
            font-size: 0.85em;
            margin-bottom: 5px;
        }
        table {
            width: 100%;
            border-collapse: collapse;
            margin: 15px 0;
        }
        th, td {
            padding: 8px 12px;
            text-align: left;
            border-bottom: 1px solid #ddd;
        }
        th {
            background-color: #4a90a4;
            color: white;
            font-weight: 600;
        }
        .failures li {
            color: #a33;
            margin-bottom: 6px;
        }
        .plot-container {
            text-align: center;
            margin: 20px 0;
        }
        .plot-container img {
            max-width: 100%;
            height: auto;
        }
        .timestamp {
            color: #999;
            font-size: 0.9em;
            text-align: right;
        }
"""


def render_report(
    report_data: ReportData,
    output_path: Path,
    console: Console | None = None,
) -> Path:
    """
    Generate the complete HTML report.

    Args:
        report_data: Report data containing all results.
        output_path: Path to save the HTML report.
        console: Optional console for printing tables.

    Returns:
        Path to the generated report.
    """
    log.info("Generating report", output=str(output_path))

    _summary_df, summary_html = generate_summary_table(
        report_data.summaries, report_data.failures, console
    )
    failures_html = generate_failures_html(report_data.failures)

    proportions = ", ".join(
        f"{html.escape(str(k))}: {v:.1%}"
        for k, v in sorted(report_data.class_proportions.items())
    )
    n_models = len(report_data.summaries) + len(report_data.failures)

    html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Exercise Classification Report - {html.escape(report_data.project)}</title>
    <style>{_STYLE}    </style>
</head>
<body>
    <h1>Weight Lifting Exercise Classification Report</h1>
    <p class="timestamp">Generated: {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}</p>

    <div class="section">
        <h2>Dataset Overview</h2>
        <div class="metadata">
            <div class="metadata-item">
                <strong>Rows</strong>
                {report_data.n_rows}
            </div>
            <div class="metadata-item">
                <strong>Raw Columns</strong>
                {report_data.n_raw_columns}
            </div>
            <div class="metadata-item">
                <strong>Predictors</strong>
                {len(report_data.feature_names)}
            </div>
            <div class="metadata-item">
                <strong>Training Rows</strong>
                {report_data.n_train}
            </div>
            <div class="metadata-item">
                <strong>Test Rows</strong>
                {report_data.n_test}
            </div>
            <div class="metadata-item">
                <strong>Models Configured</strong>
                {n_models}
            </div>
        </div>
        <p><strong>Dataset:</strong> <code>{html.escape(report_data.dataset_path)}</code>
        (md5 <code>{report_data.dataset_hash}</code>)</p>
        <p><strong>Formula:</strong> <code>{html.escape(report_data.formula)}</code></p>
        <p><strong>Class proportions:</strong> {proportions}</p>
        <p><strong>Model cache:</strong> {report_data.cache_hits} loaded,
        {report_data.cache_misses} trained. Cached models are keyed by their
        configuration only; they are reused even if the dataset changed.</p>
    </div>

    <div class="section">
        <h2>Model Summary</h2>
        <p>Training accuracy is the best cross-validated accuracy on the training
        partition. Test accuracy is measured on the held-out partition with an
        exact binomial confidence interval.</p>
        {summary_html}
    </div>

    <div class="section">
        <h2>Failed Configurations</h2>
        {failures_html}
    </div>
"""

    best = report_data.best
    if best is not None:
        matrix_html, by_class_html = generate_confusion_table(best, console)
        heatmap = generate_confusion_heatmap(best)
        html_content += f"""
    <div class="section">
        <h2>Best Model: {html.escape(best.label)}</h2>
        <p>Test accuracy {best.test_accuracy:.4f}
        ({best.confidence:.0%} CI {best.ci_lower:.4f} - {best.ci_upper:.4f}),
        kappa {best.confusion.kappa:.4f}, no-information rate
        {best.confusion.no_information_rate:.4f}. Expected out-of-sample error:
        {best.out_of_sample_error:.2%}.</p>
        <h3>Confusion Matrix</h3>
        {matrix_html}
        <div class="plot-container">
            <img src="data:image/png;base64,{heatmap}" alt="{html.escape(best.label)} confusion matrix">
        </div>
        <h3>Statistics by Class</h3>
        {by_class_html}
    </div>
"""
    else:
        html_content += """
    <div class="section">
        <h2>Best Model</h2>
        <p>No model was evaluated successfully.</p>
    </div>
"""

    html_content += """
</body>
</html>
"""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html_content, encoding="utf-8")

    log.info("Report generated", path=str(output_path))
    return output_path
