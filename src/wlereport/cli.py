"""Command-line interface for the exercise classification report."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from wlereport.config.settings import PipelineConfig

app = typer.Typer(
    name="wle-report",
    help="Weight Lifting Exercise classification report.",
    no_args_is_help=True,
)
cache_app = typer.Typer(help="Inspect or clear the model artifact cache.")
app.add_typer(cache_app, name="cache")

console = Console()

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]


def _load(config: Path) -> "PipelineConfig":
    """Load configuration and set up logging from it."""
    from wlereport.config.loader import load_config
    from wlereport.utils.logging import configure_logging

    console.print(f"[blue]Loading configuration from {config}[/blue]")
    try:
        pipeline_config = load_config(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1) from e

    configure_logging(
        pipeline_config.logging.level,
        json_output=pipeline_config.logging.json_output,
    )
    return pipeline_config


@app.command()
def run(
    config: ConfigOption,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-w",
            help="Number of model configurations trained concurrently.",
            min=1,
        ),
    ] = None,
    report: Annotated[
        Path | None,
        typer.Option(
            "--report",
            "-r",
            help="Override path for the HTML report.",
        ),
    ] = None,
    no_submission: Annotated[
        bool,
        typer.Option(
            "--no-submission",
            help="Skip writing submission prediction files.",
        ),
    ] = False,
) -> None:
    """
    Train, evaluate and report all configured models.

    Models whose configuration is already in the cache are loaded instead
    of retrained.
    """
    from wlereport.errors import WleReportError
    from wlereport.pipeline import run_pipeline

    pipeline_config = _load(config)
    console.print(
        f"[blue]Running report for {len(pipeline_config.models)} models[/blue]"
    )
    console.print(f"[dim]Cache: {pipeline_config.cache_dir}[/dim]")

    try:
        result = run_pipeline(
            pipeline_config,
            console,
            max_workers=workers,
            report_path=report,
            submission=not no_submission,
        )
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e
    except WleReportError as e:
        console.print(f"[red]Report failed: {type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1) from e

    if result.best is not None:
        console.print(
            f"\n[green]Best model: {result.best.label} "
            f"(test accuracy {result.best.test_accuracy:.4f})[/green]"
        )
    if result.submission_paths:
        console.print(
            f"[green]Wrote {len(result.submission_paths)} submission files[/green]"
        )
    console.print(f"[green]Report saved to: {result.report_path}[/green]")

    if result.failures:
        console.print(
            f"\n[yellow]{len(result.failures)} model configuration(s) failed: "
            f"{', '.join(f.label for f in result.failures)}[/yellow]"
        )
        raise typer.Exit(code=2)


@app.command()
def predict(
    config: ConfigOption,
    model: Annotated[
        str,
        typer.Option(
            "--model",
            "-m",
            help="Label of a configured model to predict with.",
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Directory for submission files.",
        ),
    ] = None,
) -> None:
    """Write submission predictions with one configured model."""
    from wlereport.errors import WleReportError
    from wlereport.modeling.cache import ModelCache
    from wlereport.pipeline import prepare_data, predict_submission

    pipeline_config = _load(config)

    specs = {spec.label: spec for spec in pipeline_config.models}
    if model not in specs:
        console.print(
            f"[red]Unknown model '{model}'. Configured: {', '.join(specs)}[/red]"
        )
        raise typer.Exit(code=1)
    if pipeline_config.data.submission is None:
        console.print("[red]Error: data.submission not configured[/red]")
        raise typer.Exit(code=1)

    spec = specs[model]
    cache = ModelCache(pipeline_config.cache_dir)

    try:
        if cache.contains(spec.method, spec.options):
            training_data = None
        else:
            from wlereport.modeling.data import stratified_partition

            console.print(f"[dim]{model} not cached, training it first[/dim]")
            _raw, filtered, _path = prepare_data(pipeline_config)
            partition = stratified_partition(
                filtered,
                pipeline_config.columns.label,
                train_fraction=pipeline_config.split.train_fraction,
                seed=pipeline_config.split.seed,
            )
            training_data, _test = partition.split(filtered)

        fitted = cache.resolve(
            spec.method, spec.options, training_data, pipeline_config.formula
        )
        paths = predict_submission(pipeline_config, fitted, output)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e
    except WleReportError as e:
        console.print(f"[red]Prediction failed: {type(e).__name__}: {e}[/red]")
        raise typer.Exit(code=1) from e

    table = Table(title=f"Submission Predictions ({model})")
    table.add_column("File", style="cyan")
    table.add_column("Prediction", style="green")
    for path in paths:
        table.add_row(path.name, path.read_text(encoding="utf-8"))
    console.print(table)


@cache_app.command("list")
def cache_list(config: ConfigOption) -> None:
    """List cached model artifacts."""
    from wlereport.modeling.cache import ModelCache

    pipeline_config = _load(config)
    cache = ModelCache(pipeline_config.cache_dir)

    labels = {
        cache.key(spec.method, spec.options): spec.label
        for spec in pipeline_config.models
    }

    table = Table(title=f"Model Cache ({pipeline_config.cache_dir})")
    table.add_column("Key", style="cyan")
    table.add_column("Configured As", style="green")
    table.add_column("Method")
    table.add_column("Train Acc", style="yellow")
    table.add_column("Fitted At", style="dim")

    for path in cache.entries():
        key = path.stem
        try:
            fitted = cache.load_entry(path)
        except OSError as e:
            table.add_row(
                key, labels.get(key, "-"), "[red]unreadable[/red]", "-", str(e)
            )
            continue
        table.add_row(
            key,
            labels.get(key, "[dim]not configured[/dim]"),
            fitted.method.value,
            f"{fitted.training_accuracy:.4f}",
            fitted.fitted_at,
        )

    console.print(table)


@cache_app.command("clear")
def cache_clear(
    config: ConfigOption,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation."),
    ] = False,
) -> None:
    """Remove all cached model artifacts."""
    from wlereport.modeling.cache import ModelCache

    pipeline_config = _load(config)
    cache = ModelCache(pipeline_config.cache_dir)

    n_entries = len(cache.entries())
    if n_entries == 0:
        console.print("[dim]Cache is empty[/dim]")
        return
    if not yes:
        typer.confirm(f"Remove {n_entries} cached models?", abort=True)

    removed = cache.clear()
    console.print(f"[green]Removed {removed} cached models[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from wlereport import __version__

    console.print(f"wle-report version {__version__}")


if __name__ == "__main__":
    app()
