"""
Training runner.

Resolves every model configuration of a run through the model cache,
optionally in a bounded worker pool. The pool belongs to the run: it is
created on entry and shut down on exit. A failing configuration is
recorded and never aborts its siblings.
"""

from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from types import TracebackType
from typing import TYPE_CHECKING

import pandas as pd

from wlereport.modeling.cache import ModelCache
from wlereport.modeling.formula import Formula
from wlereport.modeling.training import FittedModel
from wlereport.utils.logging import get_logger, log_context

if TYPE_CHECKING:
    from wlereport.config.settings import ModelSpec

log = get_logger(__name__)


@dataclass(frozen=True)
class TrainingOutcome:
    """
    Result of resolving one model configuration.

    Exactly one of ``model`` and ``error`` is set.
    """

    label: str
    method: str
    model: FittedModel | None = None
    error: str | None = None
    error_type: str | None = None

    @property
    def ok(self) -> bool:
        """Whether a model was produced."""
        return self.model is not None


class TrainingRunner:
    """
    Run-scoped executor for model configurations.

    With ``max_workers == 1`` configurations are resolved sequentially in
    the calling thread; otherwise a thread pool of that size is used.

    Example:
        with TrainingRunner(max_workers=4) as runner:
            outcomes = train_all(cache, specs, train_df, "classe ~ .", runner)
    """

    def __init__(self, max_workers: int = 1) -> None:
        if max_workers < 1:
            msg = f"max_workers must be >= 1, got {max_workers}"
            raise ValueError(msg)
        self.max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> "TrainingRunner":
        if self.max_workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="wle-train",
            )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the worker pool, waiting for running tasks."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    @property
    def parallel(self) -> bool:
        """Whether a worker pool is active."""
        return self._executor is not None

    def run(
        self,
        cache: ModelCache,
        specs: Sequence["ModelSpec"],
        training_data: pd.DataFrame,
        formula: "str | Formula",
    ) -> dict[str, TrainingOutcome]:
        """
        Resolve every configuration, isolating failures.

        Returns:
            Outcomes keyed by model label, in configuration order.
        """
        log.info(
            "Resolving model configurations",
            n_models=len(specs),
            workers=self.max_workers if self.parallel else 1,
        )

        results: dict[str, TrainingOutcome] = {}
        if self._executor is None:
            for spec in specs:
                results[spec.label] = _resolve_one(cache, spec, training_data, formula)
        else:
            futures: dict[Future[TrainingOutcome], "ModelSpec"] = {
                self._executor.submit(
                    _resolve_one, cache, spec, training_data, formula
                ): spec
                for spec in specs
            }
            for future in as_completed(futures):
                spec = futures[future]
                results[spec.label] = future.result()

        n_failed = sum(1 for outcome in results.values() if not outcome.ok)
        log.info(
            "Resolved model configurations",
            n_ok=len(results) - n_failed,
            n_failed=n_failed,
            cache_hits=cache.stats.hits,
            cache_misses=cache.stats.misses,
        )
        return {spec.label: results[spec.label] for spec in specs}


def _resolve_one(
    cache: ModelCache,
    spec: "ModelSpec",
    training_data: pd.DataFrame,
    formula: "str | Formula",
) -> TrainingOutcome:
    """Resolve a single configuration, capturing any failure."""
    with log_context(model=spec.label):
        try:
            model = cache.resolve(spec.method, spec.options, training_data, formula)
        except Exception as e:
            log.error(
                "Model configuration failed",
                method=spec.method,
                error_type=type(e).__name__,
                error=str(e),
            )
            return TrainingOutcome(
                label=spec.label,
                method=spec.method,
                error=str(e),
                error_type=type(e).__name__,
            )

    return TrainingOutcome(label=spec.label, method=spec.method, model=model)


def train_all(
    cache: ModelCache,
    specs: Sequence["ModelSpec"],
    training_data: pd.DataFrame,
    formula: "str | Formula",
    runner: TrainingRunner | None = None,
) -> dict[str, TrainingOutcome]:
    """
    Resolve all configurations through the cache.

    Args:
        cache: Model cache.
        specs: Model configurations.
        training_data: Training partition.
        formula: Model formula.
        runner: Active runner; a sequential one is used if omitted.

    Returns:
        Outcomes keyed by model label.
    """
    if runner is not None:
        return runner.run(cache, specs, training_data, formula)

    with TrainingRunner(max_workers=1) as sequential:
        return sequential.run(cache, specs, training_data, formula)
