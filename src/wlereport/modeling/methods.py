"""
Supported training methods and their options.

Each method has its own options model carrying only the hyperparameters
that method understands, plus the shared resampling options. Options are
discriminated on the ``method`` field so a list of heterogeneous model
configurations validates into the right variant.
"""

from collections.abc import Callable, Mapping
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from sklearn.base import BaseEstimator
from sklearn.discriminant_analysis import (
    LinearDiscriminantAnalysis,
    QuadraticDiscriminantAnalysis,
)
from sklearn.ensemble import (
    AdaBoostClassifier,
    GradientBoostingClassifier,
    RandomForestClassifier,
)
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.tree import DecisionTreeClassifier

from wlereport.errors import ConfigurationError, UnknownMethodError
from wlereport.utils.logging import get_logger

log = get_logger(__name__)

# Fields supplied per call rather than per configuration
INJECTED_FIELDS = frozenset({"formula", "data"})


class Method(str, Enum):
    """Enumerated training methods."""

    LDA = "lda"  # Linear discriminant analysis
    QDA = "qda"  # Quadratic discriminant analysis
    GBM = "gbm"  # Stochastic gradient boosting
    RULE_ENSEMBLE = "rule_ensemble"  # Boosted rule/tree ensemble (C5.0-style)
    RF = "rf"  # Random forest

    @classmethod
    def parse(cls, name: "str | Method") -> "Method":
        """
        Resolve a method identifier.

        Raises:
            UnknownMethodError: If the name is not a supported method.
        """
        if isinstance(name, Method):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            available = ", ".join(m.value for m in cls)
            msg = f"Unknown method '{name}'. Available: {available}"
            raise UnknownMethodError(msg) from None

    @property
    def title(self) -> str:
        """Human-readable method name."""
        return METHOD_TITLES[self]


METHOD_TITLES: dict[Method, str] = {
    Method.LDA: "Linear discriminant analysis",
    Method.QDA: "Quadratic discriminant analysis",
    Method.GBM: "Gradient boosting",
    Method.RULE_ENSEMBLE: "Boosted rule ensemble",
    Method.RF: "Random forest",
}


class _MethodOptions(BaseModel):
    """Resampling options shared by every method."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cv_folds: int = Field(default=5, ge=2, le=20, description="Stratified CV folds")
    random_state: int = Field(default=1337, description="Seed for CV and estimator")
    tune_grid: dict[str, list[Any]] = Field(
        default_factory=dict,
        description="Estimator parameter grid searched with cross-validation",
    )


class LdaOptions(_MethodOptions):
    """Options for linear discriminant analysis."""

    method: Literal["lda"] = "lda"
    solver: Literal["svd", "lsqr", "eigen"] = "svd"
    shrinkage: float | None = Field(default=None, ge=0.0, le=1.0)


class QdaOptions(_MethodOptions):
    """Options for quadratic discriminant analysis."""

    method: Literal["qda"] = "qda"
    reg_param: float = Field(default=0.0, ge=0.0, le=1.0)


class GradientBoostingOptions(_MethodOptions):
    """Options for stochastic gradient boosting."""

    method: Literal["gbm"] = "gbm"
    n_estimators: int = Field(default=150, ge=1)
    learning_rate: float = Field(default=0.1, gt=0.0)
    max_depth: int = Field(default=3, ge=1)
    subsample: float = Field(default=0.5, gt=0.0, le=1.0)
    min_samples_leaf: int = Field(default=10, ge=1)


class RuleEnsembleOptions(_MethodOptions):
    """Options for the boosted rule ensemble (C5.0-style boosting trials)."""

    method: Literal["rule_ensemble"] = "rule_ensemble"
    trials: int = Field(default=20, ge=1, description="Boosting iterations")
    max_depth: int = Field(default=8, ge=1)
    min_samples_leaf: int = Field(default=2, ge=1)
    learning_rate: float = Field(default=1.0, gt=0.0)


class RandomForestOptions(_MethodOptions):
    """Options for random forests."""

    method: Literal["rf"] = "rf"
    n_estimators: int = Field(default=250, ge=1)
    max_features: int | float | Literal["sqrt", "log2"] = "sqrt"
    min_samples_leaf: int = Field(default=1, ge=1)


MethodOptions = Annotated[
    LdaOptions
    | QdaOptions
    | GradientBoostingOptions
    | RuleEnsembleOptions
    | RandomForestOptions,
    Field(discriminator="method"),
]

_OPTIONS_ADAPTER: TypeAdapter[Any] = TypeAdapter(MethodOptions)


def build_options(
    name: "str | Method",
    options: Mapping[str, Any] | BaseModel | None = None,
) -> Any:
    """
    Build the typed options variant for a method.

    Injected fields (formula, data) are dropped from mappings; they never
    belong to a configuration.

    Args:
        name: Method identifier.
        options: Raw option mapping or an already-typed options model.

    Returns:
        Options model for the method.

    Raises:
        UnknownMethodError: If the method is not supported.
        ConfigurationError: If the options do not validate for the method.
    """
    method = Method.parse(name)

    if isinstance(options, BaseModel):
        if getattr(options, "method", None) != method:
            msg = (
                f"Options of type {type(options).__name__} "
                f"do not belong to method '{method.value}'"
            )
            raise ConfigurationError(msg)
        return options

    raw = {k: v for k, v in (options or {}).items() if k not in INJECTED_FIELDS}
    if "method" in raw and Method.parse(raw["method"]) != method:
        msg = f"Option 'method={raw['method']}' conflicts with '{method.value}'"
        raise ConfigurationError(msg)
    raw["method"] = method.value

    try:
        return _OPTIONS_ADAPTER.validate_python(raw)
    except ValidationError as e:
        msg = f"Invalid options for method '{method.value}': {e}"
        raise ConfigurationError(msg) from e


def configuration_payload(options: BaseModel) -> dict[str, Any]:
    """Canonical configuration mapping: method identifier plus its options."""
    return options.model_dump(mode="json")


# --- Backend adapters: one per method ---


def _build_lda(options: LdaOptions) -> BaseEstimator:
    solver = options.solver
    # The svd solver does not accept shrinkage
    if options.shrinkage is not None and solver == "svd":
        solver = "lsqr"
    return Pipeline(
        steps=[
            ("scaler", StandardScaler()),
            (
                "model",
                LinearDiscriminantAnalysis(solver=solver, shrinkage=options.shrinkage),
            ),
        ]
    )


def _build_qda(options: QdaOptions) -> BaseEstimator:
    return Pipeline(
        steps=[
            ("scaler", StandardScaler()),
            ("model", QuadraticDiscriminantAnalysis(reg_param=options.reg_param)),
        ]
    )


def _build_gbm(options: GradientBoostingOptions) -> BaseEstimator:
    return Pipeline(
        steps=[
            (
                "model",
                GradientBoostingClassifier(
                    n_estimators=options.n_estimators,
                    learning_rate=options.learning_rate,
                    max_depth=options.max_depth,
                    subsample=options.subsample,
                    min_samples_leaf=options.min_samples_leaf,
                    random_state=options.random_state,
                ),
            )
        ]
    )


def _build_rule_ensemble(options: RuleEnsembleOptions) -> BaseEstimator:
    base = DecisionTreeClassifier(
        max_depth=options.max_depth,
        min_samples_leaf=options.min_samples_leaf,
        random_state=options.random_state,
    )
    return Pipeline(
        steps=[
            (
                "model",
                AdaBoostClassifier(
                    estimator=base,
                    n_estimators=options.trials,
                    learning_rate=options.learning_rate,
                    random_state=options.random_state,
                ),
            )
        ]
    )


def _build_rf(options: RandomForestOptions) -> BaseEstimator:
    return Pipeline(
        steps=[
            (
                "model",
                RandomForestClassifier(
                    n_estimators=options.n_estimators,
                    max_features=options.max_features,
                    min_samples_leaf=options.min_samples_leaf,
                    random_state=options.random_state,
                    n_jobs=-1,
                ),
            )
        ]
    )


ADAPTERS: dict[Method, Callable[[Any], BaseEstimator]] = {
    Method.LDA: _build_lda,
    Method.QDA: _build_qda,
    Method.GBM: _build_gbm,
    Method.RULE_ENSEMBLE: _build_rule_ensemble,
    Method.RF: _build_rf,
}


def build_estimator(options: Any) -> BaseEstimator:
    """
    Build an unfitted scikit-learn pipeline for typed options.

    The pipeline's final step is always named ``model`` so tuning grids
    address estimator parameters as ``model__<param>``.
    """
    method = Method.parse(options.method)
    estimator = ADAPTERS[method](options)
    log.debug("Created estimator", method=method.value)
    return estimator


def param_grid(options: Any) -> dict[str, list[Any]]:
    """Translate an options tuning grid into pipeline parameter names."""
    return {
        (key if "__" in key else f"model__{key}"): list(values)
        for key, values in options.tune_grid.items()
    }


def list_methods() -> list[str]:
    """List all supported method identifiers."""
    return [m.value for m in Method]
