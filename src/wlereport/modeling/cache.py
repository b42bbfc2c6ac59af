"""
Fingerprinted model cache.

Fitted models are persisted under a key derived from their configuration
only: the method identifier plus its options. Formula and training data
are supplied per call and are not part of the key, so a cached model is
reused even if the training data changed since it was fitted.
"""

import os
import tempfile
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import joblib
import pandas as pd
from pydantic import BaseModel

from wlereport.errors import StorageError, TrainingError
from wlereport.modeling.formula import Formula
from wlereport.modeling.methods import Method, build_options, configuration_payload
from wlereport.modeling.training import FittedModel, fit
from wlereport.utils.hashing import hash_config
from wlereport.utils.logging import get_logger

log = get_logger(__name__)

KEY_PREFIX = "model_"
ARTIFACT_SUFFIX = ".joblib"

Trainer = Callable[[Method, Formula, pd.DataFrame, Any], FittedModel]


@dataclass
class CacheStats:
    """
    Hit/miss counters for one cache instance.

    A miss is counted once its model has been trained and stored. Counters
    are updated from worker threads and guarded by a lock.
    """

    hits: int = 0
    misses: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )

    def record_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self.misses += 1


class ModelCache:
    """
    Content-addressable store of fitted models.

    Cache keys are ``"model_" + fingerprint`` where the fingerprint is the
    MD5 digest of the canonical JSON serialization of the configuration.
    Artifacts are not locked: concurrent misses on the same key both train
    and the last completed write wins.
    """

    def __init__(self, cache_dir: Path, trainer: Trainer = fit) -> None:
        """
        Initialize model cache.

        Args:
            cache_dir: Directory for model artifacts.
            trainer: Function fitting a model on a cache miss.
        """
        self.cache_dir = Path(cache_dir)
        self.trainer = trainer
        self.stats = CacheStats()

    def fingerprint(
        self,
        name: "str | Method",
        options: Mapping[str, Any] | BaseModel | None = None,
    ) -> str:
        """
        Compute the configuration fingerprint.

        Args:
            name: Method identifier.
            options: Method options (injected fields are ignored).

        Returns:
            32-character hex digest.
        """
        typed = build_options(name, options)
        return hash_config(configuration_payload(typed))

    def key(
        self,
        name: "str | Method",
        options: Mapping[str, Any] | BaseModel | None = None,
    ) -> str:
        """Storage key for a configuration."""
        return KEY_PREFIX + self.fingerprint(name, options)

    def path_for(
        self,
        name: "str | Method",
        options: Mapping[str, Any] | BaseModel | None = None,
    ) -> Path:
        """Artifact path for a configuration."""
        return self.cache_dir / f"{self.key(name, options)}{ARTIFACT_SUFFIX}"

    def contains(
        self,
        name: "str | Method",
        options: Mapping[str, Any] | BaseModel | None = None,
    ) -> bool:
        """Whether an artifact exists for a configuration."""
        return self.path_for(name, options).exists()

    def resolve(
        self,
        name: "str | Method",
        options: Mapping[str, Any] | BaseModel | None,
        training_data: pd.DataFrame | None,
        formula: "str | Formula",
    ) -> FittedModel:
        """
        Load the cached model for a configuration, or train and store it.

        A hit short-circuits training without checking the supplied
        training data or formula against the cached model.

        Args:
            name: Method identifier.
            options: Method options.
            training_data: Training frame, used only on a miss; may be None
                when the caller knows the configuration is cached.
            formula: Model formula, used only on a miss.

        Returns:
            Fitted model.

        Raises:
            UnknownMethodError: If the method is not supported.
            ConfigurationError: If the options are invalid.
            TrainingError: If training fails on a miss.
            StorageError: If the artifact cannot be read or written.
        """
        typed = build_options(name, options)
        method = Method.parse(typed.method)
        fingerprint = hash_config(configuration_payload(typed))
        key = KEY_PREFIX + fingerprint
        path = self.cache_dir / f"{key}{ARTIFACT_SUFFIX}"

        if path.exists():
            model = self._load(path)
            self.stats.record_hit()
            log.info("Cache hit", method=method.value, key=key)
            return model

        if training_data is None:
            msg = f"No training data supplied to train '{method.value}' on a cache miss"
            raise TrainingError(msg)

        log.info("Cache miss, training", method=method.value, key=key)
        model = self.trainer(method, Formula.parse(formula), training_data, typed)
        self._store(model, path)
        self.stats.record_miss()
        return model

    def _load(self, path: Path) -> FittedModel:
        try:
            model = joblib.load(path)
        except Exception as e:
            msg = f"Cannot read model artifact {path}: {e}"
            raise StorageError(msg) from e

        if not isinstance(model, FittedModel):
            msg = f"Artifact {path} holds {type(model).__name__}, not a fitted model"
            raise StorageError(msg)
        return model

    def _store(self, model: FittedModel, path: Path) -> Path:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.stem}.", suffix=".tmp", dir=self.cache_dir
            )
            os.close(fd)
            try:
                joblib.dump(model, tmp_name)
                os.replace(tmp_name, path)
            finally:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
        except OSError as e:
            msg = f"Cannot write model artifact {path}: {e}"
            raise StorageError(msg) from e

        log.info("Stored model artifact", path=str(path))
        return path

    def entries(self) -> list[Path]:
        """List stored model artifacts."""
        if not self.cache_dir.exists():
            return []
        return sorted(self.cache_dir.glob(f"{KEY_PREFIX}*{ARTIFACT_SUFFIX}"))

    def load_entry(self, path: Path) -> FittedModel:
        """Load one stored artifact."""
        return self._load(path)

    def invalidate(
        self,
        name: "str | Method",
        options: Mapping[str, Any] | BaseModel | None = None,
    ) -> bool:
        """
        Remove the artifact for a configuration.

        Returns:
            True if an artifact was removed.
        """
        path = self.path_for(name, options)
        if path.exists():
            path.unlink()
            log.debug("Cache entry invalidated", path=str(path))
            return True
        return False

    def clear(self) -> int:
        """
        Remove all stored artifacts.

        Returns:
            Number of files removed.
        """
        count = 0
        for artifact in self.entries():
            artifact.unlink()
            count += 1

        log.info("Cache cleared", files_removed=count)
        return count
