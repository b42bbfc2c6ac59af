"""
Configuration loading utilities.

Supports environment variable interpolation and config inheritance.
Minimal configs only need: project, data.training and models.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from wlereport.config.settings import PipelineConfig


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _process_config_values(data) if data else {}


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> PipelineConfig:
    """
    Load pipeline configuration from YAML file(s).

    Minimal config requires only:
        - project: str
        - data.training: path
        - models: list of {label, options: {method, ...}}

    Lists (such as ``models``) in the main file replace those of the base
    file rather than being merged.

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional path to base configuration for inheritance.

    Returns:
        Fully validated PipelineConfig instance.

    Raises:
        ValueError: If required keys are missing or values are invalid.
    """
    # Load base config if provided
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        # Try to find base.yaml in same directory
        potential_base = config_path.parent / "base.yaml"
        if (
            potential_base.exists()
            and potential_base.resolve() != config_path.resolve()
        ):
            base_data = load_yaml(potential_base)
        else:
            base_data = {}

    main_data = load_yaml(config_path)
    merged = _deep_merge(base_data, main_data)

    if not merged.get("project"):
        msg = "Config must specify 'project' name"
        raise ValueError(msg)

    data_data = merged.get("data", {})
    if not data_data.get("training"):
        msg = "Config must specify 'data.training'"
        raise ValueError(msg)

    if not merged.get("models"):
        msg = "Config must specify at least one entry under 'models'"
        raise ValueError(msg)

    data_section: dict[str, Any] = {
        "data_root": Path(data_data.get("root", "./data")),
        "training": Path(data_data["training"]),
        "submission": Path(data_data["submission"])
        if data_data.get("submission")
        else None,
    }

    output_data = merged.get("output", {})

    return PipelineConfig.model_validate(
        {
            "project": merged["project"],
            "data": data_section,
            "columns": merged.get("columns", {}),
            "split": merged.get("split", {}),
            "training": merged.get("training", {}),
            "models": merged["models"],
            "output": {"output_root": Path(output_data.get("root", "./output"))},
            "logging": merged.get("logging", {}),
        }
    )
