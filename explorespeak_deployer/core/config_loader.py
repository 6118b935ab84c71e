"""
Configuration loading utilities.

Settings are layered, later sources winning:
    1. DeploymentConfig defaults
    2. AWS_REGION from the environment
    3. Optional JSON file (deployment.json)
    4. Explicit overrides (CLI arguments)

Usage:
    from explorespeak_deployer.core.config_loader import load_deployment_config

    config = load_deployment_config(
        config_path=Path("deployment.json"),
        overrides={"region": "eu-west-1"}
    )
"""

import json
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional

import explorespeak_deployer.constants as CONSTANTS
from .context import DeploymentConfig
from .exceptions import ConfigurationError


def _load_json_file(file_path: Path, required: bool = True) -> Dict[str, Any]:
    """
    Load a JSON file and return its contents as a dictionary.

    Args:
        file_path: Path to the JSON file
        required: If True, raise error when file is missing. If False, return empty dict.

    Raises:
        ConfigurationError: If file is missing (when required), has invalid JSON
            or does not contain a JSON object
    """
    if not file_path.exists():
        if required:
            raise ConfigurationError(
                f"Required configuration file not found: {file_path.name}",
                config_file=str(file_path)
            )
        return {}

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in configuration file: {e}",
            config_file=str(file_path)
        )

    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration file must contain a JSON object",
            config_file=str(file_path)
        )
    return data


# Expected JSON types per DeploymentConfig field
_FIELD_TYPES = {
    "region": str,
    "profile_name": str,
    "api_id": str,
    "api_name": str,
    "role_name": str,
    "stage_name": str,
    "source_root": (str, Path),
    "mode": str,
    "billing_mode": str,
    "read_units": int,
    "write_units": int,
    "invoke_functions": bool,
    "install_dependencies": bool,
    "table_wait_delay": int,
    "table_wait_attempts": int,
}

_NULLABLE_FIELDS = ("profile_name", "api_id")


def _check_types(values: Dict[str, Any], config_file: Optional[str] = None) -> None:
    """Reject values whose JSON type does not match the DeploymentConfig field."""
    for key, value in values.items():
        if value is None and key in _NULLABLE_FIELDS:
            continue
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; true/false is never a count
        if isinstance(value, bool) and expected is int:
            valid = False
        else:
            valid = isinstance(value, expected)
        if not valid:
            names = expected.__name__ if isinstance(expected, type) else " or ".join(t.__name__ for t in expected)
            raise ConfigurationError(
                f"Invalid value for '{key}': expected {names}, got {type(value).__name__} ({value!r})",
                config_file=config_file
            )


def _validate(config: DeploymentConfig, config_file: Optional[str] = None) -> None:
    if config.mode.upper() not in CONSTANTS.VALID_MODES:
        raise ConfigurationError(
            f"Invalid mode '{config.mode}'. Valid: {', '.join(CONSTANTS.VALID_MODES)}",
            config_file=config_file
        )
    if config.billing_mode not in (CONSTANTS.BILLING_PAY_PER_REQUEST, CONSTANTS.BILLING_PROVISIONED):
        raise ConfigurationError(
            f"Invalid billing_mode '{config.billing_mode}'",
            config_file=config_file
        )
    if config.table_wait_delay < 1 or config.table_wait_attempts < 1:
        raise ConfigurationError(
            "table_wait_delay and table_wait_attempts must be positive",
            config_file=config_file
        )
    if config.billing_mode == CONSTANTS.BILLING_PROVISIONED and (config.read_units < 1 or config.write_units < 1):
        raise ConfigurationError(
            "read_units and write_units must be at least 1 with PROVISIONED billing",
            config_file=config_file
        )
    if not config.region:
        raise ConfigurationError("AWS region is required", config_file=config_file)


def load_deployment_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> DeploymentConfig:
    """
    Build the run configuration.

    Args:
        config_path: Optional JSON file with DeploymentConfig field names as keys.
            A path that is given but missing is an error.
        overrides: Values that win over everything else. None values are ignored
            so unset CLI options fall through to the file and defaults.

    Returns:
        Validated DeploymentConfig

    Raises:
        ConfigurationError: On unknown keys, invalid JSON or invalid values
    """
    known = {f.name for f in fields(DeploymentConfig)}
    values: Dict[str, Any] = {}

    env_region = os.getenv("AWS_REGION")
    if env_region:
        values["region"] = env_region

    config_file = None
    if config_path is not None:
        config_file = str(config_path)
        file_values = _load_json_file(Path(config_path), required=True)
        unknown = sorted(set(file_values) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown configuration keys: {unknown}",
                config_file=config_file
            )
        values.update(file_values)

    for key, value in (overrides or {}).items():
        if key not in known:
            raise ConfigurationError(f"Unknown configuration override: {key}")
        if value is not None:
            values[key] = value

    _check_types(values, config_file)

    if "source_root" in values:
        values["source_root"] = Path(values["source_root"])

    config = DeploymentConfig(**values)
    _validate(config, config_file)
    return config
