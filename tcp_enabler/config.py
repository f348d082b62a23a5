from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .errors import ConfigError

# Product identifiers (upgrade codes, MSI feature names) are not built in;
# they come from the deployment's YAML config.
CONFIG_ENV_VAR = "TCP_ENABLER_CONFIG"

# CLI keys; the CLI exposes one tri-state flag per key.
INTEGRATION_KEYS: Tuple[str, ...] = ("ie", "chrome", "edge")

DEFAULT_MSIEXEC = "msiexec.exe"


@dataclass(frozen=True)
class EnablerConfig:
    upgrade_codes: Tuple[str, ...]
    mandatory_features: Tuple[str, ...]
    # CLI key -> MSI feature name.
    integration_features: Dict[str, str]
    log_dir: str = field(default_factory=tempfile.gettempdir)
    msiexec: str = DEFAULT_MSIEXEC

    @property
    def recognized_features(self) -> Tuple[str, ...]:
        """Mandatory features first, then integrations, without duplicates."""
        ordered: list[str] = []
        for name in (*self.mandatory_features, *self.integration_features.values()):
            if name not in ordered:
                ordered.append(name)
        return tuple(ordered)

    def integration_feature(self, key: str) -> str:
        try:
            return self.integration_features[key]
        except KeyError:
            raise ConfigError(f"Unknown integration feature key: {key}") from None


def _required_str_list(raw: Dict[str, Any], key: str) -> Tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        raise ConfigError(f"{key} is required")
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        raise ConfigError(f"{key} must be a list of non-empty strings")
    if not value:
        raise ConfigError(f"{key} must not be empty")
    return tuple(v.strip() for v in value)


def config_from_mapping(raw: Dict[str, Any]) -> EnablerConfig:
    upgrade_codes = _required_str_list(raw, "upgrade_codes")
    mandatory = _required_str_list(raw, "mandatory_features")

    mapping = raw.get("integration_features")
    if mapping is None:
        raise ConfigError("integration_features is required")
    if not isinstance(mapping, dict):
        raise ConfigError("integration_features must be a mapping")

    unknown = sorted(str(k) for k in mapping if k not in INTEGRATION_KEYS)
    if unknown:
        raise ConfigError(
            f"Unknown integration feature keys {', '.join(unknown)} (expected {', '.join(INTEGRATION_KEYS)})"
        )
    missing = [k for k in INTEGRATION_KEYS if k not in mapping]
    if missing:
        raise ConfigError(f"integration_features is missing: {', '.join(missing)}")

    integrations: Dict[str, str] = {}
    for key in INTEGRATION_KEYS:
        name = mapping[key]
        if not isinstance(name, str) or not name.strip():
            raise ConfigError(f"integration_features.{key} must be a non-empty string")
        integrations[key] = name.strip()

    kwargs: Dict[str, Any] = {
        "upgrade_codes": upgrade_codes,
        "mandatory_features": mandatory,
        "integration_features": integrations,
    }
    if raw.get("log_dir"):
        kwargs["log_dir"] = str(raw["log_dir"])
    if raw.get("msiexec"):
        kwargs["msiexec"] = str(raw["msiexec"])
    return EnablerConfig(**kwargs)


def load_config(path: Optional[str]) -> EnablerConfig:
    """Load the YAML config; without a path, fall back to $TCP_ENABLER_CONFIG."""
    path = path or os.environ.get(CONFIG_ENV_VAR)
    if not path:
        raise ConfigError(f"No configuration given (use --config or set {CONFIG_ENV_VAR})")

    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {path}")
    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("config must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must contain a mapping/object")

    return config_from_mapping(raw)
