"""Configuration loader for dhcp-lease-sync.

Loads settings from a YAML file with built-in defaults. Supports environment
variable overrides using the DHCP_LEASE_SYNC_ prefix with double-underscore
nesting (e.g., DHCP_LEASE_SYNC_STORE__MATCH_INET_ADDR=true).
"""

from __future__ import annotations

import os
import pathlib
from typing import Any

import yaml
from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Config sub-models
# ---------------------------------------------------------------------------

class AgentConfig(BaseModel):
    name: str = "dhcp-lease-sync"
    data_dir: str = "./data"
    log_level: str = "INFO"


class StoreConfig(BaseModel):
    db_file: str = "leases.db"
    # Select rows by hwaddr AND inet_addr (one row per address, not per device)
    match_inet_addr: bool = False


class SourceConfig(BaseModel):
    path: str | None = None
    poll_interval: float = 1.0
    from_start: bool = True


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseModel):
    agent: AgentConfig = Field(default_factory=AgentConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)

    @property
    def db_path(self) -> pathlib.Path:
        db_file = pathlib.Path(self.store.db_file)
        if db_file.is_absolute():
            return db_file
        return pathlib.Path(self.agent.data_dir) / db_file

    @property
    def events_path(self) -> pathlib.Path:
        if self.source.path:
            return pathlib.Path(self.source.path)
        return pathlib.Path(self.agent.data_dir) / "lease_events.jsonl"


# ---------------------------------------------------------------------------
# Deep merge helper
# ---------------------------------------------------------------------------

def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into *base*, returning a new dict."""
    merged = dict(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "DHCP_LEASE_SYNC_"


def _collect_env_overrides() -> dict[str, Any]:
    """Collect DHCP_LEASE_SYNC_* env vars and build a nested dict.

    Double-underscore separates nesting levels.
    Example: DHCP_LEASE_SYNC_SOURCE__POLL_INTERVAL=0.5
    becomes  {"source": {"poll_interval": 0.5}}
    """
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(_ENV_PREFIX):
            continue
        parts = key[len(_ENV_PREFIX) :].lower().split("__")
        current = overrides
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        # Attempt numeric coercion
        final_value: Any = value
        try:
            final_value = int(value)
        except ValueError:
            try:
                final_value = float(value)
            except ValueError:
                if value.lower() in ("true", "false"):
                    final_value = value.lower() == "true"
        current[parts[-1]] = final_value
    return overrides


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_BUILTIN_DEFAULTS_PATH = pathlib.Path(__file__).resolve().parents[3] / "config" / "lease_defaults.yaml"


def load_settings(
    config_path: pathlib.Path | None = None,
) -> Settings:
    """Load settings with layered precedence: defaults < file < env vars.

    Parameters
    ----------
    config_path:
        Path to a YAML config file. If ``None`` or the file does not exist,
        built-in defaults are used.
    """
    base: dict[str, Any] = {}

    path = config_path if config_path is not None else _BUILTIN_DEFAULTS_PATH
    if path.exists():
        with open(path) as fh:
            file_data = yaml.safe_load(fh)
        if isinstance(file_data, dict):
            base = _deep_merge(base, file_data)

    env_overrides = _collect_env_overrides()
    if env_overrides:
        base = _deep_merge(base, env_overrides)

    return Settings(**base)
