"""YAML configuration loader with environment variable overrides.

Configuration is loaded in layers (later layers override earlier):

  1. ``config/config.yaml`` -- static defaults checked into the repo
  2. ``.env`` file           -- local developer overrides
  3. Environment variables   -- set at deploy time

:func:`load_config` reads the YAML file and deep-merges the values from
:class:`Settings` on top.  :func:`build_pipeline_config` turns the merged
``pipeline`` section into a frozen :class:`PipelineConfig`.

The ``_deep_merge`` helper does recursive dict merging::

    base      = {"pipeline": {"batch_size": 3, "retry": {"max_retries": 5}}}
    overrides = {"pipeline": {"retry": {"max_retries": 7}}}
    result    = {"pipeline": {"batch_size": 3, "retry": {"max_retries": 7}}}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from src.config.settings import Settings
from src.models.pipeline import PipelineConfig, RetryPolicy


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file yields
              an empty base config.
        settings: Settings instance to take overrides from.  A fresh one is
                  built from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            # safe_load only builds plain Python types from the YAML.
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    # Build env-based overrides from the pydantic-settings Settings object.
    # Pipeline fields left unset (None) are dropped so YAML values survive.
    settings = settings or Settings()
    pipeline_overrides = {
        "chunk_size": settings.chunk_size,
        "batch_size": settings.batch_size,
        "batch_delay": settings.batch_delay,
        "retry": {
            "max_retries": settings.max_retries,
            "initial_delay": settings.retry_initial_delay,
            "server_error_delay": settings.retry_server_error_delay,
            "max_regenerations": settings.max_regenerations,
        },
    }
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
        "pipeline": _drop_unset(pipeline_overrides),
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def build_pipeline_config(config: dict) -> PipelineConfig:
    """Build a :class:`PipelineConfig` from the ``pipeline`` config section.

    Keys missing from the section fall back to the model defaults.
    """
    section: dict[str, Any] = dict(config.get("pipeline") or {})
    retry_section: dict[str, Any] = dict(section.pop("retry", None) or {})
    generation: dict[str, Any] = dict(config.get("generation") or {})

    # YAML uses chunk_size; the model field is max_chunk_chars.
    fields: dict[str, Any] = {}
    if "chunk_size" in section:
        fields["max_chunk_chars"] = int(section["chunk_size"])
    for key in ("batch_size", "batch_delay", "split_on_whitespace"):
        if key in section:
            fields[key] = section[key]
    for key in ("temperature", "max_tokens"):
        if key in generation:
            fields[key] = generation[key]

    return PipelineConfig(retry=RetryPolicy(**retry_section), **fields)


def _drop_unset(values: dict) -> dict:
    """Return a copy of *values* without ``None`` leaves or empty sub-dicts."""
    cleaned: dict = {}
    for key, value in values.items():
        if isinstance(value, dict):
            nested = _drop_unset(value)
            if nested:
                cleaned[key] = nested
        elif value is not None:
            cleaned[key] = value
    return cleaned


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
