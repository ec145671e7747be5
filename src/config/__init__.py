"""Configuration module — exports Settings and the config loaders."""

from src.config.loader import build_pipeline_config, load_config
from src.config.settings import Settings

__all__ = ["Settings", "build_pipeline_config", "load_config"]
