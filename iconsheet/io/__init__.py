"""Configuration file loaders."""

from .yaml_loader import ConfigLoadError, load_config

__all__ = ["ConfigLoadError", "load_config"]
