"""
Configuration module for the static-metric generator.
"""
from .loader import SCHEMA, GeneratorConfig, load_config

__all__ = ["SCHEMA", "GeneratorConfig", "load_config"]
