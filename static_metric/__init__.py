"""Static metric generator.

Turns a small declarative DSL into Python classes that resolve every labeled
child of a prometheus_client metric vec once, up front, with an optional
thread-local auto-flush mode for hot counters and histograms.
"""
from .codegen.pipeline import generate_source, load_metrics, write_module
from .config import GeneratorConfig, load_config
from .version import __version__, get_version

__all__ = [
    "__version__",
    "get_version",
    "GeneratorConfig",
    "load_config",
    "generate_source",
    "load_metrics",
    "write_module",
]
