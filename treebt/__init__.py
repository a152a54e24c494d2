#!filepath: treebt/__init__.py

from .utils.logger import Logging, logs, init_logging
from .utils.errors import BacktestError, ConfigurationError
from .config.app_config import AppConfig

__version__ = "0.1.0"

__all__ = [
    "logs", "Logging", "init_logging",
    "BacktestError", "ConfigurationError",
    "AppConfig",
    "__version__",
]
