from .app_config import AppConfig
from .backtest_config import BacktestConfig
from .log_config import LogConfig

__all__ = ["AppConfig", "BacktestConfig", "LogConfig"]
