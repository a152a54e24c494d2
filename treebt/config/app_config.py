#!filepath: treebt/config/app_config.py
import os

import yaml
from pydantic import BaseModel

from .log_config import LogConfig
from .backtest_config import BacktestConfig
from treebt.utils.logger import logs


def default_config_path() -> str:
    """
    treebt/config/app_config.py → treebt/config/base.yml
    """
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = LogConfig()
    backtest: BacktestConfig

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置
        - 默认使用 treebt/config/base.yml
        - 不依赖当前工作目录
        """
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        logs.debug(f"[AppConfig] loaded {path}")
        return cls(**raw)
