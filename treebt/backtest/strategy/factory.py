# treebt/backtest/strategy/factory.py
from __future__ import annotations

from typing import Any, Dict, Type

from treebt.backtest.strategy.algo import (
    Algo,
    AboveSMAAlgo,
    BelowSMAAlgo,
    BuyAlgo,
    ExitAlgo,
    FalseAlgo,
    InvestedAlgo,
    MinVolumeAlgo,
    NotInvestedAlgo,
    RunOnceAlgo,
    SellAlgo,
    TrueAlgo,
)
from treebt.backtest.strategy.base import Strategy
from treebt.backtest.strategy.node import Asset
from treebt.utils.errors import ConfigurationError


class StrategyFactory:
    """
    StrategyFactory

    Builds a Strategy tree from backtest.strategy (nested dict):

        name: root
        algos: [{type: run_once}, {type: buy}]
        assets: [AAA]
        children:
          - name: sub
            algos: [...]
            assets: [...]

    All algos must be explicitly registered in StrategyFactory._REGISTRY.
    Adding an algo type requires a deliberate code change here.
    """

    _REGISTRY: Dict[str, Type[Algo]] = {
        "true": TrueAlgo,
        "false": FalseAlgo,
        "run_once": RunOnceAlgo,
        "invested": InvestedAlgo,
        "not_invested": NotInvestedAlgo,
        "min_volume": MinVolumeAlgo,
        "above_sma": AboveSMAAlgo,
        "below_sma": BelowSMAAlgo,
        "buy": BuyAlgo,
        "sell": SellAlgo,
        "exit": ExitAlgo,
    }

    _KEYS = {"name", "algos", "assets", "children"}

    # --------------------------------------------------
    @classmethod
    def create(cls, cfg: Dict[str, Any]) -> Strategy:
        """
        冻结规则：
          - cfg["name"] 必须存在
          - 未注册 algo type -> ConfigurationError
          - 未知 key -> ConfigurationError
        """
        if "name" not in cfg:
            raise ConfigurationError("[StrategyFactory] missing 'name' in strategy config")

        unknown = set(cfg) - cls._KEYS
        if unknown:
            raise ConfigurationError(
                f"[StrategyFactory] unknown keys in strategy {cfg['name']!r}: {sorted(unknown)}"
            )

        strategy = Strategy(cfg["name"])

        for algo_cfg in cfg.get("algos") or []:
            strategy.set_algo(cls.create_algo(algo_cfg))

        for child_cfg in cfg.get("children") or []:
            strategy.add_children(cls.create(child_cfg))

        for symbol in cfg.get("assets") or []:
            strategy.add_children(Asset(str(symbol)))

        return strategy

    @classmethod
    def create_algo(cls, cfg: Dict[str, Any]) -> Algo:
        if "type" not in cfg:
            raise ConfigurationError(f"[StrategyFactory] missing 'type' in algo config: {cfg}")

        typ = cfg["type"]

        if typ not in cls._REGISTRY:
            raise ConfigurationError(f"[StrategyFactory] unknown algo type: {typ}")

        # type 字段不传给 Algo 本体
        params = {k: v for k, v in cfg.items() if k != "type"}

        try:
            return cls._REGISTRY[typ](**params)
        except TypeError as e:
            raise ConfigurationError(
                f"[StrategyFactory] bad params for algo {typ!r}: {params}"
            ) from e
