#!filepath: treebt/workflows/run_backtest.py
from __future__ import annotations

from typing import Optional

from treebt.config.app_config import AppConfig
from treebt.utils.logger import init_logging, logs

from treebt.backtest.data.bar_data import BarDataHandler
from treebt.backtest.engine import Backtest
from treebt.backtest.execution.exchange import Exchange
from treebt.backtest.portfolio.portfolio import Portfolio
from treebt.backtest.statistic.statistic import Statistic
from treebt.backtest.strategy.factory import StrategyFactory
from treebt.observability.timer import Timer


def build_backtest(cfg: AppConfig, data: Optional[BarDataHandler] = None) -> Backtest:
    """
    Wire a Backtest from config. ``data`` overrides CSV loading (tests / notebooks).
    """
    bt_cfg = cfg.backtest

    if data is None:
        data = BarDataHandler.from_csv(bt_cfg.data_dir, bt_cfg.symbols)

    strategy = StrategyFactory.create(bt_cfg.strategy)

    portfolio = Portfolio(
        initial_cash=bt_cfg.initial_cash,
        order_size=bt_cfg.order_size,
        commission=bt_cfg.commission,
        commission_rate=bt_cfg.commission_rate,
        exchange_fee=bt_cfg.exchange_fee,
    )
    exchange = Exchange(
        commission=bt_cfg.commission,
        commission_rate=bt_cfg.commission_rate,
        exchange_fee=bt_cfg.exchange_fee,
    )

    return Backtest(
        symbols=bt_cfg.symbols,
        data=data,
        strategy=strategy,
        portfolio=portfolio,
        exchange=exchange,
        statistic=Statistic(),
    )


@logs.catch("backtest workflow failed")
def run_backtest(
    config_path: Optional[str] = None,
    timer: Optional[Timer] = None,
) -> Statistic:
    cfg = AppConfig.load(config_path)
    init_logging(cfg.log)
    timer = timer or Timer()

    logs.info(f"[Workflow] backtest={cfg.backtest.name}")

    with timer.measure("load"):
        bt = build_backtest(cfg)
    with timer.measure("run"):
        bt.run()
    return bt.statistic


if __name__ == "__main__":
    # python -m treebt.workflows.run_backtest
    run_backtest()
