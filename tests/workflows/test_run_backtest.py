# tests/workflows/test_run_backtest.py
from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest
import yaml
from typer.testing import CliRunner

from treebt.backtest.engine import Backtest
from treebt.backtest.data.bar_data import BarDataHandler
from treebt.backtest.strategy.base import Strategy
from treebt.cli import app
from treebt.config import AppConfig
from treebt.observability.timer import Timer
from treebt.workflows.run_backtest import build_backtest, run_backtest


CLOSES = [10.0, 10.0, 10.0, 12.0, 14.0, 16.0, 9.0, 8.0]


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """
    AAA: flat, rally (BUY on day 3 @12), drop (EXIT on day 6 @9)
    """
    dates = pd.date_range("2024-01-02", periods=len(CLOSES), freq="D")
    pd.DataFrame(
        {
            "Date": dates.strftime("%Y-%m-%d"),
            "Open": CLOSES,
            "High": CLOSES,
            "Low": CLOSES,
            "Close": CLOSES,
            "Volume": [1_000] * len(CLOSES),
        }
    ).to_csv(tmp_path / "AAA.csv", index=False)

    data = {
        "log": {"level": "WARNING"},
        "backtest": {
            "name": "sma",
            "symbols": ["AAA"],
            "data_dir": str(tmp_path),
            "initial_cash": 10_000,
            "order_size": 10,
            "strategy": {
                "name": "root",
                "children": [
                    {
                        "name": "entry",
                        "algos": [
                            {"type": "not_invested"},
                            {"type": "above_sma", "window": 3},
                            {"type": "buy"},
                        ],
                        "assets": ["AAA"],
                    },
                    {
                        "name": "exit",
                        "algos": [
                            {"type": "invested"},
                            {"type": "below_sma", "window": 3},
                            {"type": "exit"},
                        ],
                        "assets": ["AAA"],
                    },
                ],
            },
        },
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


def test_build_backtest_wires_handlers(config_file: Path):
    cfg = AppConfig.load(str(config_file))

    bt = build_backtest(cfg)

    assert isinstance(bt, Backtest)
    assert isinstance(bt.strategy, Strategy)
    assert isinstance(bt.data, BarDataHandler)
    assert len(bt.data.stream()) == len(CLOSES)
    assert bt.portfolio.initial_cash() == 10_000.0
    assert bt.portfolio.commission_rate == bt.exchange.commission_rate


def test_run_backtest_end_to_end(config_file: Path):
    timer = Timer()
    statistic = run_backtest(str(config_file), timer=timer)

    assert set(timer.elapsed) == {"load", "run"}

    txns = statistic.transactions
    assert [(t.direction.value, t.quantity, t.price) for t in txns] == [
        ("BUY", 10, 12.0),
        ("EXIT", 10, 9.0),
    ]
    assert txns[-1].cash_after == pytest.approx(10_000.0 - 120.0 + 90.0)

    result = statistic.result()
    assert result.event_counts == {
        "DataEvent": 8,
        "SignalEvent": 2,
        "OrderEvent": 2,
        "FillEvent": 2,
    }
    assert result.n_transactions == 2


def test_run_backtest_missing_data_raises(config_file: Path):
    (config_file.parent / "AAA.csv").unlink()

    with pytest.raises(Exception, match="not found"):
        run_backtest(str(config_file))


def test_cli_version():
    result = CliRunner().invoke(app, ["version"])

    assert result.exit_code == 0
    assert "v0.1.0" in result.output


def test_cli_run(config_file: Path):
    result = CliRunner().invoke(app, ["run", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "transactions=2" in result.output
