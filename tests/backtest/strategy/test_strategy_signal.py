# tests/backtest/strategy/test_strategy_signal.py
from __future__ import annotations

from treebt.backtest.events import Direction, SignalEvent
from treebt.backtest.strategy.algo import ExitAlgo, FalseAlgo, SellAlgo, TrueAlgo
from treebt.backtest.strategy.base import Strategy
from treebt.backtest.strategy.node import Asset


def test_direct_asset_emits_buy_by_default(make_bar):
    s = Strategy("root").add_children(Asset("AAA"))
    bar = make_bar("AAA")

    signal = s.calculate_signal(bar, None, None)

    assert signal == SignalEvent(symbol="AAA", timestamp=bar.timestamp, direction=Direction.BUY)


def test_unknown_symbol_yields_none(make_bar):
    s = Strategy("root").add_children(Asset("AAA"))
    assert s.calculate_signal(make_bar("ZZZ"), None, None) is None


def test_failing_stack_blocks_signal(make_bar):
    s = Strategy("root").set_algo(FalseAlgo())
    s.add_children(Asset("AAA"))

    assert s.calculate_signal(make_bar("AAA"), None, None) is None


def test_parent_and_child_stacks_form_and_chain(make_bar):
    root = Strategy("root").set_algo(TrueAlgo())
    sub = Strategy("sub").set_algo(FalseAlgo())
    sub.add_children(Asset("AAA"))
    root.add_children(sub)

    assert root.calculate_signal(make_bar("AAA"), None, None) is None


def test_parent_failure_skips_children(make_bar, fakes):
    calls = []
    root = Strategy("root").set_algo(FalseAlgo())
    sub = Strategy("sub").set_algo(fakes.RecordingAlgo(True, calls, "sub"))
    sub.add_children(Asset("AAA"))
    root.add_children(sub)

    assert root.calculate_signal(make_bar("AAA"), None, None) is None
    assert calls == []


def test_first_matching_child_wins(make_bar):
    root = Strategy("root")
    entry = Strategy("entry").set_algo(FalseAlgo())
    exit_ = Strategy("exit").set_algo(ExitAlgo())
    sell = Strategy("sell").set_algo(SellAlgo())
    for s in (entry, exit_, sell):
        s.add_children(Asset("AAA"))
    root.add_children(entry, exit_, sell)

    signal = root.calculate_signal(make_bar("AAA"), None, None)

    assert signal.direction is Direction.EXIT


def test_unrelated_branch_algos_not_evaluated(make_bar, fakes):
    calls = []
    root = Strategy("root")
    a = Strategy("a").set_algo(fakes.RecordingAlgo(True, calls, "a"))
    a.add_children(Asset("AAA"))
    b = Strategy("b").set_algo(fakes.RecordingAlgo(True, calls, "b"))
    b.add_children(Asset("BBB"))
    root.add_children(a, b)

    signal = root.calculate_signal(make_bar("BBB"), None, None)

    assert signal.symbol == "BBB"
    assert calls == ["b"]


def test_parent_direction_carried_to_child(make_bar):
    root = Strategy("root").set_algo(SellAlgo())
    sub = Strategy("sub")
    sub.add_children(Asset("AAA"))
    root.add_children(sub)

    assert root.calculate_signal(make_bar("AAA"), None, None).direction is Direction.SELL


def test_tree_references_used_when_not_passed(make_bar, fakes):
    seen = {}

    class _Spy(fakes.RecordingAlgo):
        def run(self, ctx):
            seen["data"] = ctx.data
            seen["portfolio"] = ctx.portfolio
            seen["strategy"] = ctx.strategy
            return True

    data, portfolio = object(), object()
    root = Strategy("root")
    sub = Strategy("sub").set_algo(_Spy(True, [], "spy"))
    sub.add_children(Asset("AAA"))
    root.add_children(sub)
    root.set_data(data)
    root.set_portfolio(portfolio)

    root.calculate_signal(make_bar("AAA"))

    assert seen == {"data": data, "portfolio": portfolio, "strategy": sub}
