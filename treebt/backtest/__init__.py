"""
Backtest System

Event-driven replay of historical bars through pluggable handlers:

    data -> strategy -> portfolio -> exchange -> statistic

Core doctrine:
- There is exactly ONE event loop (engine.Backtest).
- State evolves ONLY through immutable events.
- Events are causally chained: Data -> Signal -> Order -> Fill.
- A handler declines by returning None and fails by raising.

Layer responsibilities:
- core      : handler contracts and ledger value types
- strategy  : strategy tree (Strategy / Asset) and algo stacks
- data      : bar providers
- replay    : multi-symbol time ordering
- portfolio : cash / position ledger
- execution : order -> fill simulation
- statistic : event / transaction / equity tracking
"""
