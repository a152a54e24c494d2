# treebt/backtest/replay/multi_symbol.py
from __future__ import annotations

import heapq
from datetime import datetime
from typing import Dict, Iterator, List, Optional, Tuple

from treebt.backtest.events import DataEvent
from treebt.utils.logger import logs


class MultiSymbolReplay:
    """
    MultiSymbolReplay

    职责：
      - 多 symbol DataEvent 流合并（k-way merge）
      - 保证全局 timestamp 单调不回退
      - 不修改 event

    输入假设：
      - 每个 iterator 内部 timestamp 单调递增

    Ordering:
      Events are ordered by timestamp (ascending). Equal timestamps keep
      the insertion order of the streams, then the order within a stream.
    """

    def __init__(self, streams: Dict[str, Iterator[DataEvent]]):
        """
        streams:
          symbol -> DataEvent iterator
        """
        if not streams:
            raise ValueError("[MultiSymbolReplay] empty streams")

        self._streams = streams

    # --------------------------------------------------
    def replay(self) -> Iterator[DataEvent]:
        # heap item: (timestamp, stream rank, seq, event, iterator)
        heap: List[Tuple[datetime, int, int, DataEvent, Iterator[DataEvent]]] = []

        seq = 0
        last_ts: Optional[datetime] = None

        for rank, (symbol, it) in enumerate(self._streams.items()):
            try:
                ev = next(it)
            except StopIteration:
                logs.warning(f"[MultiSymbolReplay] empty event stream: {symbol}")
                continue

            heap.append((ev.timestamp, rank, seq, ev, it))
            seq += 1

        heapq.heapify(heap)

        while heap:
            ts, rank, _, ev, it = heapq.heappop(heap)

            # 全局时间语义断言（不可修复）
            if last_ts is not None and ts < last_ts:
                raise RuntimeError(
                    "[MultiSymbolReplay] global timestamp regression: "
                    f"{ts} < {last_ts} (symbol={ev.symbol})"
                )

            last_ts = ts
            yield ev

            try:
                nxt = next(it)
            except StopIteration:
                continue

            heapq.heappush(heap, (nxt.timestamp, rank, seq, nxt, it))
            seq += 1
