# treebt/backtest/data/bar_data.py
from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd

from treebt.backtest.core.interfaces import DataHandler
from treebt.backtest.events import DataEvent
from treebt.backtest.replay.multi_symbol import MultiSymbolReplay
from treebt.utils.errors import ConfigurationError
from treebt.utils.logger import logs


class BarDataHandler(DataHandler):
    """
    BarDataHandler

    - 全量预加载（CSV / DataFrame / DataEvent）
    - 多 symbol 按 timestamp 合并成一条 stream
    - next() 推进游标，同时维护 per-symbol history / latest

    CSV layout (one file per symbol, <data_dir>/<SYMBOL>.csv):
        Date,Open,High,Low,Close,Volume
    Header matching is case-insensitive; "timestamp" is accepted for Date.
    """

    REQUIRED = ("open", "high", "low", "close")

    def __init__(self, events: Optional[Iterable[DataEvent]] = None) -> None:
        self._stream: List[DataEvent] = []
        self._cursor = 0
        self._latest: Dict[str, DataEvent] = {}
        self._history: Dict[str, List[DataEvent]] = defaultdict(list)

        if events is not None:
            self.load_events(events)

    # --------------------------------------------------
    # loading
    # --------------------------------------------------
    @classmethod
    def from_csv(cls, data_dir: str | Path, symbols: List[str]) -> BarDataHandler:
        handler = cls()
        handler.load_csv(data_dir, symbols)
        return handler

    def load_csv(self, data_dir: str | Path, symbols: List[str]) -> None:
        data_dir = Path(data_dir)
        frames: Dict[str, pd.DataFrame] = {}

        for symbol in symbols:
            path = data_dir / f"{symbol}.csv"
            if not path.exists():
                raise ConfigurationError(f"[BarDataHandler] data file not found: {path}")

            frames[symbol] = pd.read_csv(path)
            logs.debug(f"[BarDataHandler] loaded {path} rows={len(frames[symbol])}")

        self.load_frames(frames)

    def load_frames(self, frames: Dict[str, pd.DataFrame]) -> None:
        streams = {
            symbol: iter(self._frame_to_events(symbol, df))
            for symbol, df in frames.items()
        }
        self._load_streams(streams)

    def load_events(self, events: Iterable[DataEvent]) -> None:
        """
        Events are trusted to be time-ordered per symbol;
        a regression raises during the merge.
        """
        grouped: Dict[str, List[DataEvent]] = {}
        for ev in events:
            grouped.setdefault(ev.symbol, []).append(ev)

        self._load_streams({symbol: iter(evs) for symbol, evs in grouped.items()})

    def _load_streams(self, streams: Dict[str, Iterable[DataEvent]]) -> None:
        if streams:
            self._stream = list(MultiSymbolReplay(streams).replay())
        else:
            self._stream = []

        self.reset()
        logs.info(
            f"[BarDataHandler] stream ready bars={len(self._stream)} "
            f"symbols={sorted(streams)}"
        )

    @classmethod
    def _frame_to_events(cls, symbol: str, df: pd.DataFrame) -> List[DataEvent]:
        df = df.rename(columns=lambda c: str(c).strip().lower().replace(" ", "_"))

        if "date" not in df.columns and "timestamp" in df.columns:
            df = df.rename(columns={"timestamp": "date"})

        missing = [c for c in ("date", *cls.REQUIRED) if c not in df.columns]
        if missing:
            raise ConfigurationError(
                f"[BarDataHandler] {symbol}: missing columns {missing}"
            )

        if "volume" not in df.columns:
            df = df.assign(volume=0.0)

        df = df.assign(date=pd.to_datetime(df["date"]))

        n_before = len(df)
        df = df.dropna(subset=["close"])
        if len(df) < n_before:
            logs.warning(
                f"[BarDataHandler] {symbol}: dropped {n_before - len(df)} rows without close"
            )

        df = df.sort_values("date", kind="mergesort")

        return [
            DataEvent(
                symbol=symbol,
                timestamp=row.date.to_pydatetime(),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume) if pd.notna(row.volume) else 0.0,
            )
            for row in df.itertuples(index=False)
        ]

    # --------------------------------------------------
    # DataHandler
    # --------------------------------------------------
    def stream(self) -> List[DataEvent]:
        return list(self._stream)

    def next(self) -> Optional[DataEvent]:
        if self._cursor >= len(self._stream):
            return None

        event = self._stream[self._cursor]
        self._cursor += 1

        self._latest[event.symbol] = event
        self._history[event.symbol].append(event)
        return event

    def latest(self, symbol: str) -> Optional[DataEvent]:
        return self._latest.get(symbol)

    def history(self, symbol: str) -> List[DataEvent]:
        return list(self._history.get(symbol, []))

    def symbols(self) -> List[str]:
        return sorted({ev.symbol for ev in self._stream})

    def reset(self) -> None:
        self._cursor = 0
        self._latest.clear()
        self._history.clear()
