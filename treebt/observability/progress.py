#!filepath: treebt/observability/progress.py
from time import perf_counter
from typing import Optional

from treebt.utils.logger import logs


class ProgressReporter:
    """
    Bar-count progress for a replay (loguru only, no Rich/TQDM).

        p.start("Backtest", total=len(stream), unit="bars")
        p.advance()          # once per bar pulled
        p.done()

    advance() logs every ``every`` units and on the last one.
    """

    def __init__(self, enabled: bool = True, every: int = 1000):
        self.enabled = enabled
        self.every = max(1, every)

        self._task: Optional[str] = None
        self._unit = ""
        self._total = 0
        self._current = 0
        self._t0 = 0.0

    @property
    def current(self) -> int:
        return self._current

    def start(self, task: str, total: int, unit: str = "") -> None:
        self._task = task
        self._total = int(total)
        self._unit = unit
        self._current = 0
        self._t0 = perf_counter()

        if self.enabled:
            logs.info(f"[Progress] {task} started total={self._total} {unit}")

    def advance(self, n: int = 1) -> None:
        self._current += n
        if not self.enabled:
            return
        if self._current % self.every and self._current != self._total:
            return
        logs.info(f"[Progress] {self._task}: {self._current}/{self._total} {self._unit}")

    def done(self) -> float:
        elapsed = perf_counter() - self._t0
        if self.enabled:
            logs.info(
                f"[Progress] {self._task} done {self._current} {self._unit} "
                f"in {elapsed:.2f}s"
            )
        return elapsed
