#!filepath: treebt/observability/timer.py
from contextlib import contextmanager
from time import perf_counter
from typing import Dict, Iterator

from treebt.utils.logger import logs


class Timer:
    """
    Wall-clock timing of named workflow stages.

        timer = Timer()
        with timer.measure("load"):
            ...
        timer.elapsed["load"]

    Disabled timers record nothing and measure as 0.0.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._running: Dict[str, float] = {}
        self._elapsed: Dict[str, float] = {}

    @property
    def elapsed(self) -> Dict[str, float]:
        return dict(self._elapsed)

    def start(self, name: str) -> None:
        if self.enabled:
            self._running[name] = perf_counter()

    def stop(self, name: str) -> float:
        if not self.enabled or name not in self._running:
            return 0.0
        seconds = perf_counter() - self._running.pop(name)
        self._elapsed[name] = self._elapsed.get(name, 0.0) + seconds
        logs.info(f"[Timer] {name} took {seconds:.3f}s")
        return seconds

    @contextmanager
    def measure(self, name: str) -> Iterator[None]:
        self.start(name)
        try:
            yield
        finally:
            self.stop(name)
