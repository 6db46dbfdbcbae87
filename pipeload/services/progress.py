from __future__ import annotations

import functools
import queue
import sys
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress aggregation across concurrently running file pipelines.

Pipelines never touch the progress map directly. They publish
(file, current_line, total_lines) events through ProgressAggregator.report(),
which is a non-blocking queue put. The aggregator drains the queue, keeps the
latest pair per file and re-renders at most once per interval (default 100ms).
Overall totals are recomputed from the full map on each render.

Rendering uses tqdm and is TTY only: in non-TTY environments (CI, pipes) no
bars are drawn, to avoid ANSI control sequence spam.
"""

__all__ = [
    "ProgressEvent",
    "ProgressSnapshot",
    "ProgressRenderer",
    "ProgressAggregator",
    "TqdmProgressRenderer",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


@dataclass(frozen=True)
class ProgressEvent:
    file_id: str
    current: int
    total: int


@dataclass(frozen=True)
class ProgressSnapshot:
    """Overall and per-file progress at one point in time."""
    current: int
    total: int
    files: dict[str, tuple[int, int]] = field(default_factory=dict)

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return (self.current * 100) // self.total


class ProgressRenderer(Protocol):
    def render(self, snapshot: ProgressSnapshot) -> None: ...

    def close(self) -> None: ...


class ProgressAggregator:
    """Throttled, queue-fed aggregator of per-file line progress.

    Use as a context manager to run a background consumer thread for the
    duration of a run, or call drain() explicitly.
    """

    def __init__(
        self,
        *,
        interval: float = 0.1,
        renderer: ProgressRenderer | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self.renderer = renderer
        self._clock = clock
        self._events: queue.SimpleQueue[ProgressEvent] = queue.SimpleQueue()
        self._files: dict[str, tuple[int, int]] = {}
        self._lock = threading.Lock()
        self._last_render: float | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.render_count = 0

    def report(self, file_id: str, current: int, total: int) -> None:
        """Publish a progress event. Safe to call from any thread."""
        self._events.put(ProgressEvent(file_id, current, total))

    def reporter(self, file_id: str) -> Callable[[int, int], None]:
        """Return a ``(current, total)`` callback bound to ``file_id``."""
        return functools.partial(self.report, file_id)

    def snapshot(self) -> ProgressSnapshot:
        with self._lock:
            files = dict(self._files)
        return ProgressSnapshot(
            current=sum(c for c, _ in files.values()),
            total=sum(t for _, t in files.values()),
            files=files,
        )

    def drain(self, *, force: bool = False) -> ProgressSnapshot | None:
        """Apply queued events and render if the throttle allows it.

        Returns the rendered snapshot, or None when nothing was rendered.
        ``force`` bypasses the throttle (used for the final render).
        """
        applied = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                break
            with self._lock:
                self._files[event.file_id] = (event.current, event.total)
            applied += 1

        now = self._clock()
        if not force:
            if applied == 0:
                return None
            if self._last_render is not None and now - self._last_render < self.interval:
                return None

        self._last_render = now
        snap = self.snapshot()
        self.render_count += 1
        if self.renderer is not None:
            self.renderer.render(snap)
        return snap

    def _consume(self) -> None:
        while not self._stop.wait(self.interval):
            self.drain()

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._consume, name="progress", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the consumer thread, render the final state and close the renderer."""
        if self._thread is not None:
            self._stop.set()
            self._thread.join()
            self._thread = None
        self.drain(force=True)
        if self.renderer is not None:
            self.renderer.close()

    def __enter__(self) -> ProgressAggregator:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


class TqdmProgressRenderer:
    """Draws one overall bar plus one bar per file with tqdm (TTY only)."""

    def __init__(self, *, description: str = "Overall progress") -> None:
        self.description = description
        self.enabled = is_tty_enabled()
        self.overall: TqdmType[Any] | None = None
        self.file_bars: dict[str, TqdmType[Any]] = {}

    def _bar(self, desc: str, position: int) -> TqdmType[Any]:
        return tqdm(
            total=0,
            desc=desc,
            unit="line",
            disable=False,
            leave=True,
            position=position,
            ncols=80,  # Standard width for consistency
            ascii=True,  # ASCII chars for better compatibility
        )

    @staticmethod
    def _update(bar: TqdmType[Any], current: int, total: int) -> None:
        bar.total = total
        bar.n = current
        bar.refresh()

    def render(self, snapshot: ProgressSnapshot) -> None:
        if not self.enabled:
            return
        if self.overall is None:
            self.overall = self._bar(self.description, 0)
        self._update(self.overall, snapshot.current, snapshot.total)
        for file_id, (current, total) in snapshot.files.items():
            bar = self.file_bars.get(file_id)
            if bar is None:
                bar = self._bar(file_id, len(self.file_bars) + 1)
                self.file_bars[file_id] = bar
            self._update(bar, current, total)

    def close(self) -> None:
        for bar in self.file_bars.values():
            bar.close()
        self.file_bars.clear()
        if self.overall is not None:
            self.overall.close()
            self.overall = None
