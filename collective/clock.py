# clock.py
# ------------------------------------------------------------
# Simple wall-clock timer used for the timing lines of a build.

from __future__ import annotations

import time

FORMAT_SECONDS = "seconds"
FORMAT_HHMMSS = "hh:mm:ss"


class Clock:
    """Measures the time between start() and stop()."""

    def __init__(self, output_format: str = FORMAT_SECONDS):
        if output_format not in (FORMAT_SECONDS, FORMAT_HHMMSS):
            raise ValueError(f"Unknown clock format: {output_format}")
        self.output_format = output_format
        self._start = None
        self._stop = None

    def start(self) -> "Clock":
        self._start = time.perf_counter()
        self._stop = None
        return self

    def stop(self) -> "Clock":
        if self._start is None:
            raise RuntimeError("Clock was never started")
        self._stop = time.perf_counter()
        return self

    @property
    def running(self) -> bool:
        return self._start is not None and self._stop is None

    @property
    def elapsed(self) -> float:
        if self._start is None:
            return 0.0
        end = self._stop if self._stop is not None else time.perf_counter()
        return end - self._start

    def __str__(self):
        seconds = self.elapsed
        if self.output_format == FORMAT_SECONDS:
            return f"{seconds:.3f}"
        hours, rest = divmod(int(seconds), 3600)
        minutes, secs = divmod(rest, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
