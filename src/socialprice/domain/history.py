# src/socialprice/domain/history.py
"""
History Builders - Running Aggregate Chart Series

Turns a stream of (timestamp, value) samples, in any arrival order, into a
bounded series of HistoryPoint values suitable for charting. Samples are
grouped into minute buckets; each bucket emits one point summarizing ALL
samples up to and including that bucket, not just the bucket itself.

- RunningAverage: "social consensus so far" (votes)
- RunningMaximum: "best offer so far" (offers)

Both keep their running state so that a single new sample can be folded in
without recomputing from scratch. Values must already be in the display
currency.

Files that USE this module:
- socialprice.application.stores.votes (RunningAverage)
- socialprice.application.stores.offers (RunningMaximum)
- tests.test_history (unit tests)

Files that this module USES:
- socialprice.domain.models (HistoryPoint)
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from socialprice.domain.models import HistoryPoint

DEFAULT_WINDOW = 15


def bucket_key(ts: datetime) -> datetime:
    """Truncate a timestamp to minute resolution."""
    return ts.replace(second=0, microsecond=0)


def point_labels(ts: datetime) -> tuple[str, str]:
    """Return the ('HH:MM', 'DD/MM') labels for a timestamp."""
    return ts.strftime("%H:%M"), ts.strftime("%d/%m")


class RunningAggregate:
    """Base class for bucketed running aggregates."""

    def __init__(self, window: int = DEFAULT_WINDOW):
        if window < 1:
            raise ValueError("window must be at least 1")
        self.window = window
        self._points: list[HistoryPoint] = []
        self._samples: list[tuple[datetime, float]] = []
        self._last_bucket: Optional[datetime] = None
        self._reset_state()

    # --- aggregate hooks ---

    def _reset_state(self) -> None:
        raise NotImplementedError

    def _fold(self, value: float) -> None:
        raise NotImplementedError

    def _current(self) -> float:
        raise NotImplementedError

    # --- public API ---

    @property
    def points(self) -> list[HistoryPoint]:
        return list(self._points)

    def clear(self) -> None:
        self._points = []
        self._samples = []
        self._last_bucket = None
        self._reset_state()

    def rebuild(self, samples: Iterable[tuple[datetime, float]]) -> list[HistoryPoint]:
        """
        Recompute the whole series from (timestamp, value) samples.

        Samples are ordered by timestamp first, so every minute bucket yields
        exactly one point whatever order the samples arrived in.

        Returns:
            The rebuilt series (at most `window` points)
        """
        ordered = sorted(samples, key=lambda sample: sample[0])
        self.clear()
        for ts, value in ordered:
            self._fold_sample(ts, value)
        return self.points

    def append(self, ts: datetime, value: float) -> list[HistoryPoint]:
        """
        Fold one new sample into the running state.

        A sample in the same minute bucket as the last point replaces that
        point; a later bucket appends a new point and the oldest points are
        dropped beyond the window. A sample for an earlier minute than the
        last point rebuilds the series.
        """
        if self._last_bucket is not None and bucket_key(ts) < self._last_bucket:
            return self.rebuild([*self._samples, (ts, value)])
        return self._fold_sample(ts, value)

    def _fold_sample(self, ts: datetime, value: float) -> list[HistoryPoint]:
        self._samples.append((ts, value))
        self._fold(value)
        key = bucket_key(ts)
        time_label, date_label = point_labels(key)
        point = HistoryPoint(value=self._current(), time=time_label, date=date_label)

        if self._points and key == self._last_bucket:
            if self._points[-1] != point:
                self._points[-1] = point
        else:
            self._points.append(point)
            self._last_bucket = key
            if len(self._points) > self.window:
                del self._points[: len(self._points) - self.window]
        return self.points


class RunningAverage(RunningAggregate):
    """Cumulative mean of every sample seen so far."""

    def _reset_state(self) -> None:
        self._total = 0.0
        self._count = 0

    def _fold(self, value: float) -> None:
        self._total += value
        self._count += 1

    def _current(self) -> float:
        return self._total / self._count if self._count else 0.0


class RunningMaximum(RunningAggregate):
    """Cumulative maximum of every sample seen so far."""

    def _reset_state(self) -> None:
        self._max: Optional[float] = None

    def _fold(self, value: float) -> None:
        if self._max is None or value > self._max:
            self._max = value

    def _current(self) -> float:
        return self._max if self._max is not None else 0.0
