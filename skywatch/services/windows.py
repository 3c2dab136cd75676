"""
Window detector — finds contiguous runs of good hours in a forecast.

Single left-to-right pass. The open window is a running aggregate (start,
count, score sum, temperature sum, peak) so memory stays constant no matter how long the forecast
is; `iter_windows` streams finalized windows in encounter order and
`find_windows` ranks them.

Rules
-----
  score >= min_score        opens or extends the current window
  score <  min_score        closes the current window
  end of input              closes the current window (runs off the end)
  duration < min_duration   window dropped
  ranking                   peak_score descending, earlier window wins ties

Samples are assumed evenly spaced (spacing_minutes) and time-ordered;
callers validate ordering at the boundary.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Union

from skywatch.services.samples import HourlySample, to_float
from skywatch.services.scoring import score

SampleLike = Union[HourlySample, Mapping[str, Any]]
Scorer = Callable[[HourlySample, Optional[str]], Any]


@dataclass(frozen=True)
class Window:
    start: Optional[datetime]
    end: Optional[datetime]
    duration_minutes: int
    peak_score: int
    avg_score: int
    peak_time: Optional[datetime]
    sample_count: int
    avg_temperature: Optional[int] = None


def _half_up(total: Union[int, float], count: int) -> int:
    avg = Decimal(str(total)) / Decimal(count)
    return int(avg.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class _OpenWindow:
    """Running aggregates for the window currently being extended."""

    __slots__ = ("start", "count", "total", "peak", "peak_time", "temp_total", "temp_count")

    def __init__(self, sample: HourlySample, value: int) -> None:
        self.start = sample.time
        self.count = 1
        self.total = value
        self.peak = value
        self.peak_time = sample.time
        self.temp_total = 0.0
        self.temp_count = 0
        self._add_temperature(sample)

    def _add_temperature(self, sample: HourlySample) -> None:
        # hours without a reading don't count toward the average
        temperature = to_float(sample.temperature)
        if temperature is not None:
            self.temp_total += temperature
            self.temp_count += 1

    def extend(self, sample: HourlySample, value: int) -> None:
        self.count += 1
        self.total += value
        self._add_temperature(sample)
        # strict: the first hour reaching the peak anchors it
        if value > self.peak:
            self.peak = value
            self.peak_time = sample.time

    def finalize(self, spacing_minutes: int) -> Window:
        duration = self.count * spacing_minutes
        return Window(
            start=self.start,
            end=self.start + timedelta(minutes=duration) if self.start is not None else None,
            duration_minutes=duration,
            peak_score=self.peak,
            avg_score=_half_up(self.total, self.count),
            peak_time=self.peak_time,
            sample_count=self.count,
            avg_temperature=_half_up(self.temp_total, self.temp_count) if self.temp_count else None,
        )


def iter_windows(
    samples: Iterable[SampleLike],
    profile_name: Optional[str] = "default",
    *,
    min_score: int = 65,
    min_duration_minutes: int = 60,
    spacing_minutes: int = 60,
    scorer: Scorer = score,
) -> Iterator[Window]:
    """Yield qualifying windows in the order they occur."""
    current: Optional[_OpenWindow] = None
    for raw in samples:
        sample = raw if isinstance(raw, HourlySample) else HourlySample.from_mapping(raw)
        value = scorer(sample, profile_name).score
        if value >= min_score:
            if current is None:
                current = _OpenWindow(sample, value)
            else:
                current.extend(sample, value)
            continue
        if current is not None:
            window = current.finalize(spacing_minutes)
            current = None
            if window.duration_minutes >= min_duration_minutes:
                yield window

    if current is not None:
        window = current.finalize(spacing_minutes)
        if window.duration_minutes >= min_duration_minutes:
            yield window


def find_windows(
    samples: Iterable[SampleLike],
    profile_name: Optional[str] = "default",
    *,
    min_score: int = 65,
    min_duration_minutes: int = 60,
    max_windows: int = 3,
    spacing_minutes: int = 60,
    scorer: Scorer = score,
) -> list[Window]:
    """Best windows, highest peak first, at most `max_windows`."""
    if max_windows <= 0:
        return []
    windows = list(iter_windows(
        samples,
        profile_name,
        min_score=min_score,
        min_duration_minutes=min_duration_minutes,
        spacing_minutes=spacing_minutes,
        scorer=scorer,
    ))
    windows.sort(key=lambda w: w.peak_score, reverse=True)
    return windows[:max_windows]
