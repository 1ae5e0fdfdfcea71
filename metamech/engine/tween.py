"""Animated counters for the ROI results panel.

``ValueTweenController`` eases the displayed values toward the latest
``ROIResult``. Every retarget restarts the easing from whatever is on screen
at that moment, so rapid input changes never make the counters jump.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import fields
from typing import Callable, Optional

from metamech.models.roi import AnimatedROIResult, ROIResult

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 1500.0
DEFAULT_FRAME_INTERVAL_MS = 16.0

# (values, settled) -- settled is True on the final frame of an animation
FrameCallback = Callable[[AnimatedROIResult, bool], None]

_FIELDS = tuple(f.name for f in fields(AnimatedROIResult))


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def ease_out_cubic(t: float) -> float:
    """e(t) = 1 - (1 - t)^3"""
    return 1 - (1 - t) ** 3


def _interpolate(
    start: AnimatedROIResult, target: AnimatedROIResult, eased: float
) -> AnimatedROIResult:
    values = {}
    for name in _FIELDS:
        a = getattr(start, name)
        b = getattr(target, name)
        values[name] = a + (b - a) * eased
    return AnimatedROIResult(**values)


class ValueTweenController:
    """Drives the on-screen ROI counters toward their target values.

    Only one animation runs at a time. A retarget during an animation
    replaces its start point and target instead of queueing another one.
    When an asyncio loop is running, frames are produced by a background
    task; otherwise callers advance the animation with ``tick()``.
    """

    def __init__(
        self,
        duration_ms: float = DEFAULT_DURATION_MS,
        frame_interval_ms: float = DEFAULT_FRAME_INTERVAL_MS,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        if duration_ms <= 0:
            raise ValueError(f"duration_ms must be positive, got {duration_ms}")
        self._duration = duration_ms
        self._frame_interval = frame_interval_ms
        self._clock = clock or _monotonic_ms

        self._displayed = AnimatedROIResult()
        self._start = AnimatedROIResult()
        self._target = AnimatedROIResult()
        self._start_time = 0.0
        self._animating = False
        self._disposed = False

        self._task: Optional[asyncio.Task] = None
        self._subscribers: list[FrameCallback] = []

    @property
    def displayed(self) -> AnimatedROIResult:
        """Values as of the last rendered frame."""
        return self._displayed

    @property
    def target(self) -> AnimatedROIResult:
        return self._target

    @property
    def is_animating(self) -> bool:
        return self._animating

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, callback: FrameCallback) -> Callable[[], None]:
        """Register a frame callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _progress(self, now: float) -> float:
        return min(max((now - self._start_time) / self._duration, 0.0), 1.0)

    def value_at(self, now: float) -> AnimatedROIResult:
        """Displayed values at time ``now`` (same units as the clock)."""
        if not self._animating:
            return self._displayed
        progress = self._progress(now)
        if progress >= 1.0:
            return self._target
        return _interpolate(self._start, self._target, ease_out_cubic(progress))

    def retarget(self, new_result: ROIResult) -> None:
        """Start easing from the live displayed values toward ``new_result``."""
        if self._disposed:
            logger.debug("Ignoring retarget on a disposed tween controller")
            return

        now = self._clock()
        live = self.value_at(now)
        self._displayed = live
        self._start = live
        self._target = AnimatedROIResult.from_result(new_result)
        self._start_time = now

        if self._start == self._target:
            # Nothing to animate: settle on the spot.
            self._animating = False
            self._notify(self._target, settled=True)
            return

        self._animating = True
        self._ensure_running()

    def tick(self, now: Optional[float] = None) -> bool:
        """Render one frame. Returns True while the animation is still running."""
        if self._disposed or not self._animating:
            return False
        if now is None:
            now = self._clock()
        value = self.value_at(now)
        self._displayed = value
        if self._progress(now) >= 1.0:
            self._animating = False
        self._notify(value, settled=not self._animating)
        return self._animating

    def dispose(self) -> None:
        """Stop scheduling frames and drop subscribers. Safe to call twice."""
        self._disposed = True
        self._animating = False
        self._subscribers.clear()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _ensure_running(self) -> None:
        if self._task is not None and not self._task.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the caller drives frames with tick().
            return
        self._task = loop.create_task(self._run())

    async def _run(self) -> None:
        try:
            while self.tick():
                await asyncio.sleep(self._frame_interval / 1000.0)
        except asyncio.CancelledError:
            logger.debug("Tween animation cancelled")
            raise
        finally:
            if self._task is asyncio.current_task():
                self._task = None

    def _notify(self, value: AnimatedROIResult, settled: bool) -> None:
        for callback in list(self._subscribers):
            try:
                callback(value, settled)
            except Exception:
                logger.exception("Tween frame subscriber failed")
