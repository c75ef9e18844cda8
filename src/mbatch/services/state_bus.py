"""Observable last-value slots for batch state and progress.

The dispatcher owns one StateBus. Each batch gets a BatchChannel from
``reset_flow``; emissions through a channel from an earlier batch are dropped
so late output of a replaced batch never reaches observers of the new one.
"""

import logging
import threading
from collections.abc import Callable

from mbatch.models.types import ProcessingState, ProgressSample

logger = logging.getLogger(__name__)

StateCallback = Callable[[ProcessingState | None], None]
ProgressCallback = Callable[[ProgressSample | None], None]


class BatchChannel:
    """Emitter bound to one StateBus epoch."""

    def __init__(self, bus: "StateBus", epoch: int):
        self._bus = bus
        self.epoch = epoch

    @property
    def is_current(self) -> bool:
        return self._bus.epoch == self.epoch

    def emit_state(self, state: ProcessingState) -> bool:
        """Publish a state. Returns False if the channel is stale."""
        return self._bus._publish_state(self.epoch, state)

    def emit_progress(self, progress: float, index: int) -> bool:
        """Publish a progress sample. Returns False if the channel is stale."""
        return self._bus._publish_progress(self.epoch, ProgressSample(progress, index))


class StateBus:
    """Holds the latest ProcessingState and ProgressSample and notifies subscribers."""

    def __init__(self):
        self._lock = threading.RLock()
        self._epoch = 0
        self._state: ProcessingState | None = None
        self._progress: ProgressSample | None = None
        self._state_subscribers: list[StateCallback] = []
        self._progress_subscribers: list[ProgressCallback] = []

    @property
    def epoch(self) -> int:
        with self._lock:
            return self._epoch

    @property
    def latest_state(self) -> ProcessingState | None:
        with self._lock:
            return self._state

    @property
    def latest_progress(self) -> ProgressSample | None:
        with self._lock:
            return self._progress

    def reset_flow(self) -> BatchChannel:
        """Clear both slots and start a new epoch.

        Subscribers are notified with None so they drop the previous batch's
        values.

        Returns:
            Channel for emitting the new batch's state and progress
        """
        with self._lock:
            self._epoch += 1
            self._state = None
            self._progress = None
            logger.debug(f"State bus reset (epoch {self._epoch})")
            self._notify(self._state_subscribers, None)
            self._notify(self._progress_subscribers, None)
            return BatchChannel(self, self._epoch)

    def subscribe_state(self, callback: StateCallback) -> Callable[[], None]:
        """Subscribe to state updates.

        The callback receives the current state immediately (if set), then
        every later update.

        Returns:
            Callable that removes the subscription
        """
        with self._lock:
            self._state_subscribers.append(callback)
            if self._state is not None:
                self._notify([callback], self._state)
        return lambda: self._unsubscribe(self._state_subscribers, callback)

    def subscribe_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        """Subscribe to progress updates; see ``subscribe_state``."""
        with self._lock:
            self._progress_subscribers.append(callback)
            if self._progress is not None:
                self._notify([callback], self._progress)
        return lambda: self._unsubscribe(self._progress_subscribers, callback)

    def _publish_state(self, epoch: int, state: ProcessingState) -> bool:
        with self._lock:
            if epoch != self._epoch:
                logger.debug(f"Dropped stale state from epoch {epoch}: {state}")
                return False
            self._state = state
            self._notify(self._state_subscribers, state)
            return True

    def _publish_progress(self, epoch: int, sample: ProgressSample) -> bool:
        with self._lock:
            if epoch != self._epoch:
                logger.debug(f"Dropped stale progress from epoch {epoch}: {sample}")
                return False
            self._progress = sample
            self._notify(self._progress_subscribers, sample)
            return True

    def _unsubscribe(self, subscribers: list, callback: Callable) -> None:
        with self._lock:
            if callback in subscribers:
                subscribers.remove(callback)

    @staticmethod
    def _notify(subscribers: list, value) -> None:
        for callback in list(subscribers):
            try:
                callback(value)
            except Exception:
                logger.exception("State bus subscriber failed")
