"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/monitor.py
Background observer of the loader -> fingerprint channel.
Warns when decoded images pile up, i.e. loading outruns fingerprinting.
"""

import logging
import threading
from typing import Optional

from imgdedup.core.channel import Channel
from imgdedup.core.models import PipelineConfig

logger = logging.getLogger(__name__)


class QueueMonitor:
    """
    Samples channel depth on its own thread. Never touches the channel contents.

    Args:
        channel: Channel to observe
        tick: Seconds between wake-ups; also the upper bound on stop() latency
        report_every: Number of ticks between depth checks
    """

    def __init__(
            self,
            channel: Channel,
            tick: float = PipelineConfig.MONITOR_TICK,
            report_every: int = PipelineConfig.MONITOR_REPORT_TICKS
    ):
        self.channel = channel
        self.tick = tick
        self.report_every = max(1, report_every)
        self.warnings_emitted = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "QueueMonitor":
        self._thread = threading.Thread(target=self._monitor, name="queue-monitor", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        """Request cancellation and wait for the thread to exit."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def _monitor(self) -> None:
        ticks = 0
        while not self._stop_event.wait(self.tick):
            ticks += 1
            if ticks % self.report_every:
                continue
            depth = self.channel.qsize()
            if depth:
                self.warnings_emitted += 1
                logger.warning(
                    f"⚠️ {depth} decoded image(s) waiting in queue "
                    f"(capacity {self.channel.capacity}): loading is outrunning fingerprinting"
                )
