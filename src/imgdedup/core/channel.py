"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/channel.py
Bounded multi-producer/multi-consumer hand-off between pipeline stages.

A Channel wraps queue.Queue and adds the two signals the pipeline needs:
  • close(): the producer is done; receivers drain what is buffered, then stop
  • hang-up: every receiver that ever connected has left; send() fails instead
    of blocking forever on a full queue
"""

import queue
import threading
from contextlib import contextmanager
from typing import Any, Iterator

from imgdedup.core.errors import ChannelDisconnected

_CLOSED = object()


class Channel:
    """
    FIFO channel between threads.

    Args:
        capacity: Maximum buffered items; send() blocks while full. 0 means unbounded.
        poll_interval: How often (seconds) a blocked send re-checks for hang-up.
    """

    def __init__(self, capacity: int = 0, poll_interval: float = 0.1):
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._receivers = 0
        self._connected = False
        self._closed = False
        self._poll_interval = poll_interval

    @property
    def capacity(self) -> int:
        return self._queue.maxsize

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def hung_up(self) -> bool:
        """True once receivers have connected and all of them have left."""
        with self._lock:
            return self._connected and self._receivers == 0

    def qsize(self) -> int:
        """Approximate number of buffered items."""
        return self._queue.qsize()

    def send(self, item: Any) -> None:
        """
        Put an item, blocking while the channel is full.

        Raises:
            ChannelDisconnected: If no receiver is left to take it.
            RuntimeError: If the channel was already closed.
        """
        if self._closed:
            raise RuntimeError("Cannot send on a closed channel")
        while not self._try_put(item):
            if self.hung_up:
                raise ChannelDisconnected("All receivers hung up")

    def close(self) -> None:
        """
        Signal that no more items will be sent.
        Blocks until the end marker fits in the queue, unless every receiver has left.
        """
        if self._closed:
            return
        self._closed = True
        while not self._try_put(_CLOSED):
            if self.hung_up:
                return

    def _try_put(self, item: Any) -> bool:
        if self.hung_up:
            return False
        try:
            self._queue.put(item, timeout=self._poll_interval)
            return True
        except queue.Full:
            return False

    @contextmanager
    def receiver(self) -> Iterator[Iterator[Any]]:
        """
        Register a consumer for the duration of the block.

        Usage:
            with channel.receiver() as items:
                for item in items:
                    ...
        """
        with self._lock:
            self._receivers += 1
            self._connected = True
        try:
            yield self._drain()
        finally:
            with self._lock:
                self._receivers -= 1

    def _drain(self) -> Iterator[Any]:
        """Yield items until the channel is closed and empty."""
        while True:
            try:
                item = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                # close() gives up on the end marker once everyone hung up; late receivers stop here
                if self._closed:
                    return
                continue
            if item is _CLOSED:
                # Leave the end marker for the other receivers
                self._queue.put(item)
                return
            yield item
