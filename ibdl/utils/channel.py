import queue
import threading
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()

class ChannelClosed(Exception):
    """Raised on send once the receiving side is gone."""

class PostChannel(Generic[T]):
    """
    Single-consumer channel between an extraction worker and its consumer.

    With a `maxsize` the producer blocks when the consumer falls behind.
    The consumer cancels the producer by calling close(): any later send()
    raises ChannelClosed. The producer signals the end of the stream with
    close_sender(), after which iteration stops once the queue is drained.
    """

    POLL_INTERVAL = 0.1  # seconds

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue" = queue.Queue(maxsize=maxsize)
        self._receiver_closed = threading.Event()
        self._sender_closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._receiver_closed.is_set()

    def send(self, item: T):
        while True:
            if self._receiver_closed.is_set():
                raise ChannelClosed("receiver closed")
            try:
                self._queue.put(item, timeout=self.POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def close_sender(self):
        if self._sender_closed.is_set():
            return
        self._sender_closed.set()
        # Nobody left to tell once the receiver is gone
        while not self._receiver_closed.is_set():
            try:
                self._queue.put(_CLOSED, timeout=self.POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def recv(self, timeout: Optional[float] = None) -> Optional[T]:
        """Next item, or None once the sender has closed and the queue is empty."""
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Keep the marker around for anyone calling recv() again
            self._queue.put(_CLOSED)
            return None
        return item

    def close(self):
        """Drop the receiving side."""
        self._receiver_closed.set()

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.recv()
            if item is None:
                return
            yield item
