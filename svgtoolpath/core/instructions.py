"""
Drawing Instructions

The units emitted when a document is flattened, and the thread-backed
stream that carries them from a producer to its consumer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, Optional, Tuple
import logging
import queue
import threading

logger = logging.getLogger(__name__)

Tuple2 = Tuple[float, float]


class InstructionKind(Enum):
    """Kinds of drawing instruction."""
    MOVE = "move"
    LINE = "line"
    CURVE = "curve"      # cubic bezier: c1, c2, point
    CIRCLE = "circle"    # point is the centre
    CLOSE = "close"
    PAINT = "paint"      # style for the shape just drawn


@dataclass(frozen=True)
class DrawingInstruction:
    """One drawing operation in document coordinates."""
    kind: InstructionKind
    point: Optional[Tuple2] = None
    c1: Optional[Tuple2] = None
    c2: Optional[Tuple2] = None
    radius: Optional[float] = None
    stroke: Optional[str] = None
    stroke_width: Optional[float] = None
    fill: Optional[str] = None
    source_id: Optional[str] = None


class _Failure:
    __slots__ = ('error',)

    def __init__(self, error: BaseException):
        self.error = error


_END = object()


class InstructionStream:
    """
    A lazy, ordered, single-use sequence of drawing instructions.

    A daemon thread runs ``source`` and hands each instruction to the
    consumer through a queue. With ``buffer_size=0`` only one instruction
    is in flight at a time; larger values let the producer run ahead.

    Closing the stream (explicitly or by leaving a ``with`` block) stops
    the producer at its next hand-off and closes the source iterator, so
    nested streams it was forwarding are closed too.
    """

    # How often a blocked producer checks whether the stream was closed
    POLL_INTERVAL = 0.05

    def __init__(self, source: Callable[[], Iterable[DrawingInstruction]],
                 buffer_size: int = 0, name: str = "instructions"):
        self.name = name
        self.buffer_size = buffer_size
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, buffer_size))
        self._closed = threading.Event()
        self._finished = False
        self._thread = threading.Thread(
            target=self._run, args=(source,), name=f"producer-{name}"
        )
        self._thread.daemon = True
        self._thread.start()

    def __iter__(self) -> Iterator[DrawingInstruction]:
        return self

    def __next__(self) -> DrawingInstruction:
        if self._finished:
            raise StopIteration
        item = self._queue.get()
        if item is _END:
            self._finished = True
            raise StopIteration
        if isinstance(item, _Failure):
            self._finished = True
            raise item.error
        return item

    def __enter__(self) -> 'InstructionStream':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def producer_alive(self) -> bool:
        return self._thread.is_alive()

    def close(self, timeout: Optional[float] = None) -> None:
        """
        Abandon the stream and release the producer thread.

        Safe to call more than once and after the stream is exhausted.
        """
        if self._closed.is_set():
            return
        self._closed.set()
        self._finished = True
        # Drop anything buffered so a producer blocked on put() wakes up
        try:
            while True:
                self._queue.get_nowait()
        except queue.Empty:
            pass
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _offer(self, item) -> bool:
        """Hand an item to the consumer; False if the stream was closed."""
        while not self._closed.is_set():
            try:
                self._queue.put(item, timeout=self.POLL_INTERVAL)
                return True
            except queue.Full:
                continue
        return False

    def _run(self, source: Callable[[], Iterable[DrawingInstruction]]) -> None:
        iterator = None
        try:
            iterator = iter(source())
            for instruction in iterator:
                if not self._offer(instruction):
                    logger.debug(f"Stream {self.name} closed by consumer")
                    return
        except Exception as e:
            self._offer(_Failure(e))
            return
        finally:
            close = getattr(iterator, 'close', None)
            if close is not None:
                close()
        self._offer(_END)


def forward(streams: Iterable[Callable[[], InstructionStream]]) -> Iterator[DrawingInstruction]:
    """
    Yield every instruction of each stream in turn.

    Each stream is opened only when the previous one is exhausted and is
    always closed, including when the caller stops early.
    """
    for open_stream in streams:
        with open_stream() as stream:
            yield from stream


class DrawingInstructionProducer(ABC):
    """Anything that can be flattened into drawing instructions."""

    @abstractmethod
    def parse_drawing_instructions(self) -> InstructionStream:
        """Begin producing this node's drawing instructions."""
        pass
