"""
Tests for the thread-backed instruction stream.

Covers ordering, lookahead buffering, early close and error delivery.
"""

import itertools
import threading
import unittest

from svgtoolpath.core.instructions import (
    DrawingInstruction, InstructionKind, InstructionStream, forward
)


def make_instructions(source_id, count):
    return [
        DrawingInstruction(InstructionKind.LINE, point=(float(i), 0.0), source_id=source_id)
        for i in range(count)
    ]


class TestInstructionStream(unittest.TestCase):
    """Test InstructionStream."""

    def test_delivers_in_order(self):
        """Instructions arrive in the order the producer yields them."""
        expected = make_instructions("a", 20)
        stream = InstructionStream(lambda: iter(expected))
        self.assertEqual(list(stream), expected)

    def test_single_use(self):
        """An exhausted stream stays exhausted."""
        stream = InstructionStream(lambda: iter(make_instructions("a", 3)))
        self.assertEqual(len(list(stream)), 3)
        self.assertEqual(list(stream), [])

    def test_buffered_producer_runs_ahead(self):
        """With a buffer the producer finishes before anything is read."""
        done = threading.Event()

        def source():
            yield from make_instructions("a", 10)
            done.set()

        stream = InstructionStream(source, buffer_size=100)
        self.assertTrue(done.wait(timeout=2.0))
        self.assertEqual(len(list(stream)), 10)

    def test_unbuffered_producer_waits_for_consumer(self):
        """Without a buffer the producer cannot finish ahead of the consumer."""
        done = threading.Event()

        def source():
            yield from make_instructions("a", 5)
            done.set()

        stream = InstructionStream(source, buffer_size=0)
        self.assertFalse(done.wait(timeout=0.3))
        self.assertEqual(len(list(stream)), 5)
        self.assertTrue(done.is_set())

    def test_close_releases_producer(self):
        """Closing an unfinished stream stops its producer thread."""
        def endless():
            for i in itertools.count():
                yield DrawingInstruction(InstructionKind.LINE, point=(float(i), 0.0))

        stream = InstructionStream(endless)
        first = [next(stream) for _ in range(3)]
        self.assertEqual([i.point[0] for i in first], [0.0, 1.0, 2.0])

        stream.close()
        self.assertTrue(stream.closed)
        self.assertFalse(stream.producer_alive)
        self.assertEqual(list(stream), [])

    def test_close_propagates_to_forwarded_streams(self):
        """Closing an outer stream closes the inner stream it is forwarding."""
        inner_streams = []

        def endless():
            for i in itertools.count():
                yield DrawingInstruction(InstructionKind.LINE, point=(float(i), 0.0))

        def open_inner():
            inner = InstructionStream(endless, name="inner")
            inner_streams.append(inner)
            return inner

        with InstructionStream(lambda: forward([open_inner]), name="outer") as outer:
            next(outer)
            next(outer)

        self.assertFalse(outer.producer_alive)
        self.assertEqual(len(inner_streams), 1)
        self.assertTrue(inner_streams[0].closed)
        self.assertFalse(inner_streams[0].producer_alive)

    def test_close_is_idempotent(self):
        stream = InstructionStream(lambda: iter(make_instructions("a", 2)))
        list(stream)
        stream.close()
        stream.close()
        self.assertTrue(stream.closed)

    def test_producer_error_reaches_consumer(self):
        """An error in the producer is raised where it occurred in the sequence."""
        def failing():
            yield from make_instructions("a", 2)
            raise ValueError("bad geometry")

        stream = InstructionStream(failing)
        self.assertEqual(next(stream).point, (0.0, 0.0))
        self.assertEqual(next(stream).point, (1.0, 0.0))
        with self.assertRaises(ValueError):
            next(stream)
        self.assertEqual(list(stream), [])


class TestForward(unittest.TestCase):
    """Test the ordered forwarding helper."""

    def test_children_are_not_interleaved(self):
        """Each stream is forwarded to completion before the next begins."""
        groups = [make_instructions(name, 5) for name in ("a", "b", "c")]
        openers = [
            (lambda items=items: InstructionStream(lambda: iter(items)))
            for items in groups
        ]
        merged = InstructionStream(lambda: forward(openers))
        sources = [i.source_id for i in merged]
        self.assertEqual(sources, ["a"] * 5 + ["b"] * 5 + ["c"] * 5)

    def test_streams_are_opened_lazily(self):
        """The next stream is only opened once the previous one is exhausted."""
        opened = []

        def opener(name):
            def open_stream():
                opened.append(name)
                return InstructionStream(lambda: iter(make_instructions(name, 2)))
            return open_stream

        iterator = forward([opener("a"), opener("b")])
        next(iterator)
        self.assertEqual(opened, ["a"])
        list(iterator)
        self.assertEqual(opened, ["a", "b"])


if __name__ == '__main__':
    unittest.main()
