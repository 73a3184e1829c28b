import os
import sys
import threading
import unittest
from decimal import Decimal

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from stellarstream.progress import calculate_progress
from stellarstream.store import StreamStore
from stellarstream.stream import ACTIVE, CANCELED, COMPLETED, SCHEDULED, StreamInput
from tests.utils import assert_amounts_conserved

T = 1_700_000_000


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


class TestStreamStore(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock(T)
        self.store = StreamStore(clock=self.clock)
        self.sender_address = "GSENDERACCOUNT"
        self.receiver_address = "GRECEIVERACCOUNT"

    def tearDown(self):
        for stream in self.store.list():
            assert_amounts_conserved(self, stream)

    def stream_input(self, total_amount=1000, duration=1000, start_at=None):
        return StreamInput(
            sender=self.sender_address,
            recipient=self.receiver_address,
            asset_code="usdc",
            total_amount=Decimal(total_amount),
            duration_seconds=duration,
            start_at=start_at,
        )

    def test_list_on_empty_store(self):
        self.assertEqual(self.store.list(), [])
        self.assertEqual(len(self.store), 0)

    def test_create_resolves_defaults(self):
        stream = self.store.create(self.stream_input(start_at=T + 100))
        self.assertTrue(stream.id)
        self.assertEqual(stream.asset_code, "USDC")
        self.assertEqual(stream.start_at, T + 100)
        self.assertEqual(stream.end_at, T + 1100)
        self.assertEqual(stream.created_at, T)
        self.assertEqual(stream.status, SCHEDULED)
        self.assertIsNone(stream.canceled_at)

    def test_create_without_start_starts_now(self):
        stream = self.store.create(self.stream_input())
        self.assertEqual(stream.start_at, T)
        progress = calculate_progress(stream, self.clock())
        self.assertEqual(progress.fraction_complete, 0.0)
        self.assertEqual(progress.released_amount, 0)

    def test_ids_are_unique(self):
        ids = {self.store.create(self.stream_input()).id for _ in range(50)}
        self.assertEqual(len(ids), 50)

    def test_id_collisions_are_retried(self):
        ids = iter(["a", "a", "b"])
        store = StreamStore(clock=self.clock, id_factory=lambda: next(ids))
        first = store.create(self.stream_input())
        second = store.create(self.stream_input())
        self.assertEqual((first.id, second.id), ("a", "b"))

    def test_get(self):
        stream = self.store.create(self.stream_input())
        self.assertIs(self.store.get(stream.id), stream)
        self.assertIsNone(self.store.get("missing"))

    def test_list_keeps_insertion_order(self):
        created = [self.store.create(self.stream_input()) for _ in range(5)]
        self.assertEqual([s.id for s in self.store.list()], [s.id for s in created])

    def test_stream_lifecycle(self):
        stream = self.store.create(self.stream_input(start_at=T))

        at_start = calculate_progress(stream, T)
        self.assertEqual(at_start.released_amount, 0)
        self.assertEqual(at_start.fraction_complete, 0.0)

        halfway = calculate_progress(stream, T + 500)
        self.assertEqual(halfway.released_amount, 500)
        self.assertEqual(halfway.fraction_complete, 0.5)
        self.assertEqual(halfway.effective_status, ACTIVE)

        done = calculate_progress(stream, T + 1000)
        self.assertEqual(done.released_amount, 1000)
        self.assertEqual(done.effective_status, COMPLETED)

    def test_cancel_freezes_released_amount(self):
        stream = self.store.create(self.stream_input(start_at=T))
        self.clock.now = T + 300

        canceled = self.store.cancel(stream.id)
        self.assertEqual(canceled.status, CANCELED)
        self.assertEqual(canceled.canceled_at, T + 300)
        self.assertIs(self.store.get(stream.id), canceled)

        progress = calculate_progress(canceled, T + 900)
        self.assertEqual(progress.released_amount, 300)
        self.assertEqual(progress.effective_status, CANCELED)

        # the snapshot handed out before the cancel is untouched
        self.assertEqual(stream.status, SCHEDULED)
        self.assertIsNone(stream.canceled_at)

    def test_cancel_is_idempotent(self):
        stream = self.store.create(self.stream_input(start_at=T))
        self.clock.now = T + 300
        first = self.store.cancel(stream.id)

        self.clock.now = T + 800
        second, changed = self.store.cancel_with_outcome(stream.id)
        self.assertFalse(changed)
        self.assertIs(second, first)
        self.assertEqual(second.canceled_at, T + 300)
        self.assertEqual(
            calculate_progress(second, T + 900), calculate_progress(first, T + 900)
        )

    def test_cancel_unknown_stream(self):
        self.assertIsNone(self.store.cancel("missing"))
        self.assertEqual(self.store.cancel_with_outcome("missing"), (None, False))

    def test_concurrent_creates_and_cancels(self):
        streams = []
        streams_lock = threading.Lock()
        outcomes = []

        def create_many():
            for _ in range(100):
                stream = self.store.create(self.stream_input())
                with streams_lock:
                    streams.append(stream)

        workers = [threading.Thread(target=create_many) for _ in range(4)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()
        self.assertEqual(len(self.store), 400)

        target = streams[0].id

        def cancel_target():
            outcomes.append(self.store.cancel_with_outcome(target)[1])

        cancelers = [threading.Thread(target=cancel_target) for _ in range(8)]
        for canceler in cancelers:
            canceler.start()
        for canceler in cancelers:
            canceler.join()
        self.assertEqual(outcomes.count(True), 1)


if __name__ == "__main__":
    unittest.main()
