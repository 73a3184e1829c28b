import secrets
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from stellarstream.stream import SCHEDULED, Stream, StreamInput
from stellarstream.util import apply, logger, synchronized, to_amount


def current_timestamp() -> int:
    return int(time.time())


def new_stream_id() -> str:
    return secrets.token_hex(12)


@apply(synchronized)
class StreamStore:
    """
    In-memory owner of all streams.

    Every public method runs under the store lock. Stored streams are frozen
    values; cancel swaps in a new value instead of editing the old one.
    """

    def __init__(
        self,
        clock: Callable[[], int] = current_timestamp,
        id_factory: Callable[[], str] = new_stream_id,
    ):
        self._lock = threading.RLock()
        self._clock = clock
        self._id_factory = id_factory
        self._streams: Dict[str, Stream] = {}

    def _next_id(self) -> str:
        stream_id = self._id_factory()
        while stream_id in self._streams:
            stream_id = self._id_factory()
        return stream_id

    def create(self, stream_input: StreamInput) -> Stream:
        now = self._clock()
        start_at = (
            now if stream_input.start_at is None else int(stream_input.start_at)
        )
        duration = int(stream_input.duration_seconds)

        stream = Stream(
            id=self._next_id(),
            sender=stream_input.sender,
            recipient=stream_input.recipient,
            asset_code=stream_input.asset_code.upper(),
            total_amount=to_amount(stream_input.total_amount),
            duration_seconds=duration,
            start_at=start_at,
            end_at=start_at + duration,
            created_at=now,
            status=SCHEDULED,
        )
        self._streams[stream.id] = stream
        logger.info(
            f"Created stream {stream.id}",
            extra={"extra": {"stream_id": stream.id, "asset_code": stream.asset_code}},
        )
        return stream

    def now(self) -> int:
        return self._clock()

    def get(self, stream_id: str) -> Optional[Stream]:
        return self._streams.get(stream_id)

    def list(self) -> List[Stream]:
        return list(self._streams.values())

    def cancel(self, stream_id: str) -> Optional[Stream]:
        stream, _ = self.cancel_with_outcome(stream_id)
        return stream

    def cancel_with_outcome(self, stream_id: str) -> Tuple[Optional[Stream], bool]:
        """Like cancel, also telling whether this call is the one that canceled."""
        stream = self._streams.get(stream_id)
        if stream is None:
            return None, False
        if stream.is_canceled:
            return stream, False

        canceled = stream.canceled(self._clock())
        self._streams[stream_id] = canceled
        logger.info(
            f"Canceled stream {stream_id}",
            extra={"extra": {"stream_id": stream_id, "canceled_at": canceled.canceled_at}},
        )
        return canceled, True

    def __len__(self):
        with self._lock:
            return len(self._streams)
