import time
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Optional

from stellarstream.stream import ACTIVE, CANCELED, COMPLETED, SCHEDULED, Stream
from stellarstream.util import (
    amount_precision,
    amount_to_json,
    from_stroops,
    to_stroops,
)


@dataclass(frozen=True)
class Progress:
    released_amount: Decimal
    remaining_amount: Decimal
    fraction_complete: float
    effective_status: str

    def to_dict(self):
        return {
            "releasedAmount": amount_to_json(self.released_amount),
            "remainingAmount": amount_to_json(self.remaining_amount),
            "fractionComplete": self.fraction_complete,
            "status": self.effective_status,
        }


def _released_at(stream: Stream, at: int):
    """
    Returns (released amount, fraction complete) of a stream as of `at`.
    Runs inside a decimal context wide enough for the stream's total.
    """
    if not stream.has_started(at):
        return Decimal(0), 0.0

    window = stream.end_at - stream.start_at
    if window <= 0 or stream.has_ended(at):
        return stream.total_amount, 1.0

    elapsed = at - stream.start_at
    fraction = min(max(elapsed / window, 0.0), 1.0)
    released = from_stroops(to_stroops(stream.total_amount) * elapsed // window)
    released = min(max(released, Decimal(0)), stream.total_amount)
    return released, fraction


def calculate_progress(stream: Stream, now: Optional[int] = None) -> Progress:
    """
    Point-in-time view of how much of a stream has been released.

    Canceled streams are evaluated at their cancellation instant, so their
    progress no longer moves with `now`. Everything else is derived from the
    stream's window and `now` (current time when omitted).
    """
    if now is None:
        now = int(time.time())

    if stream.is_canceled:
        at = stream.canceled_at if stream.canceled_at is not None else now
    else:
        at = now

    with localcontext() as ctx:
        ctx.prec = amount_precision(stream.total_amount)
        released, fraction = _released_at(stream, at)
        remaining = stream.total_amount - released

    if stream.is_canceled:
        status = CANCELED
    elif not stream.has_started(at):
        status = SCHEDULED
    elif stream.is_active(at):
        status = ACTIVE
    else:
        status = COMPLETED

    return Progress(
        released_amount=released,
        remaining_amount=remaining,
        fraction_complete=fraction,
        effective_status=status,
    )
