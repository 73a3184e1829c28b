from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional

from stellarstream.util import amount_to_json

SCHEDULED = "scheduled"
ACTIVE = "active"
COMPLETED = "completed"
CANCELED = "canceled"


@dataclass(frozen=True)
class StreamInput:
    sender: str
    recipient: str
    asset_code: str
    total_amount: Decimal
    duration_seconds: int
    start_at: Optional[int] = None


@dataclass(frozen=True)
class Stream:
    id: str
    sender: str
    recipient: str
    asset_code: str
    total_amount: Decimal
    duration_seconds: int
    start_at: int
    end_at: int
    created_at: int
    status: str = SCHEDULED
    canceled_at: Optional[int] = None

    @property
    def is_canceled(self) -> bool:
        return self.status == CANCELED

    def has_started(self, current_timestamp: int) -> bool:
        return current_timestamp >= self.start_at

    def has_ended(self, current_timestamp: int) -> bool:
        return current_timestamp >= self.end_at

    def is_active(self, current_timestamp: int) -> bool:
        return self.has_started(current_timestamp) and not self.has_ended(
            current_timestamp
        )

    def canceled(self, canceled_at: int) -> "Stream":
        return replace(self, status=CANCELED, canceled_at=canceled_at)

    def to_dict(self):
        return {
            "id": self.id,
            "sender": self.sender,
            "recipient": self.recipient,
            "assetCode": self.asset_code,
            "totalAmount": amount_to_json(self.total_amount),
            "durationSeconds": self.duration_seconds,
            "startAt": self.start_at,
            "endAt": self.end_at,
            "status": self.status,
            "canceledAt": self.canceled_at,
            "createdAt": self.created_at,
        }
