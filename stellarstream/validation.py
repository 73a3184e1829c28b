import math
from typing import Iterable

from stellarstream.stream import StreamInput
from stellarstream.util import MIN_DURATION_SECONDS, to_amount, to_number


class InvalidStreamInput(ValueError):
    pass


def _stripped(payload, key) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


def parse_input(body, allowed_assets: Iterable[str]) -> StreamInput:
    """Validates a create-stream request body and normalizes it into a StreamInput."""
    if not isinstance(body, dict):
        raise InvalidStreamInput("Body must be a JSON object.")

    allowed_assets = list(allowed_assets)
    sender = _stripped(body, "sender")
    recipient = _stripped(body, "recipient")
    asset_code_raw = _stripped(body, "assetCode")
    total_amount = to_number(body.get("totalAmount"))
    duration_seconds = to_number(body.get("durationSeconds"))
    start_at_raw = body.get("startAt")
    start_at = None if start_at_raw is None else to_number(start_at_raw)

    if len(sender) < 5 or len(recipient) < 5:
        raise InvalidStreamInput(
            "Sender and recipient must look like valid Stellar account IDs."
        )

    if len(asset_code_raw) < 2 or len(asset_code_raw) > 12:
        raise InvalidStreamInput("assetCode must be between 2 and 12 characters.")

    if asset_code_raw.upper() not in allowed_assets:
        raise InvalidStreamInput(
            f'Asset "{asset_code_raw}" is not supported. '
            f"Allowed assets: {', '.join(allowed_assets)}."
        )

    if total_amount is None or total_amount <= 0:
        raise InvalidStreamInput("totalAmount must be a positive number.")

    if duration_seconds is None or duration_seconds < MIN_DURATION_SECONDS:
        raise InvalidStreamInput(
            f"durationSeconds must be at least {MIN_DURATION_SECONDS} seconds."
        )

    if start_at_raw is not None and (start_at is None or start_at <= 0):
        raise InvalidStreamInput("startAt must be a valid UNIX timestamp in seconds.")

    return StreamInput(
        sender=sender,
        recipient=recipient,
        asset_code=asset_code_raw.upper(),
        total_amount=to_amount(total_amount),
        duration_seconds=math.floor(duration_seconds),
        start_at=None if start_at is None else math.floor(start_at),
    )
