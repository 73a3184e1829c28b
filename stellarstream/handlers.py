from datetime import datetime, timezone

import requests

from stellarstream import config
from stellarstream.progress import calculate_progress
from stellarstream.store import StreamStore
from stellarstream.util import logger
from stellarstream.validation import InvalidStreamInput, parse_input

SERVICE_NAME = "stellar-stream-backend"
NOT_FOUND = {"error": "Stream not found."}

store = StreamStore()


def send_post_request(endpoint, payload):
    url = config.SETTLEMENT_URL + endpoint

    response = requests.post(url, json=payload, timeout=5)

    if response.status_code not in (200, 201, 202):
        logger.error(
            f"Failed POST request to {url}. Status: {response.status_code}. Response: {response.text}"
        )
    else:
        logger.info(
            f"Successful POST request to {url}. Status: {response.status_code}."
        )

    return response


def notify_settlement(event, data):
    """Tells the settlement layer about a stream state change, if one is configured."""
    if not config.SETTLEMENT_URL:
        return None
    try:
        return send_post_request("/notice", {"event": event, "data": data})
    except requests.RequestException as e:
        logger.error(
            f"Could not reach settlement layer: {e}",
            extra={"extra": {"event": event, "stream_id": data["id"]}},
        )
        return None


def with_progress(stream, now=None):
    return {**stream.to_dict(), "progress": calculate_progress(stream, now).to_dict()}


def handle_health():
    return 200, {
        "service": SERVICE_NAME,
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def handle_list(streams=None):
    streams = store if streams is None else streams
    now = streams.now()
    return 200, {"data": [with_progress(stream, now) for stream in streams.list()]}


def handle_get(stream_id, streams=None):
    streams = store if streams is None else streams
    stream = streams.get(stream_id)
    if stream is None:
        logger.info(f"Stream {stream_id} not found")
        return 404, NOT_FOUND
    return 200, {"data": with_progress(stream, streams.now())}


def handle_create(body, streams=None, allowed_assets=None):
    streams = store if streams is None else streams
    allowed_assets = config.ALLOWED_ASSETS if allowed_assets is None else allowed_assets
    try:
        stream_input = parse_input(body, allowed_assets)
        stream = streams.create(stream_input)
    except InvalidStreamInput as e:
        logger.warning(f"Rejected stream: {e}")
        return 400, {"error": str(e)}
    except Exception:
        logger.exception("Error creating stream")
        return 500, {"error": "Internal server error"}

    data = with_progress(stream, streams.now())
    notify_settlement("stream_created", data)
    return 201, {"data": data}


def handle_cancel(stream_id, streams=None):
    streams = store if streams is None else streams
    stream, changed = streams.cancel_with_outcome(stream_id)
    if stream is None:
        logger.info(f"Stream {stream_id} not found")
        return 404, NOT_FOUND

    data = with_progress(stream, streams.now())
    if changed:
        notify_settlement("stream_canceled", data)
    return 200, {"data": data}


def handle_allowed_assets(allowed_assets=None):
    allowed_assets = config.ALLOWED_ASSETS if allowed_assets is None else allowed_assets
    return 200, {"data": list(allowed_assets)}
