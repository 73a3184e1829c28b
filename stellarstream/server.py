"""
StellarStream HTTP API.

Thin FastAPI layer over the route handlers: it decodes JSON bodies, hands
them to `stellarstream.handlers` and writes back `(status, body)` pairs.
"""
import json

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from stellarstream import config, handlers
from stellarstream.util import logger

app = FastAPI(title="StellarStream API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


def respond(result):
    status, body = result
    return JSONResponse(status_code=status, content=body)


@app.get("/api/health")
def health():
    return respond(handlers.handle_health())


@app.get("/api/streams")
def list_streams():
    return respond(handlers.handle_list())


@app.get("/api/streams/{stream_id}")
def get_stream(stream_id: str):
    return respond(handlers.handle_get(stream_id))


@app.post("/api/streams")
async def create_stream(request: Request):
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        body = None
    return respond(handlers.handle_create(body))


@app.post("/api/streams/{stream_id}/cancel")
def cancel_stream(stream_id: str):
    return respond(handlers.handle_cancel(stream_id))


@app.get("/api/allowed-assets")
def allowed_assets():
    return respond(handlers.handle_allowed_assets())


def main():
    logger.info(f"StellarStream API listening on http://{config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
