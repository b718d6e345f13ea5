"""
Socket.IO server that pushes run trace events to connected editors.

Uses python-socketio in ASGI mode so it can wrap FastAPI.
`create_socket_app(fastapi_app)` returns the composite ASGI application to
pass to uvicorn.
"""
from __future__ import annotations

import asyncio
from logging import getLogger
from typing import Any, Dict

import socketio

from workflowstudio.server import config

from .trace_emitter import global_tracer

logger = getLogger(__name__)

# ---------------------------------------------------------------------------
# Socket.IO instance (async, ASGI mode)
# ---------------------------------------------------------------------------

sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=config.CORS_ORIGINS if config.CORS_ORIGINS != ["*"] else "*",
    logger=False,
    engineio_logger=False,
)


# ---------------------------------------------------------------------------
# Trace fan-out: wire global_tracer → Socket.IO emit
# ---------------------------------------------------------------------------

def _on_trace(event: Dict[str, Any]) -> None:
    """
    Called synchronously by TraceEmitter.fire().
    We schedule an async emit on the running event loop; outside a loop
    (tests, scripts) there is nobody to emit to.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    loop.create_task(sio.emit("trace", event))


global_tracer.on_trace(_on_trace)


# ---------------------------------------------------------------------------
# Socket.IO lifecycle events
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict) -> None:
    logger.debug(f"Trace client connected: {sid}")


@sio.event
async def disconnect(sid: str) -> None:
    """Unblock any pending step gate when a client disconnects."""
    logger.debug(f"Trace client disconnected: {sid}")
    # a reconnecting editor re-sends resume if it still wants to step
    global_tracer.resume()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def create_socket_app(fastapi_app: Any) -> socketio.ASGIApp:
    """Wrap *fastapi_app* inside a Socket.IO ASGI application."""
    return socketio.ASGIApp(sio, other_asgi_app=fastapi_app)
