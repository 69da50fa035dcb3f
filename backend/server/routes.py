"""
Route registration for the capture API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire gateway to WebSocket lifecycle
- Pull dependencies from app.state
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from constants import HEALTH_RESPONSE, SERVICE_BANNER
from observability.logger import log_event
from session.gateway import SessionGateway


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str: # pyright: ignore[reportUnusedFunction]
        return SERVICE_BANNER

    @app.get("/health", response_class=PlainTextResponse)
    async def health() -> str: # pyright: ignore[reportUnusedFunction]
        """Health check endpoint for load balancers."""
        return HEALTH_RESPONSE

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        """
        Audio capture endpoint.

        One connection = one session = one gateway.
        """
        await ws.accept()

        async def send_json(msg: dict[str, Any]) -> None:
            await ws.send_text(json.dumps(msg))

        gateway = SessionGateway(
            config=app.state.config,
            dispatcher=app.state.dispatcher,
            sampler=app.state.debug_sampler,
            send_json=send_json,
        )

        try:
            # ---- CONNECT ----
            await gateway.on_ws_connect()

            # ---- MAIN LOOP ----
            while True:
                msg = await ws.receive()

                if msg["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(code=msg.get("code", 1000))

                if msg.get("bytes") is not None:
                    await gateway.on_binary_message(msg["bytes"])

                elif msg.get("text") is not None:
                    await gateway.on_text_message(msg["text"])

        except WebSocketDisconnect:
            await gateway.on_ws_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "WS_FATAL_ERROR",
                "session_id": gateway.session.session_id if gateway.session else None,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            await gateway.on_ws_disconnect(reason="server_error")
