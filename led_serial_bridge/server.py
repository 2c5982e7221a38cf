"""HTTP API in front of the bridge service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .bridge import BridgeService, utc_timestamp
from .errors import BridgeError, MalformedRequest, NotConnected, WriteFailed
from .status import CHANNEL_IDS

_logger = logging.getLogger(__name__)


class CommandRequest(BaseModel):
    command: Optional[str] = None


class LedRequest(BaseModel):
    state: Optional[bool] = None


router = APIRouter()


def get_service(request: Request) -> BridgeService:
    return request.app.state.bridge


@router.get("/status")
def get_status(service: BridgeService = Depends(get_service)):
    status = service.status()
    return {"connected": status.connected, "ledStates": status.led_states, "timestamp": status.timestamp}


@router.post("/command")
def post_command(body: Optional[CommandRequest] = None, service: BridgeService = Depends(get_service)):
    command = body.command if body else None
    if not command:
        raise MalformedRequest("Command is required")
    if not service.is_connected():
        raise NotConnected("Device not connected")
    led_states = service.dispatch(command)
    return {"success": True, "command": command, "ledStates": led_states, "timestamp": utc_timestamp()}


@router.get("/leds")
def get_leds(service: BridgeService = Depends(get_service)):
    return {"ledStates": service.leds(), "pins": list(CHANNEL_IDS), "timestamp": utc_timestamp()}


@router.post("/led/{pin}")
def post_led(pin: str, body: Optional[LedRequest] = None, service: BridgeService = Depends(get_service)):
    try:
        pin_no = int(pin)
    except ValueError:
        raise MalformedRequest("Pin must be between 2 and 6") from None
    if body is None or body.state is None:
        raise MalformedRequest("State is required")
    led_states = service.set_channel(pin_no, body.state)
    return {"success": True, "pin": pin_no, "state": body.state, "ledStates": led_states}


@router.post("/reconnect")
def post_reconnect(service: BridgeService = Depends(get_service)):
    connected = service.reconnect()
    return {
        "success": connected,
        "message": "Device reconnected" if connected else "Failed to reconnect to device",
    }


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MalformedRequest)
    async def malformed_request(request: Request, exc: MalformedRequest):
        return _error(400, str(exc))

    @app.exception_handler(NotConnected)
    async def not_connected(request: Request, exc: NotConnected):
        return _error(503, str(exc))

    @app.exception_handler(WriteFailed)
    async def write_failed(request: Request, exc: WriteFailed):
        _logger.error("Command error: %s", exc)
        return _error(500, str(exc))

    @app.exception_handler(BridgeError)
    async def bridge_error(request: Request, exc: BridgeError):
        _logger.error("Bridge error: %s", exc)
        return _error(500, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body")


def create_app(service: BridgeService, *, autoconnect: Optional[bool] = None) -> FastAPI:
    """
    Build the FastAPI application around an existing service.

    Args:
        service: The bridge service the routes talk to
        autoconnect: Connect on startup (default: service.config.autoconnect)
    """
    if autoconnect is None:
        autoconnect = service.config.autoconnect

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if autoconnect:
            _logger.info("Connecting to device on startup")
            service.start()
        try:
            yield
        finally:
            _logger.info("Shutting down, closing serial port")
            service.close()

    app = FastAPI(title="LED Serial Bridge", lifespan=lifespan)
    app.state.bridge = service
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(service.config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    _register_error_handlers(app)
    return app
