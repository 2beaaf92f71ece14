# parlour_api/realtime/socket.py
"""
WebSocket push channel.

Server -> client frames: {"event": "<name>", "data": {...}}
Client -> server: {"event": "attendance:punch", "data": {...}, "ack": <any>}
answered with {"event": "ack", "ack": <same>, "data": {"success": ..., ...}}.
"""
import asyncio
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from parlour_api.attendance.schemas import PunchCreate
from parlour_api.attendance.service import AttendanceService
from parlour_api.auth.dependencies import ALL_ROLES, Identity, _extract_bearer, check_role, identity_from_token
from parlour_api.database import SessionLocal
from parlour_api.errors import ParlourError
from parlour_api.realtime.broadcaster import SocketListener

logger = logging.getLogger(__name__)

PUNCH_EVENT = "attendance:punch"

router = APIRouter()


def _authenticate(websocket: WebSocket) -> Identity:
    token = websocket.query_params.get("token") or _extract_bearer(websocket.headers.get("authorization"))
    return check_role(identity_from_token(token), ALL_ROLES)


def _session_factory(websocket: WebSocket):
    # app.state holds the sessionmaker for connections opened outside a request
    return getattr(websocket.app.state, "session_factory", SessionLocal)


def _record_punch(websocket: WebSocket, data: Dict[str, Any]) -> Dict[str, Any]:
    try:
        body = PunchCreate.model_validate(data or {})
    except ValidationError:
        return {"success": False, "error": "Invalid punch data"}

    db = _session_factory(websocket)()
    try:
        service = AttendanceService(db, websocket.app.state.publisher)
        record = service.record_punch(body.employee_id, body.type, body.timestamp)
        return {"success": True, "data": record}
    except ParlourError as exc:
        return {"success": False, "error": exc.message}
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Socket punch failed for employee %s", body.employee_id)
        return {"success": False, "error": "Failed to create attendance record"}
    finally:
        db.close()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    try:
        identity = _authenticate(websocket)
    except ParlourError as exc:
        logger.info("WebSocket rejected: %s", exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    publisher = websocket.app.state.publisher
    listener = SocketListener(websocket, asyncio.get_running_loop())
    publisher.subscribe(listener)
    logger.info("Socket connected: user_id=%s role=%s", identity.subject_id, identity.role)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                logger.warning("Unreadable frame from user_id=%s", identity.subject_id)
                await websocket.send_json({"event": "ack", "ack": None,
                                           "data": {"success": False, "error": "Invalid message"}})
                continue
            if not isinstance(message, dict):
                message = {}
            event: Optional[str] = message.get("event")

            if event == PUNCH_EVENT:
                result = await run_in_threadpool(_record_punch, websocket, message.get("data"))
            else:
                result = {"success": False, "error": f"Unknown event: {event}"}

            await websocket.send_json({"event": "ack", "ack": message.get("ack"), "data": result})
    except WebSocketDisconnect:
        logger.info("Socket disconnected: user_id=%s", identity.subject_id)
    finally:
        publisher.unsubscribe(listener)
