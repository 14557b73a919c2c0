from fastapi import APIRouter, WebSocket, WebSocketDisconnect, HTTPException, status, Query
from typing import Optional
from uuid import UUID, uuid4
import json
from loguru import logger

from livebid.api.dependencies import get_user_from_token
from livebid.services.realtime.broadcaster import EventBroadcaster

router = APIRouter()


def _parse_auction_id(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _error(message: str) -> dict:
    return {"type": "error", "message": message}


def handle_client_message(broadcaster: EventBroadcaster, observer_id: str, data: str) -> dict:
    """Apply one client message and return the reply to send back"""
    try:
        message = json.loads(data)
    except json.JSONDecodeError:
        return _error("Invalid JSON message")

    if not isinstance(message, dict):
        return _error("Message must be a JSON object")

    message_type = message.get("type")

    if message_type in ("subscribe", "unsubscribe"):
        target = _parse_auction_id(message.get("auction_id"))
        if target is None:
            return _error("auction_id must be a valid UUID")
        if message_type == "subscribe":
            broadcaster.subscribe(observer_id, target)
            return {"type": "subscribed", "auction_id": str(target)}
        broadcaster.unsubscribe(observer_id, target)
        return {"type": "unsubscribed", "auction_id": str(target)}

    if message_type == "ping":
        return {"type": "pong"}

    return _error(f"Unknown message type: {message_type}")


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(...),
    auction_id: Optional[str] = Query(None)
):
    """
    WebSocket endpoint for real-time auction updates

    Query parameters:
    - token: JWT authentication token
    - auction_id: Optional auction ID to watch right away

    Message types from client:
    - subscribe: {"type": "subscribe", "auction_id": "..."}
    - unsubscribe: {"type": "unsubscribe", "auction_id": "..."}
    - ping: {"type": "ping"}

    Message types from server:
    - bid_accepted, potential_winner: bidding on a watched auction
    - auction_started, auction_ended, status_changed: lifecycle of a watched auction
    - subscribed, unsubscribed, pong, error

    Events are not replayed; after a reconnect clients refetch the auction.
    """
    try:
        user = await get_user_from_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    broadcaster: EventBroadcaster = websocket.app.state.auction_service.broadcaster
    observer_id = f"{user.id}:{uuid4().hex}"

    await websocket.accept()
    broadcaster.connect(observer_id, websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "message": "Connected to auction updates",
            "user_id": str(user.id)
        })

        initial = _parse_auction_id(auction_id) if auction_id else None
        if initial:
            broadcaster.subscribe(observer_id, initial)
            await websocket.send_json({"type": "subscribed", "auction_id": str(initial)})

        while True:
            data = await websocket.receive_text()

            reply = handle_client_message(broadcaster, observer_id, data)
            await websocket.send_json(reply)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: user={user.id}")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        broadcaster.disconnect(observer_id)
