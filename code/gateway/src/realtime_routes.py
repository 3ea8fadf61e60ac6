"""
OnceDrop Realtime API Routes
WebSocket endpoint for server-wide announcements
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query

from gateway.src.realtime import get_realtime_service, EventType, PushEvent

router = APIRouter(prefix="/v1/realtime", tags=["Realtime"])


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    user_id: str = Query(..., description="Player or client id")
):
    """
    WebSocket connection.

    Receives: {"event_type": "announcement", "data": {"message": "..."}, ...}
    Sends:    {"action": "ping"}
    """
    realtime = get_realtime_service()
    await realtime.ws_manager.connect(websocket, user_id)

    try:
        while True:
            data = await websocket.receive_json()
            if data.get("action") == "ping":
                await realtime.ws_manager.send_personal(
                    user_id,
                    PushEvent(event_type=EventType.HEARTBEAT, data={"pong": True})
                )
    except WebSocketDisconnect:
        await realtime.ws_manager.disconnect(websocket, user_id)
    except Exception:
        await realtime.ws_manager.disconnect(websocket, user_id)


@router.get("/stats")
async def get_realtime_stats():
    return get_realtime_service().get_stats()
