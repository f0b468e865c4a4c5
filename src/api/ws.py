"""
Price push websocket

Clients receive {"type": "cryptoData", "data": {...}} on connect and on every
broadcast tick; sending the text "requestRefresh" triggers an immediate push.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from src.services.price_broadcaster import get_price_broadcaster


router = APIRouter(tags=["websocket"])

REFRESH_MESSAGE = "requestRefresh"


@router.websocket("/ws/prices")
async def prices_socket(websocket: WebSocket):
    broadcaster = get_price_broadcaster()
    await websocket.accept()
    await broadcaster.subscribe(websocket)

    try:
        while True:
            message = await websocket.receive_text()
            if message.strip() == REFRESH_MESSAGE:
                await broadcaster.refresh(websocket)
            else:
                logger.debug(f"Ignoring websocket message: {message[:50]}")
    except WebSocketDisconnect:
        logger.debug("Websocket client disconnected")
    finally:
        broadcaster.unsubscribe(websocket)
