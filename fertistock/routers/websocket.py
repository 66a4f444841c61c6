import logging
from typing import List
import anyio
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Guarda las conexiones activas; cada cliente que se conecta se añade a la lista."""

    def __init__(self):
        self.active_connections: List[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: str):
        """Envía un mensaje de texto a todos los clientes conectados.
        Las conexiones que fallan se descartan y el resto sigue recibiendo."""
        for connection in list(self.active_connections):
            try:
                await connection.send_text(message)
            except Exception as e:
                logger.warning("Conexión WebSocket descartada: %s", e)
                self.disconnect(connection)


manager = ConnectionManager()


def notify_inventory_change(message: str) -> None:
    """Emite el aviso desde una ruta síncrona. Un fallo del WebSocket no afecta a la operación."""
    try:
        anyio.from_thread.run(manager.broadcast, message)
    except Exception as e:
        logger.warning("Error al emitir WebSocket: %s", e)


@router.websocket("/ws/inventario")
async def websocket_endpoint(websocket: WebSocket):
    await manager.connect(websocket)

    try:
        # Mantener la conexión viva
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        manager.disconnect(websocket)
