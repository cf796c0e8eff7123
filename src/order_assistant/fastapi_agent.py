"""
FastAPI host for the ordering assistant
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from order_assistant.agent import OrderingAssistant
from order_assistant.api_models import (
    AddItemRequest,
    ChatMessageRequest,
    ChatResponse,
    ConfirmOrderRequest,
    HealthResponse,
    MenuResponse,
    ToolResponse,
    UpdateQuantityRequest,
    WebSocketMessage,
)
from order_assistant.config.settings import AGENT_NAME, LOG_LEVEL
from order_assistant.errors import AssistantError
from order_assistant.models.order_models import ToolResult

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Sesión no encontrada"
INVALID_WS_MESSAGE = "Envía un objeto JSON con un campo \"message\" de texto."


def _tool_response(result: ToolResult, session_id: Optional[str] = None) -> ToolResponse:
    if result.is_error:
        raise HTTPException(status_code=400, detail=result.text)
    return ToolResponse(message=result.text, sessionId=session_id, data=result.data)


def create_app(assistant: Optional[OrderingAssistant] = None, run_sweeps: bool = True) -> FastAPI:
    assistant = assistant or OrderingAssistant()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("Starting ordering assistant API...")
        if run_sweeps:
            assistant.start_background_sweeps()
        yield
        # Shutdown
        await assistant.stop_background_sweeps()
        logger.info("Shutting down ordering assistant API...")

    app = FastAPI(
        title="Ordering Assistant API",
        description="Conversational ordering assistant with language model replies and template fallback",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.assistant = assistant

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        backend = "enabled" if assistant.engine.backend_available() else "templates"
        return HealthResponse(status="ok", service=AGENT_NAME, backend=backend,
                              timestamp=datetime.now().isoformat())

    @app.post("/chat", response_model=ChatResponse)
    async def chat(request: ChatMessageRequest):
        """Send a customer message to the assistant"""
        try:
            reply = await assistant.handle(request.message, request.session_id, request.user_id)
            return reply.to_dict()
        except AssistantError as e:
            raise HTTPException(status_code=500, detail=e.message)

    @app.get("/context/{session_id}")
    async def get_context(session_id: str):
        context = assistant.get_context(session_id)
        if context is None:
            raise HTTPException(status_code=404, detail=SESSION_NOT_FOUND)
        return context.to_dict()

    @app.get("/history/{session_id}")
    async def get_history(session_id: str, limit: Optional[int] = None):
        history = assistant.get_history(session_id)
        if history is None:
            raise HTTPException(status_code=404, detail=SESSION_NOT_FOUND)
        body = history.to_dict()
        if limit is not None:
            body["messages"] = [m.to_dict() for m in assistant.get_recent_messages(session_id, limit)]
        body["summary"] = assistant.get_summary(session_id)
        return body

    @app.delete("/history/{session_id}")
    async def delete_history(session_id: str):
        if not assistant.delete_session(session_id):
            raise HTTPException(status_code=404, detail=SESSION_NOT_FOUND)
        return {"deleted": True, "sessionId": session_id}

    @app.get("/stats/{session_id}")
    async def get_stats(session_id: str):
        stats = assistant.get_stats(session_id)
        if stats is None:
            raise HTTPException(status_code=404, detail=SESSION_NOT_FOUND)
        return stats

    @app.get("/search")
    async def search_conversations(
        user_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        min_messages: Optional[int] = Query(None, ge=0),
        current_step: Optional[str] = None,
    ):
        results = assistant.search(user_id=user_id, date_from=date_from, date_to=date_to,
                                   min_messages=min_messages, current_step=current_step)
        return {"results": [r.to_dict() for r in results], "total": len(results)}

    @app.get("/export/{session_id}")
    async def export_conversation(session_id: str):
        exported = assistant.export(session_id)
        if exported is None:
            raise HTTPException(status_code=404, detail=SESSION_NOT_FOUND)
        return {"conversation": exported["conversation"].to_dict(), "export": exported["export"]}

    @app.get("/global-stats")
    async def global_stats():
        return assistant.global_stats()

    # Menu endpoints
    @app.get("/menu", response_model=MenuResponse)
    async def get_menu(category: Optional[str] = None):
        result = assistant.get_menu(category)
        return MenuResponse(
            menu=result.data["items"],
            categories=assistant.get_menu_categories(),
            summary=result.text,
        )

    @app.get("/menu/search", response_model=ToolResponse)
    async def search_menu(query: str):
        return _tool_response(assistant.find_item(query))

    @app.get("/menu/item/{item_id}", response_model=ToolResponse)
    async def get_item_details(item_id: int):
        result = assistant.item_details(item_id)
        if result.is_error:
            raise HTTPException(status_code=404, detail=result.text)
        return _tool_response(result)

    # Order management endpoints
    @app.post("/order/add-item", response_model=ToolResponse)
    async def add_item_to_order(request: AddItemRequest):
        """Add item to the session's cart"""
        try:
            result = await assistant.add_to_cart(request.session_id, request.item_id, request.quantity, request.notes)
            return _tool_response(result, request.session_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding item to order: {e}")
            raise HTTPException(status_code=500, detail="Failed to add item to order")

    @app.put("/order/update-quantity", response_model=ToolResponse)
    async def update_item_quantity(request: UpdateQuantityRequest):
        try:
            result = await assistant.update_quantity(request.session_id, request.item_id, request.quantity)
            return _tool_response(result, request.session_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating item quantity: {e}")
            raise HTTPException(status_code=500, detail="Failed to update item quantity")

    @app.delete("/order/remove-item", response_model=ToolResponse)
    async def remove_item_from_order(session_id: str, item_id: int):
        try:
            return _tool_response(await assistant.remove_from_cart(session_id, item_id), session_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error removing item from order: {e}")
            raise HTTPException(status_code=500, detail="Failed to remove item from order")

    @app.get("/order/cart", response_model=ToolResponse)
    async def get_cart(session_id: str):
        return _tool_response(await assistant.cart_summary(session_id), session_id)

    @app.delete("/order/clear", response_model=ToolResponse)
    async def clear_cart(session_id: str):
        return _tool_response(await assistant.clear_cart(session_id), session_id)

    @app.post("/order/confirm", response_model=ToolResponse)
    async def confirm_order(request: ConfirmOrderRequest):
        """Confirm the cart as an order; the order details come back in data"""
        try:
            return _tool_response(await assistant.confirm_order(request.session_id), request.session_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error completing order: {e}")
            raise HTTPException(status_code=500, detail="Failed to complete order")

    # WebSocket endpoint for real-time chat
    @app.websocket("/ws/{session_id}")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        await websocket.accept()
        try:
            while True:
                try:
                    data = await websocket.receive_json()
                except ValueError:
                    data = None
                message = data.get("message") if isinstance(data, dict) else None
                if not isinstance(message, str) or not message.strip():
                    error = WebSocketMessage(type="error", content=INVALID_WS_MESSAGE, session_id=session_id)
                    await websocket.send_json(error.model_dump())
                    continue
                message = message.strip()
                user_id = data.get("user_id") if isinstance(data.get("user_id"), str) else None

                try:
                    reply = await assistant.handle(message, session_id, user_id)
                    payload = WebSocketMessage(
                        type="message",
                        content=reply.message,
                        session_id=session_id,
                        action=reply.action.value if reply.action else None,
                        current_step=reply.current_step.value,
                    )
                except AssistantError as e:
                    payload = WebSocketMessage(type="error", content=e.message, session_id=session_id)
                await websocket.send_json(payload.model_dump())
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected for session {session_id}")

    return app


app = create_app()


if __name__ == "__main__":
    logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    uvicorn.run("order_assistant.fastapi_agent:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
