"""
Pydantic models for the ordering assistant HTTP API
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# Request Models
class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Customer message")
    session_id: Optional[str] = Field(None, description="Session ID, generated when omitted")
    user_id: Optional[str] = Field(None, description="Known customer ID")


class AddItemRequest(BaseModel):
    session_id: str = Field(..., description="Session ID")
    item_id: int = Field(..., description="ID of the menu item")
    quantity: int = Field(1, description="Quantity to add")
    notes: Optional[str] = Field(None, description="Special instructions for the item")


class UpdateQuantityRequest(BaseModel):
    session_id: str = Field(..., description="Session ID")
    item_id: int = Field(..., description="ID of the menu item in the cart")
    quantity: int = Field(..., description="New quantity")


class ConfirmOrderRequest(BaseModel):
    session_id: str = Field(..., description="Session ID")


# Response Models
class ChatContext(BaseModel):
    sessionId: str
    currentStep: str
    cart: Dict[str, Any]


class ChatResponse(BaseModel):
    message: str = Field(..., description="Assistant reply")
    sessionId: str = Field(..., description="Session ID")
    action: Optional[str] = Field(None, description="Detected action tag")
    data: Optional[Dict[str, Any]] = None
    context: ChatContext


class ToolResponse(BaseModel):
    message: str
    sessionId: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class MenuResponse(BaseModel):
    menu: List[Dict[str, Any]]
    categories: List[str]
    summary: str


class HealthResponse(BaseModel):
    status: str
    service: str
    backend: str
    timestamp: str


# WebSocket Models
class WebSocketMessage(BaseModel):
    type: str = Field(..., description="Message type")
    content: str = Field(..., description="Message content")
    session_id: str = Field(..., description="Session ID")
    action: Optional[str] = None
    current_step: Optional[str] = None
