"""
Data models for the ordering assistant
"""
import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ConversationStep(str, Enum):
    GREETING = "greeting"
    BROWSING = "browsing"
    ORDERING = "ordering"
    CONFIRMING = "confirming"
    COMPLETED = "completed"


class ActionTag(str, Enum):
    GET_MENU = "get_menu"
    ADD_TO_CART = "add_to_cart"
    REMOVE_FROM_CART = "remove_from_cart"
    GET_CART_SUMMARY = "get_cart_summary"
    CREATE_ORDER = "create_order"
    GET_RECOMMENDATIONS = "get_recommendations"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class MenuItem:
    id: int
    name: str
    description: str
    price: float
    category: str
    available: bool = True
    ingredients: Optional[List[str]] = None
    allergens: Optional[List[str]] = None
    preparation_time: Optional[int] = None

    def __post_init__(self):
        if self.price <= 0:
            raise ValueError(f"Menu item {self.id} must have a positive price, got {self.price}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "available": self.available,
            "ingredients": list(self.ingredients) if self.ingredients else None,
            "allergens": list(self.allergens) if self.allergens else None,
            "preparationTime": self.preparation_time,
        }


@dataclass
class CartLine:
    item_id: int
    name: str
    unit_price: float
    quantity: int
    notes: Optional[str] = None
    subtotal: float = 0.0

    def __post_init__(self):
        self.recalculate()

    def recalculate(self):
        self.subtotal = round(self.quantity * self.unit_price, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "name": self.name,
            "price": self.unit_price,
            "quantity": self.quantity,
            "notes": self.notes,
            "subtotal": self.subtotal,
        }


@dataclass
class Cart:
    session_id: str
    items: List[CartLine] = field(default_factory=list)
    total_items: int = 0
    total_amount: float = 0.0

    def recalculate(self):
        """Recompute the denormalized totals from the lines"""
        for line in self.items:
            line.recalculate()
        self.total_items = sum(line.quantity for line in self.items)
        self.total_amount = round(sum(line.subtotal for line in self.items), 2)

    def find_line(self, item_id: int) -> Optional[CartLine]:
        for line in self.items:
            if line.item_id == item_id:
                return line
        return None

    def is_empty(self) -> bool:
        return len(self.items) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "items": [line.to_dict() for line in self.items],
            "totalItems": self.total_items,
            "totalAmount": self.total_amount,
        }


@dataclass
class Preferences:
    language: str = "es"
    dietary_restrictions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"language": self.language, "dietaryRestrictions": list(self.dietary_restrictions)}


@dataclass
class ConversationContext:
    session_id: str
    user_id: Optional[str] = None
    current_step: ConversationStep = ConversationStep.GREETING
    last_activity: datetime = field(default_factory=datetime.now)
    cart: Optional[Cart] = None
    preferences: Preferences = field(default_factory=Preferences)

    def __post_init__(self):
        if self.cart is None:
            self.cart = Cart(session_id=self.session_id)

    def snapshot(self) -> "ConversationContext":
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "currentStep": self.current_step.value,
            "lastActivity": self.last_activity.isoformat(),
            "cart": self.cart.to_dict(),
            "preferences": self.preferences.to_dict(),
        }


@dataclass
class ChatMessage:
    role: MessageRole
    content: str
    session_id: str
    timestamp: datetime = field(default_factory=datetime.now)
    action: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "sessionId": self.session_id,
            "action": self.action,
            "metadata": self.metadata,
        }


@dataclass
class HistoryMetadata:
    total_messages: int = 0
    last_activity: datetime = field(default_factory=datetime.now)


@dataclass
class ConversationHistory:
    session_id: str
    context: ConversationContext
    user_id: Optional[str] = None
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)
    metadata: HistoryMetadata = field(default_factory=HistoryMetadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "messages": [m.to_dict() for m in self.messages],
            "context": self.context.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "metadata": {
                "totalMessages": self.metadata.total_messages,
                "lastActivity": self.metadata.last_activity.isoformat(),
            },
        }


@dataclass
class MessageSummary:
    session_id: str
    message_count: int
    last_message: str
    last_activity: datetime
    current_step: str
    cart_items: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "messageCount": self.message_count,
            "lastMessage": self.last_message,
            "lastActivity": self.last_activity.isoformat(),
            "currentStep": self.current_step,
            "cartItems": self.cart_items,
        }


@dataclass
class ToolResult:
    text: str
    is_error: bool = False
    data: Optional[Dict[str, Any]] = None


@dataclass
class EngineResponse:
    text: str
    action: Optional[ActionTag] = None
    context_patch: Dict[str, Any] = field(default_factory=dict)
    data: Optional[Dict[str, Any]] = None
    source: str = "fallback"


@dataclass
class AssistantReply:
    message: str
    session_id: str
    current_step: ConversationStep
    cart: Cart
    action: Optional[ActionTag] = None
    data: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "sessionId": self.session_id,
            "action": self.action.value if self.action else None,
            "data": self.data,
            "context": {
                "sessionId": self.session_id,
                "currentStep": self.current_step.value,
                "cart": self.cart.to_dict(),
            },
        }
