"""
Cart management tools
"""
import logging
from typing import Optional

from order_assistant.models.order_models import ConversationContext, ConversationStep, ToolResult
from order_assistant.services.menu_service import MenuService
from order_assistant.services.order_service import OrderService
from order_assistant.services.prompt_service import PromptService
from order_assistant.services.utility_service import UtilityService

logger = logging.getLogger(__name__)


class OrderTools:
    def __init__(self, menu_service: MenuService):
        self.menu_service = menu_service

    def _orders(self, context: ConversationContext) -> OrderService:
        return OrderService(context.cart, self.menu_service.currency_symbol)

    def add_to_cart(self, context: ConversationContext, item_id: int, quantity: int = 1,
                    notes: Optional[str] = None) -> ToolResult:
        if not UtilityService.validate_quantity(quantity):
            return ToolResult(text="Por favor indica una cantidad válida (un número entero mayor que 0).", is_error=True)

        item = self.menu_service.get_item_by_id(item_id)
        if item is None:
            return ToolResult(text=f"No encontré un plato con ID {item_id}. ¿Podrías verificar el número?", is_error=True)

        orders = self._orders(context)
        line = orders.add_item_to_cart(item, quantity, notes)
        context.current_step = ConversationStep.ORDERING

        text = PromptService.render("add_to_cart_confirmation", {
            "quantity": quantity,
            "item_name": item.name,
            "total_items": context.cart.total_items,
            "total_amount": orders.format_price(context.cart.total_amount),
            "next_action": "¿Deseas algo más o confirmamos el pedido?",
        })
        return ToolResult(text=text, data={"line": line.to_dict(), "cart": context.cart.to_dict()})

    def update_quantity(self, context: ConversationContext, item_id: int, quantity: int) -> ToolResult:
        orders = self._orders(context)
        if orders.is_cart_empty():
            return ToolResult(text="Tu carrito está vacío. ¿Qué te gustaría pedir?", is_error=True)
        if not UtilityService.validate_quantity(quantity):
            return ToolResult(text="Por favor indica una cantidad válida (un número entero mayor que 0).", is_error=True)

        if not orders.update_item_quantity(item_id, quantity):
            return ToolResult(text=f"No encontré el plato con ID {item_id} en tu carrito.", is_error=True)
        return ToolResult(text=orders.get_cart_summary(), data={"cart": context.cart.to_dict()})

    def remove_item(self, context: ConversationContext, item_id: int) -> ToolResult:
        orders = self._orders(context)
        if not orders.remove_item_from_cart(item_id):
            return ToolResult(text=f"No encontré el plato con ID {item_id} en tu carrito.", is_error=True)
        return ToolResult(text=orders.get_cart_summary(), data={"cart": context.cart.to_dict()})

    def get_cart_summary(self, context: ConversationContext) -> ToolResult:
        return ToolResult(text=self._orders(context).get_cart_summary(), data={"cart": context.cart.to_dict()})

    def clear_cart(self, context: ConversationContext) -> ToolResult:
        self._orders(context).clear_cart()
        return ToolResult(
            text="🗑️ Tu carrito ha sido vaciado. ¿Te gustaría hacer un nuevo pedido?",
            data={"cart": context.cart.to_dict()},
        )
