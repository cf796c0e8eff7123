"""
Order confirmation tool
"""
import logging
from datetime import datetime
from typing import Callable

from order_assistant.config.settings import RESTAURANT_NAME
from order_assistant.models.order_models import ConversationContext, ConversationStep, ToolResult
from order_assistant.services.order_service import OrderService
from order_assistant.services.prompt_service import PromptService
from order_assistant.services.utility_service import UtilityService

logger = logging.getLogger(__name__)


class OrderCompletionTools:
    def __init__(self, currency_symbol: str, restaurant_name: str = RESTAURANT_NAME,
                 clock: Callable[[], datetime] = datetime.now):
        self.currency_symbol = currency_symbol
        self.restaurant_name = restaurant_name
        self._clock = clock

    def confirm_order(self, context: ConversationContext) -> ToolResult:
        """
        Confirm the session's cart as an order.

        The cart is cleared and the order details are returned in data for the
        host to persist; nothing is stored here.
        """
        orders = OrderService(context.cart, self.currency_symbol)
        if orders.is_cart_empty():
            return ToolResult(
                text="🛒 No tienes items en tu carrito para confirmar. ¿Te gustaría ver nuestro menú?",
                is_error=True,
            )

        order_id = UtilityService.generate_order_id()
        total = orders.calculate_total()
        lines = orders.get_cart_items()
        order_summary = "\n".join(f"• {line.quantity}x {line.name} - {orders.format_price(line.subtotal)}" for line in lines)

        order = {
            "order_id": order_id,
            "session_id": context.session_id,
            "user_id": context.user_id,
            "items": [line.to_dict() for line in lines],
            "total_amount": total,
            "created_at": self._clock().isoformat(),
        }

        orders.clear_cart()
        context.current_step = ConversationStep.COMPLETED
        logger.info(f"Order {order_id} confirmed for session {context.session_id}: {orders.format_price(total)}")

        text = PromptService.render("order_confirmation", {
            "order_id": order_id,
            "total_amount": orders.format_price(total),
            "delivery_time": "20-30 minutos",
            "order_summary": order_summary,
            "restaurant_name": self.restaurant_name,
        })
        return ToolResult(text=text, data={"order": order})
