"""
Order service for handling cart operations
"""
import logging
from typing import List, Optional

from order_assistant.config.settings import CURRENCY_SYMBOL
from order_assistant.models.order_models import Cart, CartLine, MenuItem
from order_assistant.services.utility_service import UtilityService

logger = logging.getLogger(__name__)


class OrderService:
    """Mutations on a single session's cart; every mutation keeps the totals in step"""

    def __init__(self, cart: Cart, currency_symbol: str = CURRENCY_SYMBOL):
        self.cart = cart
        self.currency_symbol = currency_symbol

    def add_item_to_cart(self, item: MenuItem, quantity: int = 1, notes: Optional[str] = None) -> CartLine:
        """Add item to cart, merging with an existing line for the same item"""
        if not UtilityService.validate_quantity(quantity):
            raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")

        line = self.cart.find_line(item.id)
        if line:
            line.quantity += quantity
            if notes:
                line.notes = notes
            line.recalculate()
        else:
            line = CartLine(
                item_id=item.id,
                name=item.name,
                unit_price=item.price,
                quantity=quantity,
                notes=notes or None,
            )
            self.cart.items.append(line)

        self.cart.recalculate()
        logger.debug(f"Cart {self.cart.session_id}: {line.quantity}x {line.name}")
        return line

    def update_item_quantity(self, item_id: int, quantity: int) -> bool:
        """Update quantity of an item in cart"""
        if not UtilityService.validate_quantity(quantity):
            raise ValueError(f"Quantity must be a positive integer, got {quantity!r}")
        line = self.cart.find_line(item_id)
        if not line:
            return False
        line.quantity = quantity
        self.cart.recalculate()
        return True

    def remove_item_from_cart(self, item_id: int) -> bool:
        """Remove item from cart"""
        for i, line in enumerate(self.cart.items):
            if line.item_id == item_id:
                self.cart.items.pop(i)
                self.cart.recalculate()
                return True
        return False

    def get_cart_summary(self) -> str:
        """Get cart summary as string"""
        if self.cart.is_empty():
            return "🛒 Tu carrito está vacío. ¿Te gustaría ver nuestro menú?"

        lines = []
        for line in self.cart.items:
            text = f"• {line.quantity}x {line.name} - {self.format_price(line.subtotal)}"
            if line.notes:
                text += f"\n  📝 {line.notes}"
            lines.append(text)

        return (
            "🛒 **Tu Pedido:**\n\n" + "\n".join(lines) + "\n\n"
            "📊 **Resumen:**\n"
            f"• Total de items: {self.cart.total_items}\n"
            f"• Total a pagar: {self.format_price(self.cart.total_amount)}\n\n"
            "¿Deseas confirmar el pedido?"
        )

    def calculate_total(self) -> float:
        """Calculate total price of cart"""
        self.cart.recalculate()
        return self.cart.total_amount

    def clear_cart(self):
        """Clear the cart"""
        self.cart.items = []
        self.cart.recalculate()

    def get_cart_items(self) -> List[CartLine]:
        """Get all cart items"""
        return self.cart.items.copy()

    def is_cart_empty(self) -> bool:
        """Check if cart is empty"""
        return self.cart.is_empty()

    def format_price(self, amount: float) -> str:
        return UtilityService.format_price(amount, self.currency_symbol)
