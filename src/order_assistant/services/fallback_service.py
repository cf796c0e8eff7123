"""
Deterministic template-driven replies used whenever the backend is not
available or fails
"""
import logging
from datetime import datetime
from typing import Callable, List

from order_assistant.config.settings import ASSISTANT_NAME, RESTAURANT_NAME
from order_assistant.models.order_models import (
    ActionTag,
    ConversationContext,
    ConversationStep,
    EngineResponse,
    MenuItem,
)
from order_assistant.services.menu_service import MenuService
from order_assistant.services.order_service import OrderService
from order_assistant.services.prompt_service import PromptService
from order_assistant.services.utility_service import UtilityService

logger = logging.getLogger(__name__)

GREETING_KEYWORDS = ("hola", "buenas")
FAREWELL_KEYWORDS = ("adiós", "adios", "chao", "hasta luego", "nos vemos")
MENU_KEYWORDS = ("menu", "menú", "comida")
# Matched against accent-folded text so "recomiéndame" and "recomiendame" both hit
RECOMMENDATION_KEYWORDS = ("recomiend", "recomendac", "sugier", "sugerencia")
CART_KEYWORDS = ("carrito", "pedido")


class FallbackGenerator:
    def __init__(self, menu_service: MenuService, clock: Callable[[], datetime] = datetime.now,
                 restaurant_name: str = RESTAURANT_NAME, assistant_name: str = ASSISTANT_NAME):
        self.menu_service = menu_service
        self.restaurant_name = restaurant_name
        self.assistant_name = assistant_name
        self._clock = clock

    def generate(self, message: str, context: ConversationContext) -> EngineResponse:
        """
        Pick a reply from the first matching branch: greeting, farewell,
        recommendations, menu, a dish or category named in the message, cart,
        and finally the list of capabilities.
        """
        lower = (message or "").lower()
        time_of_day = UtilityService.get_time_of_day(self._clock())

        if any(k in lower for k in GREETING_KEYWORDS) or context.current_step == ConversationStep.GREETING:
            return self._greeting(context, time_of_day)

        if any(k in lower for k in FAREWELL_KEYWORDS):
            return self._farewell(context)

        folded = UtilityService.fold_text(message)
        if any(k in folded for k in RECOMMENDATION_KEYWORDS):
            return self._recommendations(time_of_day)

        if any(k in lower for k in MENU_KEYWORDS):
            return self._menu(time_of_day)

        # Named dishes win over the cart keywords
        mentioned = self.menu_service.find_mentioned_items(message)
        if mentioned:
            return self._suggest_items(message, mentioned)

        if any(k in lower for k in CART_KEYWORDS):
            return self._cart(context)

        return self._capabilities(context)

    def _greeting(self, context: ConversationContext, time_of_day: str) -> EngineResponse:
        prompt_name = "greeting_vip" if context.user_id else "greeting_standard"
        greeting = PromptService.generate_contextual_greeting(time_of_day, context.preferences.language)
        question = PromptService.generate_follow_up_question(
            step=ConversationStep.GREETING.value,
            time_of_day=time_of_day,
            has_cart=not context.cart.is_empty(),
            cart_item_count=context.cart.total_items,
        )
        text = PromptService.render(prompt_name, {
            "greeting": greeting,
            "question": question,
            "restaurant_name": self.restaurant_name,
            "assistant_name": self.assistant_name,
        })
        return EngineResponse(text=text, context_patch={"current_step": ConversationStep.BROWSING})

    def _menu(self, time_of_day: str) -> EngineResponse:
        text = PromptService.render("menu_presentation", {
            "menu_content": self.menu_service.get_menu_summary(),
            "recommendation": PromptService.get_time_based_recommendation(time_of_day),
            "assistant_name": self.assistant_name,
        })
        return EngineResponse(
            text=text,
            action=ActionTag.GET_MENU,
            context_patch={"current_step": ConversationStep.BROWSING},
        )

    def _cart(self, context: ConversationContext) -> EngineResponse:
        summary = OrderService(context.cart, self.menu_service.currency_symbol).get_cart_summary()
        return EngineResponse(
            text=summary,
            action=ActionTag.GET_CART_SUMMARY,
            context_patch={"current_step": ConversationStep.CONFIRMING},
        )

    def _suggest_items(self, message: str, items: List[MenuItem]) -> EngineResponse:
        folded = UtilityService.fold_text(message)
        categories = [item.category for item in items if UtilityService.fold_text(item.category) in folded]
        topic = categories[0] if categories else ", ".join(item.name for item in items)
        text = PromptService.render("item_suggestion", {
            "topic": topic,
            "items": self.menu_service.format_listing(items),
            "example": items[0].name.lower(),
        })
        return EngineResponse(
            text=text,
            context_patch={"current_step": ConversationStep.ORDERING},
            data={"items": [item.to_dict() for item in items]},
        )

    def _capabilities(self, context: ConversationContext) -> EngineResponse:
        question = PromptService.generate_follow_up_question(
            step=context.current_step.value,
            has_cart=not context.cart.is_empty(),
            cart_item_count=context.cart.total_items,
        )
        text = PromptService.render("capabilities", {"question": question})
        return EngineResponse(text=text, context_patch={"current_step": ConversationStep.BROWSING})

    def _recommendations(self, time_of_day: str) -> EngineResponse:
        items = []
        for category in PromptService.get_recommended_categories(time_of_day):
            items.extend(item for item in self.menu_service.get_available_items() if item.category == category)
        items = items[:3] or self.menu_service.get_available_items()[:3]
        if not items:
            return EngineResponse(text="No hay platos disponibles en este momento.")

        text = PromptService.render("recommendation_system", {
            "recommendations": self.menu_service.format_listing(items),
            "reasoning": "Son los platos que más piden nuestros clientes a esta hora del día.",
            "time_context": PromptService.get_time_based_recommendation(time_of_day),
        })
        return EngineResponse(
            text=text,
            action=ActionTag.GET_RECOMMENDATIONS,
            context_patch={"current_step": ConversationStep.BROWSING},
            data={"items": [item.to_dict() for item in items]},
        )

    def _farewell(self, context: ConversationContext) -> EngineResponse:
        cart = context.cart
        if cart.is_empty():
            summary = ""
            call_to_action = "Cuando quieras pedir, aquí estaré para mostrarte nuestro menú."
        else:
            total = UtilityService.format_price(cart.total_amount, self.menu_service.currency_symbol)
            summary = f"Tienes {cart.total_items} item(s) en tu carrito por {total}."
            call_to_action = "Tu carrito te estará esperando cuando regreses para completar el pedido."
        text = PromptService.render("farewell", {
            "farewell_greeting": "¡Hasta pronto! 👋",
            "restaurant_name": self.restaurant_name,
            "summary": summary,
            "call_to_action": call_to_action,
        })
        return EngineResponse(text=text)
