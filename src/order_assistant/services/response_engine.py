"""
Response engine: ask the language model backend first, fall back to templates
"""
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from order_assistant.config.settings import ASSISTANT_NAME, RESTAURANT_NAME
from order_assistant.errors import BackendError
from order_assistant.models.order_models import ConversationContext, EngineResponse
from order_assistant.services.action_classifier import match_rule
from order_assistant.services.fallback_service import FallbackGenerator
from order_assistant.services.llm_client import LlmClient
from order_assistant.services.menu_service import MenuService
from order_assistant.services.utility_service import UtilityService

logger = logging.getLogger(__name__)

TOOLS_DESCRIPTION = """HERRAMIENTAS DISPONIBLES:
Tienes acceso a las siguientes herramientas para ayudar a los clientes:

1. get_menu(category?: string) - Obtener menú completo o por categoría
2. find_item(name: string) - Buscar plato específico por nombre
3. get_item_details(id: number) - Obtener detalles de un item del menú
4. add_to_cart(itemId: number, quantity: number, notes?: string) - Añadir item al carrito
5. get_cart_summary() - Ver resumen del carrito actual
6. clear_cart() - Vaciar el carrito
7. confirm_order() - Confirmar y procesar el pedido"""


class ResponseEngine:
    def __init__(self, menu_service: MenuService, fallback: FallbackGenerator,
                 backend: Optional[LlmClient] = None, clock: Callable[[], datetime] = datetime.now,
                 restaurant_name: str = RESTAURANT_NAME, assistant_name: str = ASSISTANT_NAME):
        self.menu_service = menu_service
        self.fallback = fallback
        self.backend = backend
        self.restaurant_name = restaurant_name
        self.assistant_name = assistant_name
        self._clock = clock

    def backend_available(self) -> bool:
        return self.backend is not None and self.backend.is_available()

    async def respond(self, message: str, context: ConversationContext) -> EngineResponse:
        if self.backend_available():
            try:
                return await self._try_backend(message, context)
            except BackendError as e:
                logger.warning(f"Backend failed for session {context.session_id}, using templates: {e}")

        return self.fallback.generate(message, context)

    async def _try_backend(self, message: str, context: ConversationContext) -> EngineResponse:
        text = await self.backend.complete(
            system_prompt=self.build_system_prompt(context),
            messages=self.build_messages(message, context),
        )

        rule = match_rule(text)
        if rule is None:
            return EngineResponse(text=text, source="backend")
        return EngineResponse(
            text=text,
            action=rule.action,
            context_patch={"current_step": rule.next_step},
            source="backend",
        )

    def build_messages(self, message: str, context: ConversationContext) -> List[Dict[str, str]]:
        # TODO: include the prior turns from ConversationHistoryStore.recent() once
        # the prompt budget for history is settled
        return [{"role": "user", "content": message}]

    def build_system_prompt(self, context: ConversationContext) -> str:
        time_of_day = UtilityService.get_time_of_day(self._clock())
        cart = context.cart
        total = UtilityService.format_price(cart.total_amount, self.menu_service.currency_symbol)

        return f"""Eres {self.assistant_name}, la asistente virtual del restaurante dominicano "{self.restaurant_name}".

PERSONALIDAD:
- Amigable, cálida y servicial con personalidad dominicana auténtica
- Conocedora profunda de la cocina tradicional dominicana
- Usa emojis apropiados y expresiones naturales dominicanas

MENÚ ACTUAL:
{self.menu_service.get_prompt_listing()}

{TOOLS_DESCRIPTION}

CONTEXTO ACTUAL:
- Hora del día: {time_of_day}
- Paso de conversación: {context.current_step.value}
- Items en carrito: {cart.total_items}
- Total del carrito: {total}
- Idioma preferido: {context.preferences.language}

INSTRUCCIONES ESPECÍFICAS:
- Usa las herramientas cuando sea apropiado para completar las solicitudes del usuario
- Siempre confirma antes de añadir items al carrito
- Sé proactivo sugiriendo platos según la hora del día
- Si no sabes algo, pregunta amablemente u ofrece alternativas"""
