"""
Prompt templates and the helpers that fill them in
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

_LEFTOVER_PLACEHOLDER = re.compile(r"\{\{[^}]*\}\}")
_BLANK_RUN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    description: str
    template: str
    variables: List[str]
    context: Dict[str, str] = field(default_factory=dict)


_TEMPLATES = [
    PromptTemplate(
        name="greeting_standard",
        description="Saludo estándar para nuevos clientes",
        template="""¡{{greeting}}! 👋

Bienvenido a **{{restaurant_name}}**, tu restaurante dominicano favorito donde cada plato cuenta una historia de sabor y tradición.

Soy {{assistant_name}}, tu asistente virtual, y estoy aquí para ayudarte a descubrir nuestros deliciosos platos caseros hechos con amor y los mejores ingredientes frescos.

{{question}}""",
        variables=["greeting", "question", "restaurant_name", "assistant_name"],
        context={"step": "greeting", "language": "es", "customerType": "regular"},
    ),
    PromptTemplate(
        name="greeting_vip",
        description="Saludo especial para clientes VIP",
        template="""¡{{greeting}}! 🌟

¡Qué alegría verte de nuevo en **{{restaurant_name}}**! Bienvenido otra vez. Como uno de nuestros clientes especiales, tengo preparadas algunas sorpresas para ti.

Hoy tenemos promociones exclusivas y puedo recomendarte nuestros platos más populares basándome en tus pedidos anteriores.

{{question}}""",
        variables=["greeting", "question", "restaurant_name"],
        context={"step": "greeting", "language": "es", "customerType": "vip"},
    ),
    PromptTemplate(
        name="menu_presentation",
        description="Presentación del menú",
        template="""🍽️ **Nuestro Menú Tradicional Dominicano**

{{menu_content}}

Todos nuestros platos son preparados al momento con ingredientes frescos y siguiendo las recetas tradicionales de nuestras abuelas dominicanas.

💡 **Tip de {{assistant_name}}:** {{recommendation}}

¿Qué se te antoja hoy? Puedo contarte más detalles sobre cualquier plato o ayudarte a elegir según tus gustos.""",
        variables=["menu_content", "recommendation", "assistant_name"],
        context={"step": "browsing", "language": "es"},
    ),
    PromptTemplate(
        name="item_suggestion",
        description="Platos del menú que coinciden con lo que pidió el cliente",
        template="""¡Excelente elección! Esto es lo que tenemos de {{topic}}:

{{items}}

¿Cuál prefieres? Dime el plato y la cantidad, por ejemplo "quiero 2 {{example}}".""",
        variables=["topic", "items", "example"],
        context={"step": "ordering", "language": "es"},
    ),
    PromptTemplate(
        name="capabilities",
        description="Lista de cosas en las que el asistente puede ayudar",
        template="""Te puedo ayudar con:

🍽️ Ver nuestro **menú**
🛒 Revisar tu **carrito**
📞 Hacer un **pedido**
❓ Responder **preguntas** sobre nuestros platos

{{question}}""",
        variables=["question"],
        context={"language": "es"},
    ),
    PromptTemplate(
        name="add_to_cart_confirmation",
        description="Confirmación al añadir items al carrito",
        template="""✅ ¡Perfecto! Añadí {{quantity}} {{item_name}} a tu pedido.

🛒 **Tu carrito:** {{total_items}} item(s) - {{total_amount}}

{{next_action}}""",
        variables=["quantity", "item_name", "total_items", "total_amount", "next_action"],
        context={"step": "ordering", "language": "es"},
    ),
    PromptTemplate(
        name="order_confirmation",
        description="Confirmación final del pedido",
        template="""🎉 ¡Pedido confirmado!

📋 **Número de pedido:** {{order_id}}
💰 **Total:** {{total_amount}}

⏱️ **Tiempo estimado:** {{delivery_time}}

**Tu pedido:**
{{order_summary}}

¡Gracias por elegir {{restaurant_name}}! Tu pedido estará listo pronto. 🍽️""",
        variables=["order_id", "total_amount", "delivery_time", "order_summary", "restaurant_name"],
        context={"step": "completed", "language": "es"},
    ),
    PromptTemplate(
        name="recommendation_system",
        description="Sistema de recomendaciones personalizado",
        template="""🌟 **Mis Recomendaciones para Ti**

{{recommendations}}

**¿Por qué te recomiendo esto?**
{{reasoning}}

{{time_context}}

¿Te llama la atención alguna de estas opciones? Puedo contarte más sobre los ingredientes, preparación o tiempo de entrega.""",
        variables=["recommendations", "reasoning", "time_context"],
        context={"step": "browsing", "language": "es"},
    ),
    PromptTemplate(
        name="ingredient_inquiry",
        description="Respuestas sobre ingredientes y alérgenos",
        template="""🧾 **Información sobre {{dish_name}}**

💰 **Precio:** {{price}}

📋 **Descripción:** {{description}}

**Ingredientes principales:**
{{ingredients_list}}

{{allergen_info}}

{{preparation_notes}}

📂 **Categoría:** {{category}}

¿Hay algo específico que te preocupe o te gustaría modificar en la preparación?""",
        variables=["dish_name", "price", "description", "ingredients_list", "allergen_info",
                   "preparation_notes", "category"],
        context={"step": "browsing", "language": "es"},
    ),
    PromptTemplate(
        name="error_handling",
        description="Manejo amigable de errores",
        template="""🤔 **Ups, algo no salió como esperaba...**

{{error_context}}

**Pero no te preocupes,** estoy aquí para ayudarte. Aquí tienes algunas opciones:

{{recovery_options}}

¿Cuál te gustaría probar? O si prefieres, puedes contarme exactamente qué quieres hacer y buscaré otra forma de ayudarte.""",
        variables=["error_context", "recovery_options"],
        context={"language": "es"},
    ),
    PromptTemplate(
        name="farewell",
        description="Despedida cordial y invitación a regresar",
        template="""{{farewell_greeting}}

Ha sido un placer ayudarte hoy en {{restaurant_name}}. {{summary}}

{{call_to_action}}

¡Que disfrutes mucho tu comida y esperamos verte pronto! 🍽️✨""",
        variables=["farewell_greeting", "restaurant_name", "summary", "call_to_action"],
        context={"step": "completed", "language": "es"},
    ),
]


class PromptService:
    _prompts: Dict[str, PromptTemplate] = {t.name: t for t in _TEMPLATES}

    _greetings = {
        "es": {
            "morning": "Buenos días",
            "afternoon": "Buenas tardes",
            "evening": "Buenas tardes",
            "night": "Buenas noches",
            "default": "Hola",
        },
        "en": {
            "morning": "Good morning",
            "afternoon": "Good afternoon",
            "evening": "Good evening",
            "night": "Good evening",
            "default": "Hello",
        },
    }

    _recommendations = {
        "morning": "Para comenzar bien el día, te recomiendo nuestro Mangú con huevos revueltos.",
        "afternoon": "Para el almuerzo, nuestro Pollo Guisado con arroz y habichuelas es muy popular.",
        "evening": "Para la cena, el Pescado Frito con patacones es una delicia.",
        "night": "Para algo ligero, nuestros postres como el Flan de Coco son perfectos.",
        "default": "Nuestro Pollo Guisado es el favorito de la casa.",
    }

    # Most asked-for categories per time of day, best first
    _recommended_categories = {
        "morning": ["bebidas", "pollo"],
        "afternoon": ["pollo", "res"],
        "evening": ["pescado", "res"],
        "night": ["postres", "bebidas"],
        "default": ["pollo"],
    }

    @classmethod
    def get_prompt(cls, name: str) -> Optional[PromptTemplate]:
        return cls._prompts.get(name)

    @classmethod
    def get_all_prompts(cls) -> List[PromptTemplate]:
        return list(cls._prompts.values())

    @classmethod
    def get_prompts_by_context(cls, step: Optional[str] = None,
                               customer_type: Optional[str] = None) -> List[PromptTemplate]:
        results = []
        for prompt in cls._prompts.values():
            if step and prompt.context.get("step") and prompt.context["step"] != step:
                continue
            if customer_type and prompt.context.get("customerType") and prompt.context["customerType"] != customer_type:
                continue
            results.append(prompt)
        return results

    @staticmethod
    def process_template(template: str, variables: Optional[Dict[str, Any]] = None) -> str:
        """
        Fill {{name}} placeholders from variables.

        Every occurrence of a supplied variable is replaced (None becomes an
        empty string) and any placeholder left over is removed, so no {{...}}
        ever reaches the customer. Blank lines left by empty sections collapse
        into one and the result is trimmed.
        """
        processed = template
        for key, value in (variables or {}).items():
            processed = processed.replace("{{" + key + "}}", "" if value is None else str(value))

        processed = _LEFTOVER_PLACEHOLDER.sub("", processed)
        processed = _BLANK_RUN.sub("\n\n", processed)
        return processed.strip()

    @classmethod
    def render(cls, name: str, variables: Optional[Dict[str, Any]] = None) -> str:
        prompt = cls.get_prompt(name)
        if prompt is None:
            raise KeyError(f"Unknown prompt template: {name}")
        return cls.process_template(prompt.template, variables)

    @classmethod
    def generate_contextual_greeting(cls, time_of_day: Optional[str] = None, language: str = "es") -> str:
        greetings = cls._greetings.get(language)
        if greetings is None:
            return "Hola"
        return greetings.get(time_of_day, greetings["default"])

    @staticmethod
    def generate_follow_up_question(step: str, time_of_day: Optional[str] = None,
                                    has_cart: bool = False, cart_item_count: int = 0) -> str:
        if has_cart and cart_item_count > 0:
            return "¿Deseas añadir algo más a tu pedido o confirmamos lo que tienes?"

        if step == "greeting":
            if time_of_day == "morning":
                return "¿Te gustaría empezar el día con uno de nuestros desayunos dominicanos?"
            if time_of_day == "afternoon":
                return "¿Qué tal si vemos nuestro menú del almuerzo?"
            return "¿Te gustaría ver nuestro menú o tienes algo específico en mente?"

        return "¿En qué puedo ayudarte?"

    @classmethod
    def get_time_based_recommendation(cls, time_of_day: Optional[str] = None) -> str:
        return cls._recommendations.get(time_of_day, cls._recommendations["default"])

    @classmethod
    def get_recommended_categories(cls, time_of_day: Optional[str] = None) -> List[str]:
        return cls._recommended_categories.get(time_of_day, cls._recommended_categories["default"])
