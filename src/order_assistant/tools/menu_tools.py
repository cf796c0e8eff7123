"""
Menu lookup tools
"""
import logging
from typing import Optional

from order_assistant.models.order_models import ToolResult
from order_assistant.services.menu_service import MenuService
from order_assistant.services.prompt_service import PromptService
from order_assistant.services.utility_service import UtilityService

logger = logging.getLogger(__name__)


class MenuTools:
    def __init__(self, menu_service: MenuService):
        self.menu_service = menu_service

    def get_menu(self, category: Optional[str] = None) -> ToolResult:
        items = self.menu_service.get_items_by_category(category)

        if not items:
            if category:
                text = f"No encontramos platos en la categoría \"{category}\". ¿Te gustaría ver otras opciones?"
            else:
                text = "No hay platos disponibles en este momento."
            return ToolResult(text=text, data={"items": []})

        listing = self.menu_service.format_listing(items)
        header = f"🍽️ **Menú de {category}:**" if category else "🍽️ **Nuestro Menú:**"
        return ToolResult(text=f"{header}\n\n{listing}", data={"items": [item.to_dict() for item in items]})

    def find_item(self, name: str) -> ToolResult:
        if not UtilityService.clean_item_name(name):
            return ToolResult(text="¿Qué plato estás buscando? Dime su nombre.", is_error=True)

        items = self.menu_service.find_items_by_name(name)
        if not items:
            suggestions = self.menu_service.get_suggestions(name)
            if suggestions:
                options = [f"• ¿Quisiste decir: {', '.join(suggestions)}?"]
            else:
                options = ["• Dime el nombre del plato de otra forma, o una palabra más específica"]
            options.append(f"• Ver el menú de una categoría: {', '.join(self.menu_service.get_menu_categories())}")
            options.append("• Ver nuestro **menú** completo")
            text = PromptService.render("error_handling", {
                "error_context": f"No encontré ningún plato con \"{name}\".",
                "recovery_options": "\n".join(options),
            })
            return ToolResult(text=text, data={"items": [], "suggestions": suggestions})

        listing = self.menu_service.format_listing(items, with_id=True)
        return ToolResult(
            text=f"Encontré estos platos con \"{name}\":\n\n{listing}",
            data={"items": [item.to_dict() for item in items]},
        )

    def get_item_details(self, item_id: int) -> ToolResult:
        item = self.menu_service.get_item_by_id(item_id)
        if item is None:
            return ToolResult(text=f"No encontré un plato con ID {item_id}. ¿Podrías verificar el número?", is_error=True)

        ingredients = "\n".join(f"• {i}" for i in item.ingredients) if item.ingredients else "No especificado"
        text = PromptService.render("ingredient_inquiry", {
            "dish_name": item.name,
            "price": UtilityService.format_price(item.price, self.menu_service.currency_symbol),
            "description": item.description,
            "ingredients_list": ingredients,
            "allergen_info": f"⚠️ **Alérgenos:** {', '.join(item.allergens)}" if item.allergens else None,
            "preparation_notes": (
                f"⏱️ **Tiempo de preparación:** {item.preparation_time} minutos" if item.preparation_time else None
            ),
            "category": item.category,
        })
        return ToolResult(text=text, data={"item": item.to_dict()})

    def get_categories(self) -> ToolResult:
        categories = self.menu_service.get_menu_categories()
        if not categories:
            return ToolResult(text="No hay categorías disponibles en este momento.", data={"categories": []})
        return ToolResult(text="Tenemos: " + ", ".join(categories), data={"categories": categories})
