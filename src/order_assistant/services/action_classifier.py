"""
Keyword classifier that tags backend replies with an action and a step change
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from order_assistant.models.order_models import ActionTag, ConversationStep


@dataclass(frozen=True)
class ActionRule:
    keywords: Tuple[str, ...]
    action: ActionTag
    next_step: ConversationStep


# Checked top to bottom, first match wins. A reply mentioning both the menu and
# adding something is tagged get_menu; this precedence is heuristic.
ACTION_RULES: Tuple[ActionRule, ...] = (
    ActionRule(("menú", "menu", "platos disponibles"), ActionTag.GET_MENU, ConversationStep.BROWSING),
    ActionRule(("te recomiendo", "recomendaciones", "recomendación"), ActionTag.GET_RECOMMENDATIONS,
               ConversationStep.BROWSING),
    ActionRule(("añadir", "agregar", "quiero"), ActionTag.ADD_TO_CART, ConversationStep.ORDERING),
    ActionRule(("carrito", "pedido actual", "resumen"), ActionTag.GET_CART_SUMMARY, ConversationStep.CONFIRMING),
)


def match_rule(text: str) -> Optional[ActionRule]:
    lowered = (text or "").lower()
    for rule in ACTION_RULES:
        if any(keyword in lowered for keyword in rule.keywords):
            return rule
    return None


def classify(text: str) -> Optional[ActionTag]:
    rule = match_rule(text)
    return rule.action if rule else None
