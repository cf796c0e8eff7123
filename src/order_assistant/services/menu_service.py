"""
Menu service: the static catalog, with substring lookups and fuzzy suggestions
"""
import logging
import re
from difflib import SequenceMatcher
from typing import Dict, Iterable, List, Optional

from order_assistant.config.settings import CURRENCY_SYMBOL
from order_assistant.models.order_models import MenuItem
from order_assistant.services.utility_service import UtilityService

logger = logging.getLogger(__name__)


class MenuService:
    def __init__(self, menu_items: Iterable[MenuItem], currency_symbol: str = CURRENCY_SYMBOL):
        self.menu_data: List[MenuItem] = list(menu_items)
        self.currency_symbol = currency_symbol
        self._by_id: Dict[int, MenuItem] = {}
        for item in self.menu_data:
            if item.id in self._by_id:
                raise ValueError(f"Duplicate menu item id: {item.id}")
            self._by_id[item.id] = item
        self._search_index: List[Dict] = []
        self._build_search_index()
        logger.info(f"Catalog loaded with {len(self.menu_data)} items")

    def _build_search_index(self):
        """Build searchable index with folded names and words for fuzzy matching"""
        for item in self.menu_data:
            terms = set()
            folded_name = UtilityService.fold_text(item.name)
            folded_category = UtilityService.fold_text(item.category)
            terms.add(folded_name)
            terms.update(re.findall(r"\b\w+\b", folded_name))
            if folded_category:
                terms.add(folded_category)
                terms.update(re.findall(r"\b\w+\b", folded_category))

            self._search_index.append({
                "item": item,
                "search_terms": sorted(terms),
                "name_words": set(re.findall(r"\b\w+\b", folded_name)),
                "category": folded_category,
            })

    def get_available_items(self) -> List[MenuItem]:
        return [item for item in self.menu_data if item.available]

    def get_item_by_id(self, item_id: int, available_only: bool = True) -> Optional[MenuItem]:
        """Get item by exact ID"""
        item = self._by_id.get(item_id)
        if item is None or (available_only and not item.available):
            return None
        return item

    def find_items_by_name(self, name: str) -> List[MenuItem]:
        """Case-insensitive substring match over available item names"""
        needle = (name or "").strip().lower()
        if not needle:
            return []
        return [item for item in self.get_available_items() if needle in item.name.lower()]

    def get_items_by_category(self, category: str) -> List[MenuItem]:
        """Case-insensitive substring match over categories; no category means everything available"""
        items = self.get_available_items()
        if not category:
            return items
        needle = category.strip().lower()
        return [item for item in items if needle in item.category.lower()]

    def get_menu_categories(self) -> List[str]:
        """Get all categories that have something available"""
        return sorted({item.category for item in self.get_available_items()})

    def fuzzy_search_items(self, query: str, limit: int = 5, min_score: float = 0.3) -> List[Dict]:
        """
        Find available menu items using fuzzy matching

        Args:
            query: User's search query
            limit: Maximum number of results to return
            min_score: Minimum similarity score (0-1)

        Returns:
            List of {'item', 'score', 'match_type'} sorted by score
        """
        query_folded = UtilityService.fold_text(query).strip()
        if not query_folded:
            return []

        matches = []
        for index_item in self._search_index:
            item = index_item["item"]
            if not item.available:
                continue

            best_score = 0.0
            best_match_type = ""
            for term in index_item["search_terms"]:
                if term == query_folded:
                    score, match_type = 1.0, "exact"
                elif term.startswith(query_folded):
                    score, match_type = 0.9, "starts_with"
                elif query_folded in term:
                    score, match_type = 0.8, "contains"
                else:
                    score = SequenceMatcher(None, query_folded, term).ratio()
                    match_type = "fuzzy"

                if score > best_score:
                    best_score, best_match_type = score, match_type

            if best_score >= min_score:
                matches.append({"item": item, "score": best_score, "match_type": best_match_type})

        matches.sort(key=lambda m: m["score"], reverse=True)
        logger.debug(f"Fuzzy search '{query}' matched {len(matches)} items")
        return matches[:limit]

    def get_suggestions(self, query: str, limit: int = 3) -> List[str]:
        """Get suggested item names for a query that matched nothing exactly"""
        suggestions = []
        for match in self.fuzzy_search_items(query, limit=limit, min_score=0.5):
            if match["item"].name not in suggestions:
                suggestions.append(match["item"].name)
        return suggestions

    def find_mentioned_items(self, message: str, min_word_length: int = 4) -> List[MenuItem]:
        """Items whose category or name words appear as words in a free-text message"""
        words = {
            w for w in re.findall(r"\b\w+\b", UtilityService.fold_text(message))
            if len(w) >= min_word_length
        }
        if not words:
            return []

        found = []
        for index_item in self._search_index:
            item = index_item["item"]
            if not item.available:
                continue
            if index_item["category"] in words or words & index_item["name_words"]:
                found.append(item)
        return found

    def format_item_line(self, item: MenuItem, with_id: bool = False) -> str:
        text = f"🍽️ **{item.name}** - {UtilityService.format_price(item.price, self.currency_symbol)}\n"
        text += f"   {item.description}\n"
        if item.preparation_time:
            text += f"   ⏱️ {item.preparation_time} min\n"
        if with_id:
            text += f"   ID: {item.id}\n"
        return text

    def format_listing(self, items: List[MenuItem], with_id: bool = False) -> str:
        return "\n".join(self.format_item_line(item, with_id=with_id) for item in items)

    def get_menu_summary(self) -> str:
        """Full available-catalog listing used in prompts and menu replies"""
        items = self.get_available_items()
        if not items:
            return "No hay platos disponibles en este momento."
        return self.format_listing(items)

    def get_prompt_listing(self) -> str:
        """Compact one-line-per-item listing for the language model system prompt"""
        lines = []
        for i, item in enumerate(self.get_available_items(), 1):
            prep = f" ({item.preparation_time} min)" if item.preparation_time else ""
            lines.append(
                f"{i}. {item.name} - {UtilityService.format_price(item.price, self.currency_symbol)}"
                f"{prep} - {item.description}"
            )
        return "\n".join(lines)
