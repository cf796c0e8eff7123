"""
Utility service for common operations
"""
import logging
import random
import string
import time
import unicodedata
import uuid
from datetime import datetime
from typing import Optional

from order_assistant.config.settings import CURRENCY_SYMBOL

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


class UtilityService:
    @staticmethod
    def format_price(amount: float, currency_symbol: str = CURRENCY_SYMBOL) -> str:
        """Format price for display, dropping the decimals on whole amounts"""
        if float(amount).is_integer():
            return f"{currency_symbol}{int(amount)}"
        return f"{currency_symbol}{amount:.2f}"

    @staticmethod
    def clean_item_name(name: str) -> str:
        """Clean item name for display"""
        if not name:
            return ""
        return name.strip()

    @staticmethod
    def fold_text(text: str) -> str:
        """Lowercase and strip accents so 'Menú' and 'menu' compare equal"""
        if not text:
            return ""
        decomposed = unicodedata.normalize("NFKD", text.lower())
        return "".join(c for c in decomposed if not unicodedata.combining(c))

    @staticmethod
    def validate_quantity(quantity) -> bool:
        """Validate quantity"""
        return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0

    @staticmethod
    def generate_order_id() -> str:
        """Generate an order ID from the clock plus a short random suffix"""
        return f"ORD-{int(time.time() * 1000)}-{uuid.uuid4().hex[:4].upper()}"

    @staticmethod
    def generate_session_id() -> str:
        """Generate an opaque session ID: timestamp plus a random base36 suffix"""
        suffix = "".join(random.choices(_BASE36, k=9))
        return f"session_{int(time.time() * 1000)}_{suffix}"

    @staticmethod
    def get_time_of_day(now: Optional[datetime] = None) -> str:
        hour = (now or datetime.now()).hour

        if 6 <= hour < 12:
            return "morning"
        if 12 <= hour < 18:
            return "afternoon"
        if 18 <= hour < 21:
            return "evening"
        return "night"
