# nomadigma/utils/messages.py
from typing import Dict
from ..models.bilingual import Language
from ..models.product import PriceState
from .formatters import format_price
from .pricing import price_display

class Messages:
    TEXTS: Dict[str, Dict[Language, str]] = {
        "free": {Language.EN: "Free", Language.ES: "Gratis"},
        "download": {Language.EN: "Download", Language.ES: "Descargar"},
    }

    @staticmethod
    def text(key: str, locale: Language) -> str:
        return Messages.TEXTS[key][Language(locale)]

    @staticmethod
    def format_price_label(state: PriceState, locale: Language = Language.EN,
                           currency: str = "USD") -> str:
        """Price line: amount, struck original and discount badge"""
        display = price_display(state)

        if display.is_free and display.original_price:
            return (
                f"{Messages.text('free', locale)} "
                f"~~${format_price(display.original_price)}~~"
            )
        if display.is_free:
            return Messages.text("free", locale)
        if display.original_price is not None:
            return (
                f"${format_price(display.amount)} {currency} "
                f"~~${format_price(display.original_price)}~~ "
                f"-{display.discount_percentage:g}%"
            )
        return f"${format_price(display.amount)} {currency}"
