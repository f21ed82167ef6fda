# nomadigma/utils/pricing.py
"""Price and discount resolution for products.

A product carries an original `price`, an optional `final_price` (what the
customer pays), an `is_on_sale` toggle and a `discount_percentage`. The admin
editor changes one field at a time; `resolve_price` takes the current state
plus the changed field and returns a new state where the other fields are
derived again. `normalize_price_state` enforces the same invariants on a
state submitted as a whole (create/update requests).
"""
import math
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel
from ..errors import PriceInvariantViolation
from ..models.product import PriceAnchor, PriceState

FREE_DISCOUNT = 100.0

class PriceField(str, Enum):
    IS_ON_SALE = "is_on_sale"
    DISCOUNT_PERCENTAGE = "discount_percentage"
    FINAL_PRICE = "final_price"
    PRICE = "price"

class PriceDisplay(BaseModel):
    """What a storefront renders for a price state"""
    amount: float
    original_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    is_free: bool = False

def discounted_price(price: float, discount: float) -> float:
    """Final price for an original price and a discount in percent"""
    return price * (100 - discount) / 100

def original_price(final_price: float, discount: float) -> float:
    """Original price that yields `final_price` after `discount` percent off"""
    return final_price / (1 - discount / 100)

def _check_amount(field: str, value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise PriceInvariantViolation(field, f"Field {field} must be a number")
    if math.isnan(amount) or math.isinf(amount) or amount < 0:
        raise PriceInvariantViolation(
            field, f"Field {field} must be greater than or equal to 0"
        )
    return amount

def _check_percentage(value: Any) -> float:
    try:
        discount = float(value)
    except (TypeError, ValueError):
        raise PriceInvariantViolation("discount_percentage", "Discount must be a number")
    if math.isnan(discount) or discount < 0 or discount > FREE_DISCOUNT:
        raise PriceInvariantViolation(
            "discount_percentage", "Discount must be between 0 and 100"
        )
    return discount

def _check_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "on", "yes")
    return bool(value)

def validate_price_state(state: PriceState) -> None:
    """Raise PriceInvariantViolation when a field is out of range"""
    _check_amount("price", state.price)
    if state.final_price is not None:
        _check_amount("final_price", state.final_price)
    if state.discount_percentage is not None:
        _check_percentage(state.discount_percentage)

def resolve_price(state: PriceState, field: PriceField, value: Any) -> PriceState:
    """Apply an edit of `field` and derive the remaining price fields"""
    validate_price_state(state)
    field = PriceField(field)

    if field == PriceField.IS_ON_SALE:
        return _toggle_sale(state, _check_flag(value))
    if field == PriceField.DISCOUNT_PERCENTAGE:
        return _set_discount(state, _check_percentage(value or 0))
    if field == PriceField.FINAL_PRICE:
        return _set_final_price(state, _check_amount("final_price", value))
    return _set_price(state, _check_amount("price", value))

def _toggle_sale(state: PriceState, on_sale: bool) -> PriceState:
    if on_sale == state.is_on_sale:
        return state.model_copy()

    current = state.display_price
    discount = state.discount_percentage or 0

    if not on_sale:
        return state.model_copy(update={
            "is_on_sale": False,
            "discount_percentage": 0,
            "price": current,
            "final_price": None,
        })

    update = {"is_on_sale": True}
    if discount == FREE_DISCOUNT:
        update["final_price"] = 0.0
        update["price"] = state.price if state.price > 0 else current
    elif discount > 0:
        if state.anchor == PriceAnchor.FINAL_PRICE:
            update["price"] = original_price(current, discount)
            update["final_price"] = current
        else:
            update["final_price"] = discounted_price(state.price, discount)
    else:
        # No real discount yet
        update["price"] = state.price or current
        update["final_price"] = current
    return state.model_copy(update=update)

def _set_discount(state: PriceState, discount: float) -> PriceState:
    if not state.is_on_sale:
        return state.model_copy(update={
            "discount_percentage": discount,
            "final_price": None,
        })

    current = state.display_price
    update = {"discount_percentage": discount}

    if discount == FREE_DISCOUNT:
        update["final_price"] = 0.0
        update["price"] = state.price if state.price > 0 else current
    elif discount > 0:
        # A pinned 0 was never typed by the user, derive from the original
        if state.anchor == PriceAnchor.FINAL_PRICE and not state.is_free:
            update["price"] = original_price(current, discount)
            update["final_price"] = current
        else:
            update["final_price"] = discounted_price(state.price, discount)
    else:
        update["price"] = current
        update["final_price"] = None
    return state.model_copy(update=update)

def _set_final_price(state: PriceState, final_price: float) -> PriceState:
    discount = state.discount_percentage or 0

    if state.is_on_sale and discount == FREE_DISCOUNT:
        return state.model_copy(update={"final_price": 0.0})

    if state.is_on_sale and discount > 0:
        return state.model_copy(update={
            "price": original_price(final_price, discount),
            "final_price": final_price,
            "anchor": PriceAnchor.FINAL_PRICE,
        })

    return state.model_copy(update={
        "price": final_price,
        "final_price": None,
        "anchor": PriceAnchor.FINAL_PRICE,
    })

def _set_price(state: PriceState, price: float) -> PriceState:
    discount = state.discount_percentage or 0

    if state.is_on_sale and discount == FREE_DISCOUNT:
        return state.model_copy(update={"price": price, "final_price": 0.0})

    if state.is_on_sale and discount > 0:
        return state.model_copy(update={
            "price": price,
            "final_price": discounted_price(price, discount),
            "anchor": PriceAnchor.PRICE,
        })

    return state.model_copy(update={
        "price": price,
        "final_price": None,
        "anchor": PriceAnchor.PRICE,
    })

def normalize_price_state(state: PriceState) -> PriceState:
    """Enforce the stored-state invariants on a submitted price state.

    With a partial discount the field named by `state.anchor` wins: the
    final price is derived from `price`, or `price` from the final price
    when the final price was the one submitted.
    """
    validate_price_state(state)
    discount = state.discount_percentage or 0

    if not state.is_on_sale:
        return state.model_copy(update={"final_price": None, "discount_percentage": None})

    if discount == FREE_DISCOUNT:
        return state.model_copy(update={"final_price": 0.0})

    if discount > 0:
        if state.anchor == PriceAnchor.FINAL_PRICE and state.final_price is not None:
            return state.model_copy(update={
                "price": original_price(state.final_price, discount)
            })
        return state.model_copy(update={
            "final_price": discounted_price(state.price, discount)
        })

    # On sale without a discount yet, the customer pays `price`
    return state.model_copy(update={"final_price": None, "discount_percentage": None})

def price_display(state: PriceState) -> PriceDisplay:
    """Amount to charge plus what to strike through"""
    discount = state.discount_percentage or 0

    if state.is_on_sale and discount == FREE_DISCOUNT:
        return PriceDisplay(
            amount=0.0,
            original_price=state.price,
            discount_percentage=discount,
            is_free=True,
        )

    if state.is_on_sale and 0 < discount < FREE_DISCOUNT:
        return PriceDisplay(
            amount=state.display_price,
            original_price=state.price,
            discount_percentage=discount,
        )

    amount = state.display_price if state.is_on_sale else state.price
    return PriceDisplay(amount=amount, is_free=amount == 0)
