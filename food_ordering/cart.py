import logging
from typing import List, Tuple

from sqlalchemy.orm import Session

from . import models
from .catalog import get_food
from .errors import NotFound, ValidationError

logger = logging.getLogger("food-ordering.cart")


def _load_customer(db_sess: Session, customer_id: int) -> models.Customer:
    customer = db_sess.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise NotFound("Customer", customer_id)
    return customer


def upsert_cart_item(
    db_sess: Session, customer_id: int, food_id: int, unit: int
) -> Tuple[List[models.CartItem], int]:
    """Add ``unit`` of a food to the cart; ``unit <= 0`` drops the entry.

    Positive units accumulate onto an existing entry. Returns the cart and
    the sum of its units.
    """
    if isinstance(unit, bool) or not isinstance(unit, int):
        raise ValidationError("Unit must be an integer")

    customer = _load_customer(db_sess, customer_id)
    food = get_food(db_sess, food_id)

    existing = next((item for item in customer.cart if item.food_id == food.id), None)
    if existing is not None:
        if unit > 0:
            existing.unit += unit
        else:
            customer.cart.remove(existing)
    elif unit > 0:
        customer.cart.append(models.CartItem(food_id=food.id, unit=unit))

    db_sess.commit()
    db_sess.refresh(customer)
    total_units = sum(item.unit for item in customer.cart)
    logger.info(f"Cart updated for customer {customer_id}: {total_units} units")
    return customer.cart, total_units


def get_cart(db_sess: Session, customer_id: int) -> List[models.CartItem]:
    return _load_customer(db_sess, customer_id).cart


def clear_cart(db_sess: Session, customer_id: int) -> List[models.CartItem]:
    customer = _load_customer(db_sess, customer_id)
    customer.cart = []
    db_sess.commit()
    logger.info(f"Cart cleared for customer {customer_id}")
    return []
