"""Read-mostly lookups over vendors and their menus."""

import logging
from typing import List

from sqlalchemy.orm import Session, joinedload, selectinload

from . import models
from .errors import NotFound

logger = logging.getLogger("food-ordering.catalog")

TOP_RATING_THRESHOLD = 4.0
TOP_RESTAURANT_LIMIT = 10
FAST_READY_TIME = 30


def _serviceable_vendors(db_sess: Session, pincode: str):
    return db_sess.query(models.Vendor).filter(
        models.Vendor.pincode == pincode,
        models.Vendor.service_available.is_(True),
    )


def get_food_availability(db_sess: Session, pincode: str) -> List[models.Vendor]:
    return (
        _serviceable_vendors(db_sess, pincode)
        .options(selectinload(models.Vendor.foods))
        .order_by(models.Vendor.id)
        .all()
    )


def get_top_restaurants(db_sess: Session, pincode: str) -> List[models.Vendor]:
    return (
        _serviceable_vendors(db_sess, pincode)
        .filter(models.Vendor.rating >= TOP_RATING_THRESHOLD)
        .order_by(models.Vendor.rating.desc(), models.Vendor.id)
        .limit(TOP_RESTAURANT_LIMIT)
        .all()
    )


def _foods_in_serviceable_vendors(db_sess: Session, pincode: str):
    return (
        db_sess.query(models.Food)
        .join(models.Vendor, models.Food.vendor_id == models.Vendor.id)
        .filter(
            models.Vendor.pincode == pincode,
            models.Vendor.service_available.is_(True),
        )
        .options(joinedload(models.Food.vendor))
    )


def get_foods_in_30_min(db_sess: Session, pincode: str) -> List[models.Food]:
    return (
        _foods_in_serviceable_vendors(db_sess, pincode)
        .filter(models.Food.ready_time <= FAST_READY_TIME)
        .order_by(models.Food.id)
        .all()
    )


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_foods(db_sess: Session, pincode: str, query: str) -> List[models.Food]:
    """Foods whose name contains ``query`` literally, case-insensitive."""
    q = _foods_in_serviceable_vendors(db_sess, pincode)
    if query:
        q = q.filter(models.Food.name.ilike(f"%{_escape_like(query)}%", escape="\\"))
    return q.order_by(models.Food.id).all()


def get_restaurant(db_sess: Session, vendor_id: int) -> models.Vendor:
    vendor = (
        db_sess.query(models.Vendor)
        .options(selectinload(models.Vendor.foods))
        .filter(models.Vendor.id == vendor_id)
        .first()
    )
    if not vendor:
        raise NotFound("Restaurant", vendor_id)
    return vendor


def get_food(db_sess: Session, food_id: int) -> models.Food:
    food = db_sess.query(models.Food).filter(models.Food.id == food_id).first()
    if not food:
        raise NotFound("Food", food_id)
    return food


def list_vendor_foods(db_sess: Session, vendor_id: int) -> List[models.Food]:
    return (
        db_sess.query(models.Food)
        .filter(models.Food.vendor_id == vendor_id)
        .order_by(models.Food.id)
        .all()
    )


def add_food(
    db_sess: Session,
    vendor_id: int,
    name: str,
    description: str,
    category: str | None,
    food_type: str,
    ready_time: int | None,
    price: float,
    images: List[str],
) -> models.Food:
    vendor = db_sess.query(models.Vendor).filter(models.Vendor.id == vendor_id).first()
    if not vendor:
        raise NotFound("Vendor", vendor_id)

    food = models.Food(
        vendor_id=vendor.id,
        name=name,
        description=description,
        category=category,
        food_type=food_type,
        ready_time=ready_time,
        price=price,
        rating=0,
        images=images,
    )
    db_sess.add(food)
    db_sess.commit()
    db_sess.refresh(food)
    logger.info(f"Food {food.id} added for vendor {vendor_id} with {len(images)} images")
    return food
