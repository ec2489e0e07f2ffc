"""Checkout, delivery assignment and the vendor-driven order lifecycle.

Checkout flow:
1. Validate the transaction (exists, not FAILED, not yet linked, owned by the customer).
2. Resolve every requested food in one query; all must resolve to one vendor.
3. Persist the order, link it to the transaction and append it to the
   customer's orders, all in one database transaction.
4. Try to bind an available delivery person in the vendor's pincode.
   Failures here never fail the checkout.
"""

import logging
import random
from collections import OrderedDict
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from . import models
from .errors import InvalidItems, InvalidTransaction, InvalidTransition, NotFound, ValidationError
from .metrics import DELIVERY_ASSIGNMENTS, ORDERS_CREATED

logger = logging.getLogger("food-ordering.orders")

DEFAULT_READY_TIME = 45
ORDER_ID_ATTEMPTS = 5

S = models.OrderStatus

ORDER_TRANSITIONS = {
    S.WAITING: {S.IN_PROGRESS, S.CANCELLED},
    S.IN_PROGRESS: {S.READY, S.CANCELLED},
    S.READY: {S.DISPATCHED},
    S.DISPATCHED: {S.DELIVERED},
    S.DELIVERED: set(),
    S.CANCELLED: set(),
}

# reaching these frees the delivery person bound to the order
RELEASES_DELIVERY = {S.DELIVERED, S.CANCELLED}


def validate_transaction(db_sess: Session, txn_id: int) -> models.Transaction:
    txn = db_sess.query(models.Transaction).filter(models.Transaction.id == txn_id).first()
    if not txn:
        logger.info(f"Transaction {txn_id} not found")
        raise InvalidTransaction(txn_id, "not found")
    if txn.status.upper() == models.TransactionStatus.FAILED.value:
        logger.info(f"Transaction {txn_id} is marked failed")
        raise InvalidTransaction(txn_id, "payment failed")
    return txn


def _order_id_taken(db_sess: Session, order_id: str) -> bool:
    return db_sess.query(models.Order.id).filter(models.Order.order_id == order_id).first() is not None


def generate_order_id(db_sess: Session, rng=random) -> str:
    """Draw 5-digit ids until one is not taken."""
    while True:
        candidate = str(rng.randint(10000, 99999))
        if not _order_id_taken(db_sess, candidate):
            return candidate
        logger.debug(f"Order id {candidate} taken, drawing again")


def _merge_items(items: Iterable[Tuple[int, int]]) -> "OrderedDict[int, int]":
    merged: OrderedDict[int, int] = OrderedDict()
    for food_id, unit in items:
        if isinstance(unit, bool) or not isinstance(unit, int) or unit < 1:
            raise ValidationError(f"Unit for food {food_id} must be a positive integer")
        merged[food_id] = merged.get(food_id, 0) + unit
    return merged


def create_order(
    db_sess: Session,
    customer_id: int,
    txn_id: int,
    amount: float,
    items: Iterable[Tuple[int, int]],
    ready_time: int = DEFAULT_READY_TIME,
) -> models.Customer:
    """Turn an open transaction and a list of ``(food_id, unit)`` into an order.

    Returns the refreshed customer. Nothing is persisted unless every food
    resolves; the order, its transaction link and the customer's order list
    are committed together.
    """
    txn = validate_transaction(db_sess, txn_id)
    if txn.order_ref is not None:
        raise InvalidTransaction(txn_id, "already used for an order")
    if txn.customer_id != customer_id:
        raise InvalidTransaction(txn_id, "belongs to another customer")

    customer = db_sess.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise NotFound("Customer", customer_id)

    requested = _merge_items(items)
    if not requested:
        raise InvalidItems("Order has no items")

    foods = db_sess.query(models.Food).filter(models.Food.id.in_(list(requested))).all()
    if len(foods) != len(requested):
        found = {f.id for f in foods}
        missing = [fid for fid in requested if fid not in found]
        logger.info(f"Unresolved food items {missing} for customer {customer_id}")
        ORDERS_CREATED.labels("INVALID_ITEMS").inc()
        raise InvalidItems(f"Food items not found: {missing}", missing=missing)

    vendor_ids = {f.vendor_id for f in foods}
    if len(vendor_ids) > 1:
        ORDERS_CREATED.labels("INVALID_ITEMS").inc()
        raise InvalidItems("All items in an order must come from one vendor")
    vendor_id = vendor_ids.pop()

    for attempt in range(1, ORDER_ID_ATTEMPTS + 1):
        order = models.Order(
            order_id=generate_order_id(db_sess),
            vendor_id=vendor_id,
            total_amount=amount,
            paid_amount=amount,
            order_status=S.WAITING.value,
            ready_time=ready_time,
        )
        order.items = [models.OrderItem(food_id=fid, unit=unit) for fid, unit in requested.items()]

        try:
            db_sess.add(order)
            db_sess.flush()
            txn.order_ref = order.id
            customer.orders.append(order)
            db_sess.commit()
            break
        except IntegrityError:
            db_sess.rollback()
            # the id was free when drawn but inserted by another checkout since
            if attempt < ORDER_ID_ATTEMPTS and _order_id_taken(db_sess, order.order_id):
                logger.info(f"Order id {order.order_id} taken concurrently, drawing again")
                continue
            ORDERS_CREATED.labels("FAILED").inc()
            logger.exception(f"Could not persist order for transaction {txn_id}")
            raise
        except SQLAlchemyError:
            db_sess.rollback()
            ORDERS_CREATED.labels("FAILED").inc()
            logger.exception(f"Could not persist order for transaction {txn_id}")
            raise

    ORDERS_CREATED.labels("CREATED").inc()
    logger.info(f"Order {order.order_id} created for customer {customer_id}")

    assign_order_for_delivery(db_sess, order.id, vendor_id)

    db_sess.refresh(customer)
    return customer


def assign_order_for_delivery(
    db_sess: Session, order_pk: int, vendor_id: int
) -> Optional[models.DeliveryUser]:
    """Bind the first verified, available delivery person in the vendor's pincode.

    Candidates are taken in id order; there is no load balancing or distance
    ranking. A person is claimed by flipping ``is_available`` off with a
    conditional update and the order is bound only while it has no delivery
    person, so two concurrent checkouts can't share one person. Never raises.
    """
    try:
        vendor = db_sess.query(models.Vendor).filter(models.Vendor.id == vendor_id).first()
        if not vendor:
            logger.warning(f"Vendor {vendor_id} not found, order {order_pk} left unassigned")
            DELIVERY_ASSIGNMENTS.labels("NO_VENDOR").inc()
            return None

        candidates = (
            db_sess.query(models.DeliveryUser.id)
            .filter(
                models.DeliveryUser.pincode == vendor.pincode,
                models.DeliveryUser.verified.is_(True),
                models.DeliveryUser.is_available.is_(True),
            )
            .order_by(models.DeliveryUser.id)
            .all()
        )

        for (delivery_pk,) in candidates:
            claimed = (
                db_sess.query(models.DeliveryUser)
                .filter(
                    models.DeliveryUser.id == delivery_pk,
                    models.DeliveryUser.verified.is_(True),
                    models.DeliveryUser.is_available.is_(True),
                )
                .update({"is_available": False}, synchronize_session=False)
            )
            if not claimed:
                continue

            bound = (
                db_sess.query(models.Order)
                .filter(models.Order.id == order_pk, models.Order.delivery_id.is_(None))
                .update({"delivery_id": delivery_pk}, synchronize_session=False)
            )
            if not bound:
                db_sess.rollback()
                logger.info(f"Order {order_pk} already has a delivery person")
                DELIVERY_ASSIGNMENTS.labels("ALREADY_ASSIGNED").inc()
                return None

            db_sess.commit()
            logger.info(f"Delivery user {delivery_pk} assigned to order {order_pk}")
            DELIVERY_ASSIGNMENTS.labels("ASSIGNED").inc()
            return db_sess.query(models.DeliveryUser).filter(
                models.DeliveryUser.id == delivery_pk
            ).first()

        db_sess.rollback()
        logger.info(f"No available delivery user for pincode {vendor.pincode}")
        DELIVERY_ASSIGNMENTS.labels("UNMATCHED").inc()
        return None
    except Exception as e:
        db_sess.rollback()
        logger.warning(f"Delivery assignment failed for order {order_pk}: {e}")
        DELIVERY_ASSIGNMENTS.labels("ERROR").inc()
        return None


def _order_query(db_sess: Session):
    return db_sess.query(models.Order).options(
        selectinload(models.Order.items).selectinload(models.OrderItem.food)
    )


def get_order_by_id(db_sess: Session, order_id: str) -> models.Order:
    """Look an order up by its short human-readable id."""
    order = _order_query(db_sess).filter(models.Order.order_id == order_id).first()
    if not order:
        raise NotFound("Order", order_id)
    return order


def get_order_details(
    db_sess: Session, order_pk: int, vendor_id: Optional[int] = None
) -> models.Order:
    order = _order_query(db_sess).filter(models.Order.id == order_pk).first()
    if not order or (vendor_id is not None and order.vendor_id != vendor_id):
        raise NotFound("Order", order_pk)
    return order


def list_customer_orders(db_sess: Session, customer_id: int) -> List[models.Order]:
    customer = db_sess.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise NotFound("Customer", customer_id)
    return (
        _order_query(db_sess)
        .filter(models.Order.customer_id == customer_id)
        .order_by(models.Order.id)
        .all()
    )


def list_vendor_orders(db_sess: Session, vendor_id: int) -> List[models.Order]:
    return (
        _order_query(db_sess)
        .filter(models.Order.vendor_id == vendor_id)
        .order_by(models.Order.id)
        .all()
    )


def process_order(
    db_sess: Session,
    order_pk: int,
    status=None,
    remarks: Optional[str] = None,
    ready_time: Optional[int] = None,
    vendor_id: Optional[int] = None,
) -> models.Order:
    """Apply the supplied fields; absent (None) fields keep their value.

    Status changes must follow ``ORDER_TRANSITIONS``; repeating the current
    status is accepted as a no-op.
    """
    order = get_order_details(db_sess, order_pk, vendor_id)

    if status is not None:
        try:
            requested = S(status)
        except ValueError:
            raise ValidationError(f"Unknown order status: {status}")
        current = S(order.order_status)
        if requested != current:
            if requested not in ORDER_TRANSITIONS[current]:
                raise InvalidTransition(current.value, requested.value)
            order.order_status = requested.value
            if requested in RELEASES_DELIVERY and order.delivery_id is not None:
                _release_delivery_user(db_sess, order.delivery_id)
            logger.info(f"Order {order.order_id}: {current.value} -> {requested.value}")

    if remarks is not None:
        order.remarks = remarks
    if ready_time is not None:
        order.ready_time = ready_time

    db_sess.commit()
    return get_order_details(db_sess, order_pk)


def _release_delivery_user(db_sess: Session, delivery_pk: int):
    db_sess.query(models.DeliveryUser).filter(models.DeliveryUser.id == delivery_pk).update(
        {"is_available": True}, synchronize_session=False
    )
