import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import models
from .errors import NotFound
from .offers import get_active_offer

logger = logging.getLogger("food-ordering.payments")

NO_OFFER = "NA"
CASH_ON_DELIVERY_NOTE = "Payment is cash on delivery"


def create_transaction(
    db_sess: Session,
    customer_id: int,
    amount: float,
    payment_mode: str,
    offer_id: Optional[int] = None,
) -> models.Transaction:
    """Open a transaction for ``amount`` net of an active offer's discount.

    The discount is fixed here; the payable amount never goes below zero.
    """
    customer = db_sess.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise NotFound("Customer", customer_id)

    payable_amount = float(amount)
    offer_used = NO_OFFER
    if offer_id is not None:
        offer = get_active_offer(db_sess, offer_id)
        if offer:
            payable_amount = max(payable_amount - offer.offer_amount, 0.0)
            offer_used = str(offer.id)
            logger.info(f"Applied offer {offer.id}, payable amount {payable_amount}")
        else:
            logger.info(f"Offer {offer_id} missing or inactive, no discount applied")

    txn = models.Transaction(
        customer_id=customer.id,
        payable_amount=payable_amount,
        offer_used=offer_used,
        status=models.TransactionStatus.OPEN.value,
        payment_mode=payment_mode,
        payment_response=CASH_ON_DELIVERY_NOTE,
    )
    db_sess.add(txn)
    db_sess.commit()
    db_sess.refresh(txn)
    logger.info(f"Transaction {txn.id} opened for customer {customer_id}")
    return txn


def list_transactions(db_sess: Session) -> List[models.Transaction]:
    return db_sess.query(models.Transaction).order_by(models.Transaction.id).all()


def get_transaction(db_sess: Session, txn_id: int) -> models.Transaction:
    txn = db_sess.query(models.Transaction).filter(models.Transaction.id == txn_id).first()
    if not txn:
        raise NotFound("Transaction", txn_id)
    return txn
