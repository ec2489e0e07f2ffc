import logging
from typing import List

from sqlalchemy.orm import Session

from . import models, schemas
from .errors import NotFound, ValidationError

logger = logging.getLogger("food-ordering.offers")

GENERIC = "GENERIC"


def get_available_offers(db_sess: Session, pincode: str) -> List[models.Offer]:
    return (
        db_sess.query(models.Offer)
        .filter(models.Offer.pincode == pincode, models.Offer.is_active.is_(True))
        .order_by(models.Offer.id)
        .all()
    )


def get_offer(db_sess: Session, offer_id: int) -> models.Offer:
    offer = db_sess.query(models.Offer).filter(models.Offer.id == offer_id).first()
    if not offer:
        raise NotFound("Offer", offer_id)
    return offer


def get_active_offer(db_sess: Session, offer_id: int) -> models.Offer | None:
    offer = db_sess.query(models.Offer).filter(models.Offer.id == offer_id).first()
    if offer and offer.is_active:
        return offer
    return None


def list_vendor_offers(db_sess: Session, vendor_id: int) -> List[models.Offer]:
    """Offers the vendor is associated with, plus every GENERIC offer."""
    offers = db_sess.query(models.Offer).order_by(models.Offer.id).all()
    return [
        o for o in offers if o.offer_type == GENERIC or vendor_id in o.vendor_refs
    ]


def add_offer(db_sess: Session, vendor_id: int, payload: schemas.OfferCreate) -> models.Offer:
    vendor = db_sess.query(models.Vendor).filter(models.Vendor.id == vendor_id).first()
    if not vendor:
        raise NotFound("Vendor", vendor_id)

    offer = models.Offer(**payload.model_dump())
    offer.vendors = [vendor]
    db_sess.add(offer)
    db_sess.commit()
    db_sess.refresh(offer)
    logger.info(f"Offer {offer.id} ({offer.promocode}) added by vendor {vendor_id}")
    return offer


def edit_offer(
    db_sess: Session, vendor_id: int, offer_id: int, payload: schemas.OfferUpdate
) -> models.Offer:
    offer = get_offer(db_sess, offer_id)
    if vendor_id not in offer.vendor_refs:
        # don't reveal offers owned by other vendors
        raise NotFound("Offer", offer_id)

    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(offer, field_name, value)
    db_sess.commit()
    db_sess.refresh(offer)
    return offer


def verify_offer(db_sess: Session, offer_id: int, customer_id: int) -> models.Offer:
    offer = get_active_offer(db_sess, offer_id)
    if not offer:
        raise NotFound("Offer", offer_id)

    customer = db_sess.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise NotFound("Customer", customer_id)

    if offer.pincode and customer.pincode != offer.pincode:
        raise ValidationError("Offer not applicable for your location")
    return offer
