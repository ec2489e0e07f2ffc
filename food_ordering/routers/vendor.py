import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session

from .. import accounts, catalog, offers, orders, schemas
from ..deps import get_db, get_identity, get_image_uploader, get_settings, require_role
from ..errors import ValidationError
from ..images import stage_uploads
from ..models import Role
from ..security import Principal
from . import set_token_cookie

logger = logging.getLogger("food-ordering.api.vendor")

router = APIRouter(prefix="/vendor", tags=["vendor"])

vendor_only = require_role(Role.VENDOR)

PARTIAL_CONTENT = 207


@router.post("/login", response_model=schemas.VendorAuthResponse)
def login(
    payload: schemas.LoginRequest,
    response: Response,
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
):
    vendor, token = accounts.login(db_sess, identity, Role.VENDOR, payload.email, payload.password)
    set_token_cookie(response, token, identity)
    return {"token": token, "profile": vendor}


@router.get("/profile", response_model=schemas.VendorWithFoods)
def get_profile(principal: Principal = Depends(vendor_only), db_sess: Session = Depends(get_db)):
    return accounts.get_account(db_sess, Role.VENDOR, principal.id)


@router.patch("/profile", response_model=schemas.VendorRead)
def update_profile(
    payload: schemas.VendorProfileUpdate,
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
):
    return accounts.update_vendor_profile(db_sess, principal.id, payload)


@router.patch("/service", response_model=schemas.VendorRead)
def update_service(
    payload: schemas.VendorServiceUpdate,
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
):
    return accounts.toggle_vendor_service(db_sess, principal.id, payload)


@router.patch("/coverimage", response_model=schemas.CoverImageResponse)
def update_cover_image(
    response: Response,
    images: List[UploadFile] = File(...),
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
    uploader=Depends(get_image_uploader),
    settings=Depends(get_settings),
):
    if not images:
        raise ValidationError("No images uploaded")
    accounts.get_account(db_sess, Role.VENDOR, principal.id)

    result = uploader.upload_images(stage_uploads(settings.upload_dir, images))
    vendor = accounts.add_cover_images(db_sess, principal.id, result.urls)
    if result.partial:
        logger.warning(f"Vendor {principal.id} cover upload incomplete: {result.failures}")
        response.status_code = PARTIAL_CONTENT
    return {"vendor": vendor, "failed_uploads": result.failures}


@router.post("/food", response_model=schemas.FoodUploadResponse)
def add_food(
    response: Response,
    name: str = Form(...),
    price: float = Form(..., ge=0),
    description: str = Form(""),
    category: Optional[str] = Form(None),
    food_type: str = Form("", alias="foodType"),
    ready_time: Optional[int] = Form(None, alias="readyTime", ge=0),
    images: List[UploadFile] = File(default=[]),
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
    uploader=Depends(get_image_uploader),
    settings=Depends(get_settings),
):
    accounts.get_account(db_sess, Role.VENDOR, principal.id)

    urls, failures = [], []
    if images:
        result = uploader.upload_images(stage_uploads(settings.upload_dir, images))
        urls, failures = result.urls, result.failures

    food = catalog.add_food(
        db_sess,
        principal.id,
        name=name,
        description=description,
        category=category,
        food_type=food_type,
        ready_time=ready_time,
        price=price,
        images=urls,
    )
    if failures:
        logger.warning(f"Food {food.id} saved with failed uploads: {failures}")
        response.status_code = PARTIAL_CONTENT
    return {"food": food, "failed_uploads": failures}


@router.get("/foods", response_model=List[schemas.FoodRead])
def get_foods(principal: Principal = Depends(vendor_only), db_sess: Session = Depends(get_db)):
    return catalog.list_vendor_foods(db_sess, principal.id)


# ----- Orders -----


@router.get("/orders", response_model=List[schemas.OrderRead])
def get_current_orders(
    principal: Principal = Depends(vendor_only), db_sess: Session = Depends(get_db)
):
    return orders.list_vendor_orders(db_sess, principal.id)


@router.get("/order/{order_pk}", response_model=schemas.OrderRead)
def get_order_details(
    order_pk: int,
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
):
    return orders.get_order_details(db_sess, order_pk, vendor_id=principal.id)


@router.put("/order/{order_pk}", response_model=schemas.OrderRead)
def process_order(
    order_pk: int,
    payload: schemas.ProcessOrderRequest,
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
):
    return orders.process_order(
        db_sess,
        order_pk,
        status=payload.status,
        remarks=payload.remarks,
        ready_time=payload.ready_time,
        vendor_id=principal.id,
    )


# ----- Offers -----


@router.get("/offers", response_model=List[schemas.OfferRead])
def get_offers(principal: Principal = Depends(vendor_only), db_sess: Session = Depends(get_db)):
    return offers.list_vendor_offers(db_sess, principal.id)


@router.post("/offer", response_model=schemas.OfferRead)
def add_offer(
    payload: schemas.OfferCreate,
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
):
    return offers.add_offer(db_sess, principal.id, payload)


@router.put("/offer/{offer_id}", response_model=schemas.OfferRead)
def edit_offer(
    offer_id: int,
    payload: schemas.OfferUpdate,
    principal: Principal = Depends(vendor_only),
    db_sess: Session = Depends(get_db),
):
    return offers.edit_offer(db_sess, principal.id, offer_id, payload)
