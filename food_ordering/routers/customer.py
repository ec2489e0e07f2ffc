import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import accounts, cart, offers, orders, payments, schemas
from ..deps import get_db, get_identity, get_otp_service, get_settings, require_role
from ..models import Role
from ..security import Principal
from . import set_token_cookie

logger = logging.getLogger("food-ordering.api.customer")

router = APIRouter(prefix="/customer", tags=["customer"])

customer_only = require_role(Role.CUSTOMER)


# ----- Account -----


@router.post("/signup", response_model=schemas.CustomerAuthResponse, status_code=201)
def signup(
    payload: schemas.CustomerSignupRequest,
    response: Response,
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
    otp=Depends(get_otp_service),
):
    customer, token = accounts.signup_customer(db_sess, identity, otp, payload)
    set_token_cookie(response, token, identity)
    return {"token": token, "profile": customer}


@router.post("/login", response_model=schemas.CustomerAuthResponse)
def login(
    payload: schemas.LoginRequest,
    response: Response,
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
):
    customer, token = accounts.login(db_sess, identity, Role.CUSTOMER, payload.email, payload.password)
    set_token_cookie(response, token, identity)
    return {"token": token, "profile": customer}


@router.patch("/verify", response_model=schemas.CustomerAuthResponse)
def verify(
    payload: schemas.OtpVerifyRequest,
    response: Response,
    principal: Principal = Depends(customer_only),
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
    otp=Depends(get_otp_service),
):
    customer, token = accounts.verify_phone(
        db_sess, identity, otp, Role.CUSTOMER, principal.id, payload.otp
    )
    set_token_cookie(response, token, identity)
    return {"token": token, "profile": customer}


@router.get("/otp", response_model=schemas.MessageResponse)
def request_otp(
    principal: Principal = Depends(customer_only),
    db_sess: Session = Depends(get_db),
    otp=Depends(get_otp_service),
):
    accounts.request_otp(db_sess, otp, Role.CUSTOMER, principal.id)
    return {"message": "OTP sent to your registered mobile number!"}


@router.get("/profile", response_model=schemas.CustomerRead)
def get_profile(principal: Principal = Depends(customer_only), db_sess: Session = Depends(get_db)):
    return accounts.get_account(db_sess, Role.CUSTOMER, principal.id)


@router.patch("/profile", response_model=schemas.CustomerRead)
def edit_profile(
    payload: schemas.ProfileUpdate,
    principal: Principal = Depends(customer_only),
    db_sess: Session = Depends(get_db),
):
    return accounts.update_profile(db_sess, Role.CUSTOMER, principal.id, payload)


# ----- Cart -----


@router.put("/cart", response_model=schemas.CartResponse)
def add_to_cart(
    payload: schemas.CartUpdateRequest,
    principal: Principal = Depends(customer_only),
    db_sess: Session = Depends(get_db),
):
    items, total_units = cart.upsert_cart_item(db_sess, principal.id, payload.id, payload.unit)
    return {"cart": items, "total_units": total_units}


@router.get("/cart", response_model=List[schemas.CartItemRead])
def get_cart(principal: Principal = Depends(customer_only), db_sess: Session = Depends(get_db)):
    return cart.get_cart(db_sess, principal.id)


@router.delete("/cart", response_model=List[schemas.CartItemRead])
def delete_cart(principal: Principal = Depends(customer_only), db_sess: Session = Depends(get_db)):
    return cart.clear_cart(db_sess, principal.id)


# ----- Offers & Payment -----


@router.get("/offer/verify/{offer_id}", response_model=schemas.OfferVerifyResponse)
def verify_offer(
    offer_id: int,
    principal: Principal = Depends(customer_only),
    db_sess: Session = Depends(get_db),
):
    offer = offers.verify_offer(db_sess, offer_id, principal.id)
    return {"message": "Offer verified", "offer": offer}


@router.post("/create-payment", response_model=schemas.TransactionRead)
def create_payment(
    payload: schemas.PaymentRequest,
    principal: Principal = Depends(customer_only),
    db_sess: Session = Depends(get_db),
):
    return payments.create_transaction(
        db_sess, principal.id, payload.amount, payload.payment_mode, payload.offer_id
    )


# ----- Orders -----


@router.post("/create-order", response_model=schemas.CustomerRead)
def create_order(
    payload: schemas.CreateOrderRequest,
    principal: Principal = Depends(customer_only),
    db_sess: Session = Depends(get_db),
    settings=Depends(get_settings),
):
    return orders.create_order(
        db_sess,
        principal.id,
        payload.txn_id,
        payload.amount,
        [(item.id, item.unit) for item in payload.items],
        ready_time=settings.default_ready_time,
    )


@router.get("/orders", response_model=List[schemas.OrderRead])
def get_orders(principal: Principal = Depends(customer_only), db_sess: Session = Depends(get_db)):
    return orders.list_customer_orders(db_sess, principal.id)


@router.get("/order/{order_id}", response_model=schemas.OrderRead)
def get_order(order_id: str, db_sess: Session = Depends(get_db)):
    return orders.get_order_by_id(db_sess, order_id)
