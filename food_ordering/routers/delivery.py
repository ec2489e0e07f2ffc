from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import accounts, schemas
from ..deps import get_db, get_identity, get_otp_service, require_role
from ..models import Role
from ..security import Principal
from . import set_token_cookie

router = APIRouter(prefix="/delivery", tags=["delivery"])

delivery_only = require_role(Role.DELIVERY)


@router.post("/signup", response_model=schemas.DeliveryAuthResponse, status_code=201)
def signup(
    payload: schemas.DeliverySignupRequest,
    response: Response,
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
    otp=Depends(get_otp_service),
):
    user, token = accounts.signup_delivery_user(db_sess, identity, otp, payload)
    set_token_cookie(response, token, identity)
    return {"token": token, "profile": user}


@router.post("/login", response_model=schemas.DeliveryAuthResponse)
def login(
    payload: schemas.LoginRequest,
    response: Response,
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
):
    user, token = accounts.login(db_sess, identity, Role.DELIVERY, payload.email, payload.password)
    set_token_cookie(response, token, identity)
    return {"token": token, "profile": user}


@router.patch("/verify", response_model=schemas.DeliveryAuthResponse)
def verify(
    payload: schemas.OtpVerifyRequest,
    response: Response,
    principal: Principal = Depends(delivery_only),
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
    otp=Depends(get_otp_service),
):
    user, token = accounts.verify_phone(
        db_sess, identity, otp, Role.DELIVERY, principal.id, payload.otp
    )
    set_token_cookie(response, token, identity)
    return {"token": token, "profile": user}


@router.get("/otp", response_model=schemas.MessageResponse)
def request_otp(
    principal: Principal = Depends(delivery_only),
    db_sess: Session = Depends(get_db),
    otp=Depends(get_otp_service),
):
    accounts.request_otp(db_sess, otp, Role.DELIVERY, principal.id)
    return {"message": "OTP sent to your registered mobile number!"}


@router.get("/profile", response_model=schemas.DeliveryUserRead)
def get_profile(principal: Principal = Depends(delivery_only), db_sess: Session = Depends(get_db)):
    return accounts.get_account(db_sess, Role.DELIVERY, principal.id)


@router.patch("/profile", response_model=schemas.DeliveryUserRead)
def edit_profile(
    payload: schemas.ProfileUpdate,
    principal: Principal = Depends(delivery_only),
    db_sess: Session = Depends(get_db),
):
    return accounts.update_profile(db_sess, Role.DELIVERY, principal.id, payload)


@router.patch("/status", response_model=schemas.DeliveryUserRead)
def update_status(
    payload: schemas.DeliveryStatusUpdate,
    principal: Principal = Depends(delivery_only),
    db_sess: Session = Depends(get_db),
):
    return accounts.update_delivery_status(db_sess, principal.id, payload)
