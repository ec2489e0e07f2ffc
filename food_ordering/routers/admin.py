from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from .. import accounts, payments, schemas
from ..deps import get_db, get_identity, require_role
from ..models import Role
from . import set_token_cookie

router = APIRouter(prefix="/admin", tags=["admin"])

admin_only = require_role(Role.ADMIN)


@router.post("/login", response_model=schemas.AdminAuthResponse)
def login(
    payload: schemas.LoginRequest,
    response: Response,
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
):
    _, token = accounts.login(db_sess, identity, Role.ADMIN, payload.email, payload.password)
    set_token_cookie(response, token, identity)
    return {"token": token}


@router.post(
    "/vendor",
    response_model=schemas.VendorRead,
    status_code=201,
    dependencies=[Depends(admin_only)],
)
def create_vendor(
    payload: schemas.VendorCreateRequest,
    db_sess: Session = Depends(get_db),
    identity=Depends(get_identity),
):
    return accounts.create_vendor(db_sess, identity, payload)


@router.get("/vendors", response_model=List[schemas.VendorRead], dependencies=[Depends(admin_only)])
def get_vendors(db_sess: Session = Depends(get_db)):
    return accounts.list_vendors(db_sess)


@router.get("/vendor/{vendor_id}", response_model=schemas.VendorRead, dependencies=[Depends(admin_only)])
def get_vendor(vendor_id: int, db_sess: Session = Depends(get_db)):
    return accounts.get_account(db_sess, Role.VENDOR, vendor_id)


@router.get(
    "/transactions",
    response_model=List[schemas.TransactionRead],
    dependencies=[Depends(admin_only)],
)
def get_transactions(db_sess: Session = Depends(get_db)):
    return payments.list_transactions(db_sess)


@router.get(
    "/transaction/{txn_id}",
    response_model=schemas.TransactionRead,
    dependencies=[Depends(admin_only)],
)
def get_transaction(txn_id: int, db_sess: Session = Depends(get_db)):
    return payments.get_transaction(db_sess, txn_id)


@router.put(
    "/delivery/verify",
    response_model=schemas.DeliveryUserRead,
    dependencies=[Depends(admin_only)],
)
def verify_delivery_user(
    payload: schemas.VerifyDeliveryUserRequest, db_sess: Session = Depends(get_db)
):
    return accounts.set_delivery_user_verified(db_sess, payload.id, payload.status)


@router.get(
    "/delivery/users",
    response_model=List[schemas.DeliveryUserRead],
    dependencies=[Depends(admin_only)],
)
def get_delivery_users(db_sess: Session = Depends(get_db)):
    return accounts.list_delivery_users(db_sess)
