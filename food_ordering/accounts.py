"""Per-role account records: signup, login, phone verification, profiles."""

import logging

from sqlalchemy.orm import Session

from . import models, schemas
from .errors import Conflict, NotFound, Unauthorized, UpstreamFailure, ValidationError
from .security import Identity, Principal

logger = logging.getLogger("food-ordering.accounts")

_ROLE_MODELS = {
    models.Role.CUSTOMER: models.Customer,
    models.Role.VENDOR: models.Vendor,
    models.Role.DELIVERY: models.DeliveryUser,
    models.Role.ADMIN: models.Admin,
}


def principal_for(role: models.Role, account) -> Principal:
    if role == models.Role.DELIVERY:
        verified = account.phone_verified
    else:
        verified = bool(getattr(account, "verified", True))
    return Principal(id=account.id, role=role.value, email=account.email, verified=verified)


def get_account(db_sess: Session, role: models.Role, account_id: int):
    model = _ROLE_MODELS[role]
    account = db_sess.query(model).filter(model.id == account_id).first()
    if not account:
        raise NotFound(model.__name__, account_id)
    return account


def find_by_email(db_sess: Session, role: models.Role, email: str):
    model = _ROLE_MODELS[role]
    return db_sess.query(model).filter(model.email == email.strip().lower()).first()


def login(db_sess: Session, identity: Identity, role: models.Role, email: str, password: str):
    """Return ``(account, token)`` or raise ``Unauthorized``."""
    account = find_by_email(db_sess, role, email)
    if not account or not identity.verify_password(password, account.password):
        logger.info(f"Failed {role.value} login for {email}")
        raise Unauthorized("Invalid email or password")
    return account, identity.issue_token(principal_for(role, account))


def _ensure_email_free(db_sess: Session, role: models.Role, email: str):
    if find_by_email(db_sess, role, email):
        raise Conflict(f"A {role.value} account exists with this email")


def signup_customer(db_sess: Session, identity: Identity, otp, payload: schemas.CustomerSignupRequest):
    _ensure_email_free(db_sess, models.Role.CUSTOMER, payload.email)
    customer = models.Customer(
        email=payload.email.strip().lower(),
        password=identity.hash_password(payload.password),
        phone=payload.phone,
        first_name=payload.first_name,
        last_name=payload.last_name,
        address=payload.address,
        pincode=payload.pincode,
        verified=False,
    )
    db_sess.add(customer)
    db_sess.commit()
    db_sess.refresh(customer)
    logger.info(f"Customer {customer.id} signed up")

    _send_signup_otp(otp, customer.phone)
    return customer, identity.issue_token(principal_for(models.Role.CUSTOMER, customer))


def signup_delivery_user(
    db_sess: Session, identity: Identity, otp, payload: schemas.DeliverySignupRequest
):
    _ensure_email_free(db_sess, models.Role.DELIVERY, payload.email)
    user = models.DeliveryUser(
        email=payload.email.strip().lower(),
        password=identity.hash_password(payload.password),
        phone=payload.phone,
        first_name=payload.first_name,
        last_name=payload.last_name,
        address=payload.address,
        pincode=payload.pincode,
        verified=False,
        is_available=False,
    )
    db_sess.add(user)
    db_sess.commit()
    db_sess.refresh(user)
    logger.info(f"Delivery user {user.id} signed up")

    _send_signup_otp(otp, user.phone)
    return user, identity.issue_token(principal_for(models.Role.DELIVERY, user))


def _send_signup_otp(otp, phone: str):
    result = otp.send_otp(phone)
    if not result.success:
        # the account stays; the code can be requested again
        raise UpstreamFailure("notification-service", result.error or "OTP not sent")


def request_otp(db_sess: Session, otp, role: models.Role, account_id: int):
    account = get_account(db_sess, role, account_id)
    result = otp.send_otp(account.phone)
    if not result.success:
        raise UpstreamFailure("notification-service", result.error or "OTP not sent")


def verify_phone(db_sess: Session, identity: Identity, otp, role: models.Role, account_id: int, code: str):
    """Check ``code`` against the account's phone and mark it verified."""
    account = get_account(db_sess, role, account_id)
    result = otp.verify_otp(account.phone, code)
    if not result.success:
        raise ValidationError(f"Invalid OTP: {result.error}")

    if role == models.Role.DELIVERY:
        account.phone_verified = True
    else:
        account.verified = True
    db_sess.commit()
    db_sess.refresh(account)
    return account, identity.issue_token(principal_for(role, account))


def update_profile(db_sess: Session, role: models.Role, account_id: int, payload: schemas.ProfileUpdate):
    account = get_account(db_sess, role, account_id)
    for field_name in ("first_name", "last_name", "address", "pincode"):
        value = getattr(payload, field_name)
        if value is not None:
            setattr(account, field_name, value)
    db_sess.commit()
    db_sess.refresh(account)
    return account


def update_delivery_status(db_sess: Session, user_id: int, payload: schemas.DeliveryStatusUpdate):
    user = get_account(db_sess, models.Role.DELIVERY, user_id)
    if payload.lat is not None:
        user.lat = payload.lat
    if payload.lng is not None:
        user.lng = payload.lng
    if payload.is_available is not None:
        user.is_available = payload.is_available
    elif payload.lat is None and payload.lng is None:
        # only a bare request toggles availability
        user.is_available = not user.is_available
    db_sess.commit()
    db_sess.refresh(user)
    return user


def set_delivery_user_verified(db_sess: Session, user_id: int, status: bool):
    user = get_account(db_sess, models.Role.DELIVERY, user_id)
    user.verified = status
    db_sess.commit()
    db_sess.refresh(user)
    logger.info(f"Delivery user {user_id} verified={status}")
    return user


def list_delivery_users(db_sess: Session):
    return db_sess.query(models.DeliveryUser).order_by(models.DeliveryUser.id).all()


# ----- Vendors -----


def create_vendor(db_sess: Session, identity: Identity, payload: schemas.VendorCreateRequest):
    _ensure_email_free(db_sess, models.Role.VENDOR, payload.email)
    vendor = models.Vendor(
        name=payload.name,
        owner_name=payload.owner_name,
        food_type=payload.food_type,
        pincode=payload.pincode,
        address=payload.address,
        phone=payload.phone,
        email=payload.email.strip().lower(),
        password=identity.hash_password(payload.password),
        rating=0,
        service_available=False,
        cover_images=[],
    )
    db_sess.add(vendor)
    db_sess.commit()
    db_sess.refresh(vendor)
    logger.info(f"Vendor {vendor.id} created")
    return vendor


def list_vendors(db_sess: Session):
    return db_sess.query(models.Vendor).order_by(models.Vendor.id).all()


def update_vendor_profile(db_sess: Session, vendor_id: int, payload: schemas.VendorProfileUpdate):
    vendor = get_account(db_sess, models.Role.VENDOR, vendor_id)
    for field_name in ("name", "address", "phone", "food_type"):
        value = getattr(payload, field_name)
        if value is not None:
            setattr(vendor, field_name, value)
    db_sess.commit()
    db_sess.refresh(vendor)
    return vendor


def toggle_vendor_service(db_sess: Session, vendor_id: int, payload: schemas.VendorServiceUpdate):
    vendor = get_account(db_sess, models.Role.VENDOR, vendor_id)
    vendor.service_available = not vendor.service_available
    if payload.lat is not None:
        vendor.lat = payload.lat
    if payload.lng is not None:
        vendor.lng = payload.lng
    db_sess.commit()
    db_sess.refresh(vendor)
    return vendor


def add_cover_images(db_sess: Session, vendor_id: int, urls: list[str]):
    vendor = get_account(db_sess, models.Role.VENDOR, vendor_id)
    # reassign so the JSON column is flagged dirty
    vendor.cover_images = list(vendor.cover_images or []) + urls
    db_sess.commit()
    db_sess.refresh(vendor)
    return vendor


# ----- Admins -----


def ensure_admin(db_sess: Session, identity: Identity, email: str, password: str):
    """Create the configured admin account if it does not exist yet."""
    if not (email and password):
        return None
    admin = find_by_email(db_sess, models.Role.ADMIN, email)
    if admin:
        return admin
    admin = models.Admin(email=email.strip().lower(), password=identity.hash_password(password))
    db_sess.add(admin)
    db_sess.commit()
    logger.info(f"Seeded admin account {admin.email}")
    return admin
