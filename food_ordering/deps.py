import contextvars
import logging
import uuid
from typing import Optional

from fastapi import Depends, Header, Request

from .errors import Forbidden, Unauthorized
from .models import Role
from .security import Principal

_correlation_id = contextvars.ContextVar("correlation_id", default="-")


def new_correlation_id(header_value: Optional[str]) -> str:
    return header_value or str(uuid.uuid4())


def bind_correlation_id(cid: str):
    return _correlation_id.set(cid)


def reset_correlation_id(token):
    _correlation_id.reset(token)


def current_correlation_id() -> str:
    return _correlation_id.get()


class CorrelationIdFilter(logging.Filter):
    """Stamps every record with the correlation id of the request being served."""

    def filter(self, record):
        if not hasattr(record, "correlation_id"):
            record.correlation_id = _correlation_id.get()
        return True


# ----- DB Dependency -----
def get_db(request: Request):
    s = request.app.state.session_factory()
    try:
        yield s
    finally:
        s.close()


def get_settings(request: Request):
    return request.app.state.settings


def get_identity(request: Request):
    return request.app.state.identity


def get_otp_service(request: Request):
    return request.app.state.otp


def get_image_uploader(request: Request):
    return request.app.state.images


# ----- Auth -----
def get_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
    identity=Depends(get_identity),
) -> Principal:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    token = token or request.cookies.get("token")
    if not token:
        raise Unauthorized("Authentication required")
    return identity.verify_token(token)


def require_role(role: Role):
    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role != role.value:
            raise Forbidden(f"This endpoint requires a {role.value} account")
        return principal

    return dependency
