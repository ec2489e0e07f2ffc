from fastapi import Response


def set_token_cookie(response: Response, token: str, identity, secure: bool = False):
    response.set_cookie(
        "token",
        token,
        httponly=True,
        secure=secure,
        samesite="strict",
        max_age=int(identity.token_ttl.total_seconds()),
    )
