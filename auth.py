import datetime
import functools
import logging

import jwt  # PyJWT
from flask import g, request

from errors import AuthError, InvalidToken
from services import services

logger = logging.getLogger("microsocial.auth")


class TokenIssuer:
    """
    Issues and verifies stateless bearer tokens.

    A token is a JWT over ``{"id": user_id}`` signed with the server secret
    and expiring ``lifetime`` seconds after issue. Nothing is stored server
    side; validity is signature plus expiry.
    """

    def __init__(self, secret: str, lifetime: int, algorithm: str = "HS256"):
        self.secret = secret
        self.lifetime = lifetime
        self.algorithm = algorithm

    def issue(self, user_id, now=None) -> str:
        now = now or datetime.datetime.now(datetime.timezone.utc)
        payload = {
            "id": user_id,
            "iat": now,
            "exp": now + datetime.timedelta(seconds=self.lifetime),
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        # PyJWT may return bytes on some versions
        if isinstance(token, bytes):
            token = token.decode("utf-8")
        return token

    def verify(self, token: str):
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "id"]},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token expired") from None
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected token: %s", e)
            raise InvalidToken() from None
        return payload["id"]


def bearer_token(header: str) -> str:
    if not header.startswith("Bearer "):
        raise AuthError("Missing or invalid Authorization header")
    token = header.split(" ", 1)[1].strip()
    if not token:
        raise AuthError("Missing or invalid Authorization header")
    return token


def jwt_required(f):
    """
    Request guard: resolve the bearer token to a user before the handler runs.

    The authenticated user is available as ``g.current_user``.
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = services()
        token = bearer_token(request.headers.get("Authorization", ""))
        user_id = ctx.tokens.verify(token)
        user = ctx.users().find_by_id(user_id)
        if not user:
            raise AuthError("User not found")
        g.current_user = user
        return f(*args, **kwargs)

    return wrapper
