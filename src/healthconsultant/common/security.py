"""Session identity dependencies.

Authentication happens in the external auth provider. It hands the client a
token signed with the shared ``HC_SECRET_KEY``; this module only verifies
the signature and age and turns the payload into an :class:`Identity`.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from healthconsultant.common.exceptions import ForbiddenError, UnauthorizedError

SESSION_SALT = "hc-session"


@dataclass(frozen=True)
class Identity:
    """Authenticated principal on whose behalf usage is metered."""
    email: str
    user_id: Optional[str] = None
    is_admin: bool = False


def _get_serializer() -> URLSafeTimedSerializer:
    from healthconsultant.common.config import get_settings
    return URLSafeTimedSerializer(get_settings().secret_key, salt=SESSION_SALT)


def issue_session_token(
    email: str, user_id: str | None = None, is_admin: bool = False,
) -> str:
    """Sign a session payload. Used by the auth provider, the CLI and tests."""
    return _get_serializer().dumps(
        {"email": email, "user_id": user_id, "is_admin": is_admin}
    )


def verify_session_token(token: str) -> Identity | None:
    """Verify and decode a session token. Returns None if invalid or expired."""
    from healthconsultant.common.config import get_settings

    try:
        payload = _get_serializer().loads(
            token, max_age=get_settings().session_max_age,
        )
    except (BadSignature, SignatureExpired):
        return None
    email = payload.get("email") if isinstance(payload, dict) else None
    if not email:
        return None
    return Identity(
        email=email,
        user_id=payload.get("user_id"),
        is_admin=bool(payload.get("is_admin", False)),
    )


async def optional_identity(
    authorization: str = Header("", alias="Authorization"),
) -> Identity | None:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return verify_session_token(token.strip())


async def require_identity(
    identity: Identity | None = Depends(optional_identity),
) -> Identity:
    """FastAPI dependency that requires a valid session."""
    if identity is None:
        raise UnauthorizedError()
    return identity


async def require_admin(
    identity: Identity = Depends(require_identity),
) -> Identity:
    """FastAPI dependency that requires an admin session."""
    if not identity.is_admin:
        raise ForbiddenError()
    return identity
