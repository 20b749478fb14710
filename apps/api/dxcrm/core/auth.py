from dataclasses import dataclass, field
from typing import Any

from jose import JWTError, jwt
from starlette.requests import Request

from dxcrm.core.config import get_settings
from dxcrm.core.errors import Forbidden, Unauthorized


@dataclass
class AuthUser:
    sub: str
    roles: list[str]
    claims: dict[str, Any] = field(default_factory=dict)


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("authorization")
    if not auth_header:
        raise Unauthorized("Unauthorized")

    scheme, _, token = auth_header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        raise Unauthorized("Unauthorized")
    return token.strip()


def require_auth(request: Request) -> AuthUser:
    token = _bearer_token(request)
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise Forbidden("Forbidden") from exc

    subject = str(payload.get("sub", ""))
    roles = payload.get("roles", [])
    if not isinstance(roles, list):
        roles = [str(roles)]

    request.state.user = payload
    context = getattr(request.state, "context", None)
    if context is not None:
        context.user_id = subject
    return AuthUser(sub=subject, roles=[str(role) for role in roles], claims=payload)
