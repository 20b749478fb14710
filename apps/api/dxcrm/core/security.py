from __future__ import annotations

import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt

from dxcrm.core.config import get_settings


def hash_password(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def verify_password(raw: str, stored: str | None) -> bool:
    """Compare against the stored SHA-256 digest, then against legacy plaintext rows."""
    if not stored:
        return False
    # compare_digest only accepts ASCII str, legacy plaintext rows may hold Vietnamese text
    stored_bytes = stored.encode("utf-8")
    if hmac.compare_digest(hash_password(raw).encode("utf-8"), stored_bytes):
        return True
    return hmac.compare_digest(raw.encode("utf-8"), stored_bytes)


def issue_access_token(subject: str, *, username: str, roles: list[str]) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": subject,
        "username": username,
        "roles": roles,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_expires_minutes)).timestamp()),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
