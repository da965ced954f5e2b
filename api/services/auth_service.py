from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from api.config import settings


# ---------- token generation ----------

def create_access_token(
    user_id: str,
    company_id: str,
    role: str,
    email: str,
) -> str:
    """Mint an access token. Login lives in the identity service; this is used by seeds and tests."""
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "company_id": str(company_id),
        "role": role,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "type": "access",
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


# ---------- token verification ----------

def verify_access_token(token: str) -> dict:
    """Decode and verify an access token. Raises JWTError on failure."""
    payload = jwt.decode(
        token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
    )
    if payload.get("type") != "access":
        raise JWTError("Not an access token")
    return payload
