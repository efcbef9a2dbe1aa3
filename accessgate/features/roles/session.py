"""
accessgate/features/roles/session.py

Session token handling for role resolution.

Two sides:
- client side: decide whether a locally held token is still active before
  sending it to the role resolution service (no signature check; the
  service verifies it)
- server side: verify a Bearer token presented to this API (HS256 shared
  secret of the auth service)

Testing:
- create_test_jwt() signs deterministic HS256 tokens, no network
"""

import time
from typing import Any, Dict, Optional

import jwt

from accessgate.core.config import settings
from accessgate.core.errors import UnauthenticatedError


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the raw token from an "Authorization: Bearer <token>" header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def read_claims(token: str) -> Dict[str, Any]:
    """
    Decode claims without verifying the signature.

    Raises:
        UnauthenticatedError: token is not a well-formed JWT
    """
    try:
        return jwt.decode(token, options={"verify_signature": False, "verify_exp": False, "verify_aud": False})
    except jwt.PyJWTError:
        raise UnauthenticatedError("Not authenticated")


def is_token_active(token: Optional[str], now: Optional[float] = None) -> bool:
    """True when the token is well formed and its exp (if any) is in the future."""
    if not token:
        return False
    try:
        claims = read_claims(token)
    except UnauthenticatedError:
        return False
    exp = claims.get("exp")
    if exp is None:
        return True
    current = time.time() if now is None else now
    return float(exp) > current


def verify_session_token(token: str, *, secret: Optional[str] = None, audience: Optional[str] = None) -> Dict[str, Any]:
    """
    Verify a session JWT and return its claims.

    Raises:
        UnauthenticatedError: missing secret, bad signature, expired, or no sub
    """
    key = secret or settings.SESSION_JWT_SECRET
    if not key:
        raise UnauthenticatedError("Session verification is not configured")

    aud = audience if audience is not None else settings.SESSION_JWT_AUDIENCE
    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=["HS256"],
            audience=aud,
            options={"verify_signature": True, "verify_exp": True, "verify_aud": bool(aud)},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Session expired")
    except jwt.PyJWTError:
        raise UnauthenticatedError("Invalid session token")

    if not claims.get("sub"):
        raise UnauthenticatedError("Session token has no subject")
    return claims


def create_test_jwt(
    sub: str = "user_test_123",
    *,
    exp_seconds: int = 3600,
    secret: str = "test-session-secret",
    audience: Optional[str] = "authenticated",
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Sign an HS256 session token for tests. Negative exp_seconds yields an expired token."""
    now = int(time.time())
    payload: Dict[str, Any] = {"sub": sub, "iat": now, "exp": now + exp_seconds}
    if audience:
        payload["aud"] = audience
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, secret, algorithm="HS256")
