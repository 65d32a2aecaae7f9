"""JWT access and refresh tokens (ES256).

Issuance (login, register, renewToken) and verification (identity
resolution, require_user) share one key pair and one claims schema.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

# Ephemeral key pair generated on import: tokens do not survive a restart
# and are not portable between replicas.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "user-service"
AUDIENCE = "user-service"
ACCESS_TOKEN_TTL_MIN = 15

# Same key, different audience, so a refresh token is never accepted where
# an access token is expected.
REFRESH_AUDIENCE = "user-service-refresh"
REFRESH_TOKEN_TTL_DAYS = 7


def _base_claims(sub: str, audience: str, ttl: timedelta) -> dict:
    now = datetime.now(UTC)
    return {
        "sub": sub,
        "iss": ISSUER,
        "aud": audience,
        "exp": now + ttl,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }


def create_access_token(*, sub: str, role: str = "user") -> str:
    """Sign an access token carrying the subject and its role."""
    payload = _base_claims(sub, AUDIENCE, timedelta(minutes=ACCESS_TOKEN_TTL_MIN))
    payload["role"] = role
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, exp, iss and aud; return the claims.

    The algorithm is pinned so alg:none and alg-switching tokens are
    rejected.  Raises jwt.ExpiredSignatureError / jwt.InvalidTokenError.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )


def create_refresh_token(*, sub: str) -> str:
    # No role claim: renewal reads the current role from the store.
    payload = _base_claims(
        sub, REFRESH_AUDIENCE, timedelta(days=REFRESH_TOKEN_TTL_DAYS)
    )
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_refresh_token(token: str) -> dict:
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=REFRESH_AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
