"""Acting-identity resolution for mutation requests.

A request may name its actor explicitly (currentUserId / currentUserRole in
the body), carry a bearer token, both, or neither.  The two sources are
merged field by field with the explicit value winning:

    explicit   token      result
    --------   --------   ------
    "u1"       "u2"       "u1"
    None       "u2"       "u2"
    None       <invalid>  None   (status INVALID)

The token is only decoded when a field is still missing.  A token that
fails verification never fails the request here; it yields status INVALID
and the policy engine decides what a missing field means.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import jwt

from app.core.metrics import IDENTITY_RESOLUTIONS
from app.models.acting_identity import ActingIdentity, IdentityStatus
from app.services import token_service

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], Mapping[str, Any]]

# Claim names accepted for each field, in priority order.  Tokens minted by
# other issuers in the same deployment use userId/_id and role_name.
SUBJECT_CLAIMS = ("sub", "userId", "id", "_id")
ROLE_CLAIMS = ("role", "roleFromJWT", "role_name")


def _clean(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _first_claim(claims: Mapping[str, Any], names: Iterable[str]) -> str | None:
    for name in names:
        value = _clean(claims.get(name))
        if value is not None:
            return value
    return None


def subject_from_claims(claims: Mapping[str, Any]) -> str | None:
    return _first_claim(claims, SUBJECT_CLAIMS)


def role_from_claims(claims: Mapping[str, Any]) -> str | None:
    role = _first_claim(claims, ROLE_CLAIMS)
    if role is not None:
        return role
    roles = claims.get("roles")
    if isinstance(roles, list | tuple) and roles:
        return _clean(roles[0])
    return None


def bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def resolve_acting_identity(
    explicit_id: object = None,
    explicit_role: object = None,
    token: str | None = None,
    *,
    verifier: TokenVerifier = token_service.decode_access_token,
) -> ActingIdentity:
    subject_id = _clean(explicit_id)
    role = _clean(explicit_role)

    if subject_id is not None and role is not None:
        status = IdentityStatus.RESOLVED
    elif not token:
        status = IdentityStatus.UNRESOLVED
    else:
        try:
            claims = verifier(token)
        except jwt.InvalidTokenError as e:
            # Never log the token itself.
            logger.warning("Bearer token rejected during identity resolution: %s", e)
            status = IdentityStatus.INVALID
        else:
            subject_id = subject_id or subject_from_claims(claims)
            role = role or role_from_claims(claims)
            if subject_id is not None and role is not None:
                status = IdentityStatus.RESOLVED
            else:
                status = IdentityStatus.UNRESOLVED

    IDENTITY_RESOLUTIONS.labels(status=status.value).inc()
    identity = ActingIdentity(subject_id=subject_id, role=role, status=status)
    logger.debug(
        "Acting identity resolved  subject=%s role=%s status=%s",
        identity.subject_id,
        identity.role,
        identity.status,
    )
    return identity
