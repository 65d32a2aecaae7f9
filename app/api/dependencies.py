from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from app.db import engine as db_engine
from app.models.acting_identity import ActingIdentity, IdentityStatus
from app.repos.pg_user_repo import PgUserRepo
from app.repos.user_repo import InMemoryUserRepo, UserRepo
from app.services import identity_resolver, token_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")

# Module-level singleton, used whenever DATABASE_URL is not configured.
user_repo = InMemoryUserRepo()


async def get_user_repo() -> AsyncGenerator[UserRepo, None]:
    """Yield the request's credential store.

    PostgreSQL when configured (one session per request, committed when the
    handler returns), otherwise the shared in-memory repo.
    """
    if db_engine.async_session_factory is None:
        yield user_repo
        return
    async with db_engine.session_scope() as session:
        yield PgUserRepo(session)


UserRepoDep = Annotated[UserRepo, Depends(get_user_repo)]


def optional_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Bearer token if one was sent; mutation endpoints do not require it."""
    return identity_resolver.bearer_token(authorization)


BearerTokenDep = Annotated[str | None, Depends(optional_bearer_token)]


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> ActingIdentity:
    """Validate the bearer token and return the caller's identity, else 401."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    identity = ActingIdentity(
        subject_id=identity_resolver.subject_from_claims(claims),
        role=identity_resolver.role_from_claims(claims),
        status=IdentityStatus.RESOLVED,
    )
    logger.debug(
        "Token validated for user=%s role=%s",
        identity.subject_id,
        identity.role,
    )
    return identity
