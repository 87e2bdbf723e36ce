"""Authentication and authorization utilities."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mediaboard.config import get_settings
from mediaboard.db.models import ApiKey, PrincipalRole
from mediaboard.db.session import get_db
from mediaboard.db.timezone import as_utc

settings = get_settings()

KEY_PREFIX = "mb_"
KEY_LENGTH = len(KEY_PREFIX) + 32

# Password hashing context
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.api_key_hash_rounds,
)


def generate_api_key() -> tuple[str, str]:
    """
    Generate a new API key.
    Returns: (full_key, prefix)
    Format: mb_XXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX (32 random hex chars after prefix)
    """
    random_part = secrets.token_hex(16)  # 32 hex chars
    full_key = f"{KEY_PREFIX}{random_part}"
    prefix = full_key[:12]  # "mb_" + first 9 chars
    return full_key, prefix


def hash_api_key(api_key: str) -> str:
    """Hash an API key for storage."""
    return pwd_context.hash(api_key)


def verify_api_key(plain_key: str, hashed_key: str) -> bool:
    """Verify an API key against its hash."""
    return pwd_context.verify(plain_key, hashed_key)


async def get_api_key_from_db(
    db: AsyncSession, key_prefix: str, full_key: str
) -> Optional[ApiKey]:
    """Look up an API key by prefix and verify the full key."""
    result = await db.execute(
        select(ApiKey).where(
            ApiKey.key_prefix == key_prefix,
            ApiKey.is_active.is_(True),
        )
    )

    for api_key in result.scalars().all():
        if api_key.expires_at and as_utc(api_key.expires_at) < datetime.now(timezone.utc):
            continue
        if verify_api_key(full_key, api_key.key_hash):
            return api_key

    return None


class AuthenticatedApiKey:
    """Dependency for authenticated API key."""

    def __init__(self, roles: Optional[list[PrincipalRole]] = None):
        self.roles = roles or []

    async def __call__(
        self,
        request: Request,
        authorization: Optional[str] = Header(None),
        x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
        db: AsyncSession = Depends(get_db),
    ) -> ApiKey:
        """Extract and validate API key from request."""
        # Try Authorization header first, then X-API-Key
        api_key_str = None

        if authorization:
            if authorization.startswith("Bearer "):
                api_key_str = authorization[7:]
            else:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid authorization scheme. Use 'Bearer <api_key>'",
                )
        elif x_api_key:
            api_key_str = x_api_key

        if not api_key_str:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing API key. Provide via 'Authorization: Bearer <key>' or 'X-API-Key' header",
            )

        # Validate format
        if not api_key_str.startswith(KEY_PREFIX) or len(api_key_str) != KEY_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid API key format",
            )

        # Look up and verify
        prefix = api_key_str[:12]
        api_key = await get_api_key_from_db(db, prefix, api_key_str)

        if api_key is None:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid or expired API key",
            )

        if self.roles and api_key.role not in self.roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"API key lacks required role: {', '.join(r.value for r in self.roles)}",
            )

        # Store in request state for later use
        request.state.api_key = api_key
        return api_key


# Convenience dependency instances
require_auth = AuthenticatedApiKey()
require_admin = AuthenticatedApiKey(roles=[PrincipalRole.ADMIN])


async def create_api_key(
    db: AsyncSession,
    name: str,
    owner: str,
    role: PrincipalRole = PrincipalRole.CLIENT,
    expires_in_days: Optional[int] = None,
) -> tuple[ApiKey, str]:
    """
    Create a new API key.
    Returns: (ApiKey model, full_key_string)
    """
    full_key, prefix = generate_api_key()
    hashed = hash_api_key(full_key)

    expires_at = None
    if expires_in_days:
        expires_at = datetime.now(timezone.utc) + timedelta(days=expires_in_days)

    api_key = ApiKey(
        key_hash=hashed,
        key_prefix=prefix,
        name=name,
        owner=owner,
        role=role,
        expires_at=expires_at,
    )

    db.add(api_key)
    await db.flush()
    await db.refresh(api_key)

    return api_key, full_key
