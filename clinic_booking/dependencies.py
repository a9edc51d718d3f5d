"""FastAPI dependencies."""

from collections.abc import Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.security import decode_access_token
from clinic_booking.database import get_db
from clinic_booking.models.accounts import accounts
from clinic_booking.schemas.accounts import AccountRole, Actor
from clinic_booking.services.record_store import RecordStore

# Security
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_record_store(db: Annotated[AsyncSession, Depends(get_db)]) -> RecordStore:
    """Record store bound to the request's database session."""
    return RecordStore(db)


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[RecordStore, Depends(get_record_store)],
) -> Actor:
    """
    Resolve the bearer token to a verified actor.

    The account is re-read so that deactivated or deleted accounts lose
    access before their token expires, and the role comes from the record
    rather than the token.

    Raises:
        HTTPException: If the token is missing, invalid or names an unusable account
    """
    if credentials is None:
        raise _unauthorized("Authentication token missing")

    payload = decode_access_token(credentials.credentials)
    if payload is None or not isinstance(payload.get("sub"), str):
        raise _unauthorized("Could not validate credentials")

    try:
        account_id = UUID(payload["sub"])
    except ValueError:
        raise _unauthorized("Invalid user ID format") from None

    account = await store.find_by_id(accounts, account_id)
    if not account or not account["is_active"]:
        raise _unauthorized("Invalid or inactive user")

    return Actor(account_id=account["id"], role=AccountRole(account["role"]))


def require_roles(*roles: AccountRole) -> Callable:
    """Dependency factory restricting an endpoint to the given roles."""

    async def checker(actor: Annotated[Actor, Depends(get_current_actor)]) -> Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden: insufficient permissions",
            )
        return actor

    return checker


# Type aliases for dependency injection
Store = Annotated[RecordStore, Depends(get_record_store)]
CurrentActor = Annotated[Actor, Depends(get_current_actor)]
AdminActor = Annotated[Actor, Depends(require_roles(AccountRole.ADMIN))]
DoctorActor = Annotated[Actor, Depends(require_roles(AccountRole.DOCTOR))]
UserActor = Annotated[Actor, Depends(require_roles(AccountRole.USER))]
