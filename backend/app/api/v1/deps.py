"""
Request dependencies for the v1 routers: the token bearer, role gates
and page/limit parsing.
"""
from typing import Annotated, Callable

from fastapi import Depends, HTTPException, Path, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.security import get_user_from_token
from app.core.settings import settings
from app.db.session import get_db
from app.models.user import ADMIN_ROLES, User
from app.schemas.common import MAX_ID, PaginationParams

# Tokens come from the society identity service; tokenUrl only feeds the docs UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_UNAUTHENTICATED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user.

    401 for a bad, expired or orphaned token; 403 when the account exists
    but is not active.
    """
    user_id = get_user_from_token(token, expected_type="access")
    user = db.get(User, user_id) if user_id is not None else None
    if user is None:
        raise _UNAUTHENTICATED
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(*roles: str) -> Callable:
    async def _check_role(current_user: CurrentUser) -> User:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return _check_role


# Status definitions and plot statuses are managed by society administrators
get_current_admin_user = require_roles(*ADMIN_ROLES)

# Path ids must fit the INTEGER primary key columns
RecordPathId = Annotated[int, Path(ge=1, le=MAX_ID)]


def get_pagination_params(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)
