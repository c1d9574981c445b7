from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status

from fee_registry.auth.dependencies import get_current_user
from fee_registry.auth.schemas import CurrentUser
from fee_registry.core.enums import Role


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require PLATFORM_ADMIN or ORG_ADMIN. Used for every fee type / fee item write."""
    if current_user.role not in (Role.PLATFORM_ADMIN, Role.ORG_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only organization administrators can perform this action",
        )
    return current_user


async def require_branch_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Require any administrator role, branch administrators included (read access)."""
    if current_user.role not in (Role.PLATFORM_ADMIN, Role.ORG_ADMIN, Role.BRANCH_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    return current_user


def resolve_organization_id(current_user: CurrentUser, requested: Optional[UUID]) -> UUID:
    """
    Organization the request acts on: the requested one, defaulting to the caller's.
    Only platform admins may act on another organization.
    """
    if requested is None or requested == current_user.organization_id:
        return current_user.organization_id
    if not current_user.is_platform_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot act on another organization",
        )
    return requested
