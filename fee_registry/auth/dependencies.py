from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from fee_registry.auth.schemas import CurrentUser
from fee_registry.auth.security import decode_access_token
from fee_registry.core.enums import Role


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Resolve the caller's identity and organization/branch scope from the access token.

    Users are not looked up here: the token issuer is trusted to have checked them.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("user_id") or payload.get("sub")
    organization_id_str = payload.get("organization_id")
    role_name = payload.get("role")
    if not user_id_str or not organization_id_str or not role_name:
        raise credentials_exception

    try:
        user_id = UUID(user_id_str)
        organization_id = UUID(organization_id_str)
        role = Role(role_name)
    except ValueError:
        raise credentials_exception

    branch_id: Optional[UUID] = None
    branch_id_str = payload.get("branch_id")
    if branch_id_str:
        try:
            branch_id = UUID(branch_id_str)
        except ValueError:
            raise credentials_exception

    return CurrentUser(
        id=user_id,
        organization_id=organization_id,
        branch_id=branch_id,
        role=role,
    )
