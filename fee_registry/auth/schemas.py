from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from fee_registry.core.enums import Role


class CurrentUser(BaseModel):
    """Caller identity and scope supplied by the access-control layer.
    branch_id is set only for branch-scoped users.
    """

    id: UUID
    organization_id: UUID
    branch_id: Optional[UUID] = None
    role: Role

    @property
    def is_platform_admin(self) -> bool:
        return self.role == Role.PLATFORM_ADMIN
