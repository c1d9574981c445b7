"""Fee type schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from fee_registry.core.enums import RemovalAction


class FeeTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    # None => global fee type (platform admins only)
    organization_id: Optional[UUID] = None
    code: Optional[str] = Field(None, max_length=64)
    description: Optional[str] = None
    # Defaults to True when organization_id is set
    is_private: Optional[bool] = None


class FeeTypeUpdate(BaseModel):
    code: Optional[str] = Field(None, max_length=64)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_private: Optional[bool] = None


class FeeTypeResponse(BaseModel):
    id: UUID
    organization_id: Optional[UUID] = None
    code: Optional[str] = None
    name: str
    description: Optional[str] = None
    is_private: bool
    is_deleted: bool
    deleted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EnabledFeeTypeResponse(FeeTypeResponse):
    """Fee type as seen by one organization: enabled, or owned (possibly deleted, for restore)."""

    is_enabled: bool


class EnableFeeTypesRequest(BaseModel):
    fee_type_ids: List[UUID] = Field(..., min_length=1)
    organization_id: Optional[UUID] = None


class EnabledFeeTypesResponse(BaseModel):
    organization_id: UUID
    enabled_fee_type_ids: List[UUID]


class RemovalCheckResponse(BaseModel):
    will_delete: bool
    has_usage: bool
    usage_count: int
    message: str
    is_private: bool
    fee_type_name: str


class RemovalResultResponse(BaseModel):
    action: RemovalAction
    fee_type: FeeTypeResponse
    usage_count: int
    # Organizations whose enabled set lost the fee type
    affected_organization_ids: List[UUID]
    # Remaining enabled set of the acting organization (remove path)
    enabled_fee_type_ids: Optional[List[UUID]] = None
    message: str


class FeeTypeRestoreRequest(BaseModel):
    organization_id: Optional[UUID] = None
