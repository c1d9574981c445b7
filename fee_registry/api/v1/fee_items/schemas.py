"""Fee item schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class FeeItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    amount_paise: int = Field(..., ge=0, description="Amount in the smallest currency unit")
    fee_type_id: UUID
    academic_year_id: UUID
    organization_id: Optional[UUID] = None  # Defaults to the caller's organization
    branch_id: Optional[UUID] = None  # None => organization-wide item
    is_mandatory: bool = True
    enabled_grades: List[str] = Field(default_factory=list)


class FeeItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    amount_paise: Optional[int] = Field(None, ge=0)
    is_mandatory: Optional[bool] = None
    enabled_grades: Optional[List[str]] = None
    fee_type_id: Optional[UUID] = None


class FeeItemResponse(BaseModel):
    id: UUID
    organization_id: UUID
    branch_id: Optional[UUID] = None
    academic_year_id: UUID
    fee_type_id: UUID
    name: str
    amount_paise: int
    is_mandatory: bool
    enabled_grades: List[str]
    is_deleted: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FeeItemWithDetails(FeeItemResponse):
    """Fee item with display fields of its fee type, branch and academic year."""

    fee_type_name: Optional[str] = None
    fee_type_code: Optional[str] = None
    branch_name: Optional[str] = None
    branch_code: Optional[str] = None
    academic_year_name: Optional[str] = None
    academic_year_start_date: Optional[date] = None
    academic_year_end_date: Optional[date] = None
