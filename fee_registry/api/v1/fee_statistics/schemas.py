"""Fee statistics schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel


class FeeTypeStats(BaseModel):
    total_types: int
    private_types: int
    global_types: int
    # Derived: total_types - global_types
    organization_types: int


class FeeItemTypeCount(BaseModel):
    fee_type_id: UUID
    fee_type_name: Optional[str] = None
    count: int


class FeeItemStats(BaseModel):
    total_items: int
    items_by_type: List[FeeItemTypeCount]
    average_fee_amount: float
    max_fee_amount: int
    min_fee_amount: int
