from fee_registry.core.models.organization import AcademicYear, Branch, Organization
from fee_registry.core.models.fee_type import FeeType, OrganizationFeeType
from fee_registry.core.models.fee_item import FeeItem

__all__ = [
    "AcademicYear",
    "Branch",
    "FeeItem",
    "FeeType",
    "Organization",
    "OrganizationFeeType",
]
