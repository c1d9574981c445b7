"""Fee item: a priced instance of a fee type for an organization, optional branch and academic year."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship

from fee_registry.db.session import Base


class FeeItem(Base):
    """Soft delete via is_deleted; there is no restore. branch_id NULL => organization-wide item."""

    __tablename__ = "fee_items"
    __table_args__ = (
        CheckConstraint("amount_paise >= 0", name="chk_fee_item_amount_non_negative"),
        Index("idx_fee_items_deleted", "is_deleted"),
        Index("idx_fee_items_org_type", "organization_id", "fee_type_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=True, index=True)
    academic_year_id = Column(
        UUID(as_uuid=True), ForeignKey("academic_years.id", ondelete="CASCADE"), nullable=False, index=True
    )
    fee_type_id = Column(UUID(as_uuid=True), ForeignKey("fee_types.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    # Smallest currency unit (paise)
    amount_paise = Column(Integer, nullable=False)
    is_mandatory = Column(Boolean, nullable=False, default=True)
    # Opaque grade identifiers (strings), no FK
    enabled_grades = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    fee_type = relationship("FeeType", backref="fee_items")
    branch = relationship("Branch")
    academic_year = relationship("AcademicYear")
