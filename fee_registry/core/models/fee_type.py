"""Fee type master (Tuition, Transport, Lab Fee). Global or private to one organization."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fee_registry.db.session import Base


class FeeType(Base):
    """
    Fee type. organization_id NULL => global (shared by every organization);
    otherwise private to that organization. Soft delete via is_deleted.

    Name uniqueness per owner is checked on restore only, so a new type may
    reuse the name of a deleted one; hence no unique constraint on name.
    """

    __tablename__ = "fee_types"
    __table_args__ = (
        Index("idx_fee_types_deleted", "is_deleted"),
        Index("idx_fee_types_private", "is_private"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True
    )
    code = Column(String(64), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_private = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    organization = relationship("Organization", backref="owned_fee_types")


class OrganizationFeeType(Base):
    """Enabled set: link table between organizations and the fee types they opted into."""

    __tablename__ = "organization_fee_types"

    # Composite PK doubles as the (organization_id, fee_type_id) unique constraint
    organization_id = Column(
        UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), primary_key=True
    )
    fee_type_id = Column(
        UUID(as_uuid=True), ForeignKey("fee_types.id", ondelete="CASCADE"), primary_key=True, index=True
    )
    enabled_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    organization = relationship("Organization", back_populates="enabled_fee_types")
    fee_type = relationship("FeeType")
