from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from sara.db.base import Base


class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    landlord_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    tenant_email = Column(String(320), nullable=False, index=True)
    tenant_name = Column(String(255), nullable=False)
    tenant_rut = Column(String(12), nullable=True)

    status = Column(String(20), nullable=False, default="draft")

    # Terms
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    rent_amount = Column(Integer, nullable=False)
    rent_payment_day = Column(Integer, nullable=True)
    security_deposit_amount = Column(Integer, nullable=True)
    property_usage = Column(String(20), nullable=False, default="residential")
    ipc_adjustment = Column(Boolean, nullable=False, default=False)
    ipc_adjustment_frequency = Column(String(20), nullable=True)
    prohibition_to_sublet = Column(Boolean, nullable=False, default=True)
    special_clauses = Column(Text, nullable=True)

    # Signatures
    signature_token = Column(String(64), nullable=False, unique=True, index=True)
    signed_by_tenant = Column(Boolean, nullable=False, default=False)
    tenant_signed_at = Column(DateTime(timezone=True), nullable=True)
    signed_by_landlord = Column(Boolean, nullable=False, default=False)
    landlord_signed_at = Column(DateTime(timezone=True), nullable=True)

    archived_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    property = relationship("Property", backref="contracts")
    landlord = relationship("User", foreign_keys=[landlord_id], backref="owned_contracts")
    tenant = relationship("User", foreign_keys=[tenant_id], backref="rented_contracts")
