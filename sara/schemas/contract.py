from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from sara.domain.contract_status import AdjustmentFrequency, ContractStatus, PropertyUsage
from sara.domain.signature import SignerRole
from sara.schemas.property import Property

# Terms an update may omit but never clear
REQUIRED_TERMS = (
    "tenant_name",
    "start_date",
    "end_date",
    "rent_amount",
    "property_usage",
    "ipc_adjustment",
    "prohibition_to_sublet",
)


class Contract(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    property_id: int
    landlord_id: int
    tenant_id: int | None = None
    tenant_email: str
    tenant_name: str
    tenant_rut: str | None = None
    status: ContractStatus
    start_date: date
    end_date: date
    rent_amount: int
    rent_payment_day: int | None = None
    security_deposit_amount: int | None = None
    property_usage: PropertyUsage
    ipc_adjustment: bool
    ipc_adjustment_frequency: AdjustmentFrequency | None = None
    prohibition_to_sublet: bool
    special_clauses: str | None = None
    signature_token: str
    signed_by_tenant: bool
    tenant_signed_at: datetime | None = None
    signed_by_landlord: bool
    landlord_signed_at: datetime | None = None
    archived_at: datetime | None = None
    property: Property | None = None


class ContractCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    property_id: int
    tenant_email: EmailStr
    tenant_name: str = Field(..., min_length=1, max_length=255)
    tenant_rut: str | None = Field(None, max_length=12)
    start_date: date
    end_date: date
    rent_amount: int = Field(..., gt=0, description="Monthly rent, in whole pesos")
    rent_payment_day: int | None = Field(None, ge=1, le=31)
    security_deposit_amount: int | None = Field(None, ge=0)
    property_usage: PropertyUsage = PropertyUsage.RESIDENTIAL.value
    ipc_adjustment: bool = False
    ipc_adjustment_frequency: AdjustmentFrequency | None = None
    prohibition_to_sublet: bool = True
    special_clauses: str | None = None

    @model_validator(mode="after")
    def validate_end_date_after_start_date(self):
        """Ensure end_date doesn't precede start_date."""
        if self.end_date < self.start_date:
            raise ValueError(
                f"end_date ({self.end_date}) cannot precede start_date ({self.start_date})"
            )
        return self

    @model_validator(mode="after")
    def validate_ipc_frequency(self):
        """An IPC adjustment needs a frequency."""
        if self.ipc_adjustment and self.ipc_adjustment_frequency is None:
            raise ValueError("ipc_adjustment_frequency is required when ipc_adjustment is enabled")
        return self


class ContractUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    tenant_name: str | None = Field(None, min_length=1, max_length=255)
    tenant_rut: str | None = Field(None, max_length=12)
    start_date: date | None = None
    end_date: date | None = None
    rent_amount: int | None = Field(None, gt=0)
    rent_payment_day: int | None = Field(None, ge=1, le=31)
    security_deposit_amount: int | None = Field(None, ge=0)
    property_usage: PropertyUsage | None = None
    ipc_adjustment: bool | None = None
    ipc_adjustment_frequency: AdjustmentFrequency | None = None
    prohibition_to_sublet: bool | None = None
    special_clauses: str | None = None

    @model_validator(mode="after")
    def validate_required_terms_not_null(self):
        """Reject an explicit null for a term every contract must have."""
        cleared = [
            name
            for name in REQUIRED_TERMS
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if cleared:
            raise ValueError(f"These fields cannot be null: {', '.join(cleared)}")
        return self

    @model_validator(mode="after")
    def validate_end_date_after_start_date(self):
        """Ensure end_date doesn't precede start_date when both are provided."""
        if self.start_date is not None and self.end_date is not None:
            if self.end_date < self.start_date:
                raise ValueError(
                    f"end_date ({self.end_date}) cannot precede start_date ({self.start_date})"
                )
        return self


class ContractStatusUpdate(BaseModel):
    status: ContractStatus


class SignatureRequest(BaseModel):
    signer_role: SignerRole


class SignatureResult(BaseModel):
    success: bool = True
    contract: Contract
