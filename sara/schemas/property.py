from pydantic import BaseModel, ConfigDict, Field

from sara.domain.contract_status import PropertyStatus, PropertyType


class Property(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    code: str
    region: str
    comuna: str
    address: str
    type: PropertyType
    status: PropertyStatus
    price: int | None = None
    area: float | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    description: str = ""


class PropertyCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    code: str = Field(..., min_length=1, max_length=50)
    region: str = Field(..., min_length=1, max_length=100)
    comuna: str = Field(..., min_length=1, max_length=100)
    address: str = Field(..., min_length=1, max_length=255)
    type: PropertyType
    status: PropertyStatus = PropertyStatus.AVAILABLE.value
    price: int | None = Field(None, gt=0)
    area: float | None = Field(None, gt=0)
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    description: str = ""


class PropertyUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    code: str | None = Field(None, min_length=1, max_length=50)
    region: str | None = Field(None, min_length=1, max_length=100)
    comuna: str | None = Field(None, min_length=1, max_length=100)
    address: str | None = Field(None, min_length=1, max_length=255)
    type: PropertyType | None = None
    status: PropertyStatus | None = None
    price: int | None = Field(None, gt=0)
    area: float | None = Field(None, gt=0)
    bedrooms: int | None = Field(None, ge=0)
    bathrooms: int | None = Field(None, ge=0)
    description: str | None = None
