from sqlalchemy.orm import Session

from sara.db.models.contract import Contract as ContractModel
from sara.db.models.property import Property as PropertyModel
from sara.domain.contract_status import ContractStatus
from sara.errors import NotFoundError

# Columns a property update may touch
UPDATABLE_FIELDS = (
    "code",
    "region",
    "comuna",
    "address",
    "type",
    "status",
    "price",
    "area",
    "bedrooms",
    "bathrooms",
    "description",
)


def get_property_by_id(db: Session, property_id: int) -> PropertyModel | None:
    """Get a property by ID."""
    return db.query(PropertyModel).filter(PropertyModel.id == property_id).first()


def get_all_properties(db: Session) -> list[PropertyModel]:
    """Get all properties."""
    return db.query(PropertyModel).order_by(PropertyModel.id).all()


def get_properties_by_owner_id(db: Session, owner_id: int) -> list[PropertyModel]:
    """Get all properties owned by a landlord."""
    return (
        db.query(PropertyModel)
        .filter(PropertyModel.owner_id == owner_id)
        .order_by(PropertyModel.id)
        .all()
    )


def get_properties_with_active_contracts_by_tenant_id(
    db: Session, tenant_id: int
) -> list[PropertyModel]:
    """Get the properties a tenant currently rents (active contracts only)."""
    return (
        db.query(PropertyModel)
        .join(ContractModel, PropertyModel.id == ContractModel.property_id)
        .filter(
            ContractModel.tenant_id == tenant_id,
            ContractModel.status == ContractStatus.ACTIVE.value,
        )
        .distinct()
        .order_by(PropertyModel.id)
        .all()
    )


def get_property_by_owner_code(
    db: Session, owner_id: int, code: str, exclude_id: int | None = None
) -> PropertyModel | None:
    """Get a landlord's property by its code."""
    query = db.query(PropertyModel).filter(
        PropertyModel.owner_id == owner_id, PropertyModel.code == code
    )
    if exclude_id is not None:
        query = query.filter(PropertyModel.id != exclude_id)
    return query.first()


def create_property(db: Session, owner_id: int, **fields) -> PropertyModel:
    """Create a new property in the database. Pure data access - no business logic."""
    db_property = PropertyModel(owner_id=owner_id, **fields)
    db.add(db_property)
    db.commit()
    db.refresh(db_property)
    return db_property


def update_property(db: Session, property_id: int, **kwargs) -> PropertyModel:
    """
    Update a property. Only updates fields that are explicitly provided.

    Fields not provided are not updated.
    """
    property_ = get_property_by_id(db, property_id)
    if not property_:
        raise NotFoundError("Property not found")

    for name in UPDATABLE_FIELDS:
        if name in kwargs:
            setattr(property_, name, kwargs[name])

    db.commit()
    db.refresh(property_)
    return property_


def delete_property(db: Session, property_id: int) -> None:
    """Delete a property from the database. Pure data access - no business logic."""
    property_ = get_property_by_id(db, property_id)
    if not property_:
        raise NotFoundError("Property not found")

    db.delete(property_)
    db.commit()
