from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sara.api.deps import get_db, get_current_user, require_roles
from sara.db.models.user import User
from sara.services.property import (
    create_property,
    delete_property,
    get_property,
    list_properties_for_user,
    update_property,
)
from sara.schemas.property import Property, PropertyCreate, PropertyUpdate

router = APIRouter(prefix="/properties", tags=["properties"])


@router.post("", response_model=Property, status_code=status.HTTP_201_CREATED)
def create_new_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Register a new property. Only landlords can register properties, which they own.
    """
    property_ = create_property(db, current_user, **property_data.model_dump())
    return Property.model_validate(property_)


@router.get("", response_model=list[Property])
def get_all_properties(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get all properties visible to the caller.
    - Admin: can see all properties
    - Landlord: can see the properties they own
    - Tenant: can only see properties for which they have an active contract
    """
    properties = list_properties_for_user(db, current_user)
    return [Property.model_validate(p) for p in properties]


@router.get("/{property_id}", response_model=Property)
def get_property_by_id(
    property_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get a property by ID, subject to the same visibility rules as the listing."""
    property_ = get_property(db, property_id, current_user)
    return Property.model_validate(property_)


@router.put("/{property_id}", response_model=Property)
def update_property_by_id(
    property_id: int,
    property_data: PropertyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Update a property. Only its owner can update it.

    Fields not included in the request are not updated.
    """
    update_data = property_data.model_dump(exclude_unset=True)
    property_ = update_property(db, property_id, current_user, **update_data)
    return Property.model_validate(property_)


@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_property_by_id(
    property_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Delete a property. Only its owner can delete it.

    A property can only be deleted if it doesn't have any associated contracts.
    """
    delete_property(db, property_id, current_user)
