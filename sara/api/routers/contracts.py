import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from sara.api.deps import (
    get_atomic_store,
    get_current_identity,
    get_current_user,
    get_db,
    get_optional_identity,
    require_roles,
)
from sara.db.atomic import AtomicStore
from sara.db.models.user import User
from sara.domain.contract_status import ContractStatus
from sara.domain.identity import Identity
from sara.services.contract import (
    change_contract_status,
    create_contract,
    delete_contract,
    get_contract,
    get_contract_by_signature_token,
    list_contracts,
    update_contract,
)
from sara.services.email import DELIVERY_ERRORS, send_contract_invitation_email
from sara.services.signature import apply_signature
from sara.schemas.contract import (
    Contract,
    ContractCreate,
    ContractStatusUpdate,
    ContractUpdate,
    SignatureRequest,
    SignatureResult,
)
from sara.schemas.pagination import PaginatedResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.post("", response_model=Contract, status_code=status.HTTP_201_CREATED)
async def create_new_contract(
    contract_data: ContractCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Create a draft contract for one of the landlord's properties.

    The tenant is invited by email to review and sign it. The landlord
    countersigns afterwards, which activates the contract.
    """
    contract = create_contract(db, current_user, **contract_data.model_dump())
    try:
        await send_contract_invitation_email(
            tenant_email=contract.tenant_email,
            tenant_name=contract.tenant_name,
            landlord_name=current_user.name,
            property_address=contract.property.address,
            signature_token=contract.signature_token,
        )
    except DELIVERY_ERRORS as e:
        logger.error("Failed to send contract invitation email: %s", e)
    return Contract.model_validate(contract)


@router.get("", response_model=PaginatedResponse[Contract])
def get_all_contracts(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(100, ge=1, le=1000, description="Number of items per page"),
    status_filter: ContractStatus | None = Query(
        None, alias="status", description="Filter contracts by status"
    ),
    property_id: int | None = Query(None, description="Filter contracts by property ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get all contracts with pagination and optional filters.
    - Admin: can see all contracts
    - Landlord: can see the contracts they created
    - Tenant: can see the contracts addressed to them
    """
    contracts, total = list_contracts(
        db,
        current_user,
        page=page,
        page_size=page_size,
        status=status_filter,
        property_id=property_id,
    )
    return PaginatedResponse[Contract].build(
        contracts, total, page, page_size, schema=Contract
    )


@router.get("/by-token/{token}", response_model=Contract)
def get_contract_for_signing_link(
    token: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Resolve the contract behind the signing link sent to the tenant."""
    contract = get_contract_by_signature_token(db, token)
    return Contract.model_validate(contract)


@router.get("/{contract_id}", response_model=Contract)
def get_contract_by_id(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Get a contract by ID.
    - Admin: can see any contract
    - Landlord and tenant: only the contracts they are party to
    """
    contract = get_contract(db, contract_id, current_user)
    return Contract.model_validate(contract)


@router.put("/{contract_id}", response_model=Contract)
def update_contract_by_id(
    contract_id: int,
    contract_data: ContractUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Update a draft contract. Only its landlord can update it, and only
    before the tenant signs.

    Fields not included in the request are not updated.
    """
    update_data = contract_data.model_dump(exclude_unset=True)
    contract = update_contract(db, contract_id, current_user, **update_data)
    return Contract.model_validate(contract)


@router.patch("/{contract_id}/status", response_model=Contract)
def update_contract_status(
    contract_id: int,
    status_data: ContractStatusUpdate,
    store: AtomicStore = Depends(get_atomic_store),
    identity: Identity = Depends(get_current_identity),
):
    """
    Finish, cancel or archive a contract. Only its landlord can do so.

    Contracts only become active by being signed by both parties.
    """
    contract = change_contract_status(store, contract_id, status_data.status, identity)
    return Contract.model_validate(contract)


@router.post("/{contract_id}/sign", response_model=SignatureResult)
def sign_contract(
    contract_id: int,
    signature: SignatureRequest,
    store: AtomicStore = Depends(get_atomic_store),
    identity: Identity | None = Depends(get_optional_identity),
):
    """
    Sign a draft contract as its tenant or its landlord.

    The tenant signs first. The landlord's countersignature activates the
    contract and marks the property as leased.
    """
    contract = apply_signature(store, contract_id, signature.signer_role, identity)
    return SignatureResult(contract=Contract.model_validate(contract))


@router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_contract_by_id(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Delete a contract. Only its landlord can delete it.

    Active contracts must be finished or cancelled first.
    """
    delete_contract(db, contract_id, current_user)
