from datetime import datetime

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from sara.db.models.contract import Contract as ContractModel
from sara.domain.contract_status import ContractStatus
from sara.errors import NotFoundError

# Terms a landlord may edit while the contract is still an unsigned draft
UPDATABLE_FIELDS = (
    "tenant_name",
    "tenant_rut",
    "start_date",
    "end_date",
    "rent_amount",
    "rent_payment_day",
    "security_deposit_amount",
    "property_usage",
    "ipc_adjustment",
    "ipc_adjustment_frequency",
    "prohibition_to_sublet",
    "special_clauses",
)


def get_contract_by_id(db: Session, contract_id: int) -> ContractModel | None:
    """Get a contract by ID."""
    return db.query(ContractModel).filter(ContractModel.id == contract_id).first()


def get_contract_by_signature_token(db: Session, token: str) -> ContractModel | None:
    """Get a contract by the token of its signing link."""
    return (
        db.query(ContractModel).filter(ContractModel.signature_token == token).first()
    )


def get_contracts_by_property_id(db: Session, property_id: int) -> list[ContractModel]:
    """Get all contracts for a specific property."""
    return (
        db.query(ContractModel).filter(ContractModel.property_id == property_id).all()
    )


def get_contracts_by_user_id(db: Session, user_id: int) -> list[ContractModel]:
    """Get all contracts where the user is either the landlord or the tenant."""
    return (
        db.query(ContractModel)
        .filter(
            or_(
                ContractModel.landlord_id == user_id,
                ContractModel.tenant_id == user_id,
            )
        )
        .all()
    )


def create_contract(db: Session, **fields) -> ContractModel:
    """Create a new contract in the database. Pure data access - no business logic."""
    db_contract = ContractModel(**fields)
    db.add(db_contract)
    db.commit()
    db.refresh(db_contract)
    return db_contract


def update_contract(db: Session, contract_id: int, **kwargs) -> ContractModel:
    """
    Update a contract's terms. Only updates fields that are explicitly provided.

    To clear a nullable field, explicitly pass it with None value.
    Status and signature fields are not updatable here.
    """
    contract = get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    for name in UPDATABLE_FIELDS:
        if name in kwargs:
            setattr(contract, name, kwargs[name])

    db.commit()
    db.refresh(contract)
    return contract


def get_all_contracts_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    landlord_id: int | None = None,
    tenant_id: int | None = None,
    tenant_email: str | None = None,
    property_id: int | None = None,
    status: str | None = None,
) -> tuple[list[ContractModel], int]:
    """
    Get contracts with pagination and optional filters.

    Args:
        page: Page number (1-indexed)
        page_size: Number of items per page
        landlord_id: Optional filter by landlord
        tenant_id: Optional filter by tenant. Combined with ``tenant_email``,
                   also matches contracts not yet linked to a tenant account
                   but addressed to that email.
        tenant_email: See ``tenant_id``
        property_id: Optional filter by property
        status: Optional filter by contract status

    Returns:
        Tuple of (list of contracts, total count)
    """
    query = db.query(ContractModel)

    if landlord_id is not None:
        query = query.filter(ContractModel.landlord_id == landlord_id)

    if tenant_id is not None:
        tenant_filter = ContractModel.tenant_id == tenant_id
        if tenant_email is not None:
            tenant_filter = or_(
                tenant_filter,
                and_(
                    ContractModel.tenant_id.is_(None),
                    func.lower(ContractModel.tenant_email) == tenant_email.lower(),
                ),
            )
        query = query.filter(tenant_filter)

    if property_id is not None:
        query = query.filter(ContractModel.property_id == property_id)

    if status is not None:
        query = query.filter(ContractModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    contracts = (
        query.order_by(ContractModel.start_date.desc(), ContractModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return contracts, total


def get_archived_contracts_before(db: Session, cutoff: datetime) -> list[ContractModel]:
    """Get archived contracts whose ``archived_at`` is at or before ``cutoff``."""
    return (
        db.query(ContractModel)
        .filter(
            ContractModel.status == ContractStatus.ARCHIVED.value,
            ContractModel.archived_at.isnot(None),
            ContractModel.archived_at <= cutoff,
        )
        .all()
    )


def delete_contracts(db: Session, contracts: list[ContractModel]) -> int:
    """Delete the given contracts in a single transaction. Returns how many were deleted."""
    for contract in contracts:
        db.delete(contract)
    db.commit()
    return len(contracts)


def delete_contract(db: Session, contract_id: int) -> None:
    """Delete a contract from the database. Pure data access - no business logic."""
    contract = get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    db.delete(contract)
    db.commit()
