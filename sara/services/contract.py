import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.orm import Session

import sara.repositories.contract as contract_repo
import sara.repositories.property as property_repo
import sara.repositories.user as user_repo
from sara.core.config import settings
from sara.db.atomic import AtomicStore, UnitOfWork
from sara.db.models.contract import Contract as ContractModel
from sara.db.models.user import User
from sara.domain.contract_status import ContractStatus, can_transition
from sara.domain.identity import Identity
from sara.domain.signature import is_contract_landlord, is_contract_tenant
from sara.errors import (
    DomainValidationError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _identity_of(user: User) -> Identity:
    return Identity(user_id=user.id, email=user.email)


def _can_view(contract: ContractModel, user: User) -> bool:
    if user.role.name == "admin":
        return True
    identity = _identity_of(user)
    return is_contract_landlord(contract, identity) or is_contract_tenant(contract, identity)


def create_contract(db: Session, landlord: User, **fields) -> ContractModel:
    """
    Create a draft contract for one of the landlord's properties.

    - Validates the property exists and belongs to the landlord
    - Validates end_date doesn't precede start_date
    - Links the tenant account when one is registered with tenant_email
    - Generates the token used by the signing link

    Raises:
        NotFoundError: If the property doesn't exist
        ForbiddenError: If the property belongs to another landlord
        DomainValidationError: On invalid dates, or if tenant_email belongs to
                               an account that is not a tenant
    """
    property_id = fields["property_id"]
    property_ = property_repo.get_property_by_id(db, property_id)
    if not property_:
        raise NotFoundError(f"Property with id {property_id} not found")
    if property_.owner_id != landlord.id:
        raise ForbiddenError("You can only create contracts for your own properties")

    if fields["end_date"] < fields["start_date"]:
        raise DomainValidationError(
            f"End date ({fields['end_date']}) cannot precede start date ({fields['start_date']})"
        )

    tenant_id = None
    tenant = user_repo.get_user_by_email(db, fields["tenant_email"])
    if tenant:
        if tenant.role.name != "tenant":
            raise DomainValidationError(
                f"{fields['tenant_email']} belongs to an account that is not a tenant"
            )
        tenant_id = tenant.id
    else:
        logger.info(
            "Tenant %s is not registered yet, contract will be linked on signature",
            fields["tenant_email"],
        )

    contract = contract_repo.create_contract(
        db,
        **fields,
        landlord_id=landlord.id,
        tenant_id=tenant_id,
        status=ContractStatus.DRAFT.value,
        signature_token=secrets.token_urlsafe(32),
        signed_by_tenant=False,
        signed_by_landlord=False,
    )
    logger.info("Draft contract %s created by landlord %s", contract.id, landlord.id)
    return contract


def get_contract(db: Session, contract_id: int, current_user: User) -> ContractModel:
    """
    Get a contract by ID with authorization checks.

    - Admin can see any contract
    - Landlord and tenant can see the contracts they are party to

    Raises:
        NotFoundError: If contract doesn't exist
        ForbiddenError: If the user is not a party to it
    """
    contract = contract_repo.get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")
    if not _can_view(contract, current_user):
        raise ForbiddenError("You do not have access to this contract")
    return contract


def get_contract_by_signature_token(db: Session, token: str) -> ContractModel:
    """
    Resolve the contract behind a signing link.

    Anyone holding the token may review the contract; signing still checks
    the caller's identity.
    """
    contract = contract_repo.get_contract_by_signature_token(db, token)
    if not contract:
        raise NotFoundError("No contract is associated with this signing link")
    return contract


def list_contracts(
    db: Session,
    current_user: User,
    page: int = 1,
    page_size: int = 100,
    status: ContractStatus | None = None,
    property_id: int | None = None,
) -> tuple[list[ContractModel], int]:
    """
    List the contracts visible to the user, with optional filters.

    - Admin: all contracts
    - Landlord: contracts they created
    - Tenant: contracts linked to them, plus unlinked ones sent to their email
    """
    filters: dict[str, Any] = {
        "property_id": property_id,
        "status": status.value if status is not None else None,
    }
    role = current_user.role.name
    if role == "landlord":
        filters["landlord_id"] = current_user.id
    elif role == "tenant":
        filters["tenant_id"] = current_user.id
        filters["tenant_email"] = current_user.email

    return contract_repo.get_all_contracts_paginated(
        db, page=page, page_size=page_size, **filters
    )


def _get_landlord_contract(db: Session, contract_id: int, landlord: User) -> ContractModel:
    contract = contract_repo.get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")
    if contract.landlord_id != landlord.id:
        raise ForbiddenError("Only the landlord of the contract can modify it")
    return contract


def update_contract(
    db: Session,
    contract_id: int,
    landlord: User,
    **update_fields,
) -> ContractModel:
    """
    Update the terms of a draft contract.

    Only fields explicitly provided in update_fields are updated. Terms are
    frozen once the tenant has signed.

    Raises:
        NotFoundError: If contract doesn't exist
        ForbiddenError: If the caller is not its landlord
        InvalidStateError: If the contract is not an unsigned draft
        DomainValidationError: If the resulting dates or IPC settings are invalid
    """
    contract = _get_landlord_contract(db, contract_id, landlord)

    if contract.status != ContractStatus.DRAFT or contract.signed_by_tenant:
        raise InvalidStateError("Only unsigned draft contracts can be edited")

    start_date = update_fields.get("start_date") or contract.start_date
    end_date = update_fields.get("end_date") or contract.end_date
    if end_date < start_date:
        raise DomainValidationError(
            f"End date ({end_date}) cannot precede start date ({start_date})"
        )

    ipc_adjustment = update_fields.get("ipc_adjustment", contract.ipc_adjustment)
    ipc_frequency = update_fields.get(
        "ipc_adjustment_frequency", contract.ipc_adjustment_frequency
    )
    if ipc_adjustment and ipc_frequency is None:
        raise DomainValidationError(
            "ipc_adjustment_frequency is required when ipc_adjustment is enabled"
        )

    return contract_repo.update_contract(db, contract_id=contract_id, **update_fields)


def change_contract_status(
    store: AtomicStore,
    contract_id: int,
    new_status: ContractStatus | str,
    identity: Identity,
    *,
    now: datetime | None = None,
):
    """
    Apply an administrative status change (finish, cancel, archive).

    Runs through the same atomic store as signatures so it cannot interleave
    with a concurrent signature. Activation is only reachable by signing.

    Raises:
        NotFoundError: If contract doesn't exist
        ForbiddenError: If the caller is not its landlord
        InvalidStateError: If the transition is not allowed
    """
    new_status = ContractStatus(new_status)

    def change(uow: UnitOfWork):
        contract = uow.get_contract(contract_id)
        if contract is None:
            raise NotFoundError("Contract not found")
        if not is_contract_landlord(contract, identity):
            raise ForbiddenError("Only the landlord of the contract can change its status")
        if not can_transition(contract.status, new_status):
            raise InvalidStateError(
                f"Cannot change contract status from {ContractStatus(contract.status).value} "
                f"to {new_status.value}"
            )

        changes: dict[str, Any] = {"status": new_status.value}
        if new_status is ContractStatus.ARCHIVED:
            changes["archived_at"] = now or datetime.now(timezone.utc)
        uow.update_contract(contract, changes)
        return contract

    contract = store.run(change)
    logger.info("Contract %s moved to %s by user %s", contract_id, new_status.value, identity.user_id)
    return contract


def delete_contract(db: Session, contract_id: int, landlord: User) -> None:
    """
    Delete a contract.

    Raises:
        NotFoundError: If contract doesn't exist
        ForbiddenError: If the caller is not its landlord
        InvalidStateError: If the contract is active
    """
    contract = _get_landlord_contract(db, contract_id, landlord)
    if contract.status == ContractStatus.ACTIVE:
        raise InvalidStateError(
            "Active contracts cannot be deleted, finish or cancel them first"
        )
    contract_repo.delete_contract(db, contract_id)


def purge_archived_contracts(
    db: Session,
    retention_days: int | None = None,
    as_of: datetime | None = None,
) -> int:
    """
    Delete archived contracts once their retention window has elapsed.

    Args:
        retention_days: Days an archived contract is kept (defaults to
                        ARCHIVED_CONTRACT_RETENTION_DAYS)
        as_of: Reference instant (defaults to now)

    Returns:
        Number of contracts deleted
    """
    if retention_days is None:
        retention_days = settings.archived_contract_retention_days
    cutoff = (as_of or datetime.now(timezone.utc)) - timedelta(days=retention_days)

    contracts = contract_repo.get_archived_contracts_before(db, cutoff)
    if not contracts:
        logger.info("No archived contracts older than %s to delete", cutoff.isoformat())
        return 0

    for contract in contracts:
        logger.info("Deleting archived contract %s", contract.id)
    deleted = contract_repo.delete_contracts(db, contracts)
    logger.info("Deleted %d archived contracts", deleted)
    return deleted
