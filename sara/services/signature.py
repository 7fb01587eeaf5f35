"""Signature workflow: moves a draft contract to active through two signatures."""

import logging
from datetime import datetime, timezone

from sara.db.atomic import AtomicStore, UnitOfWork
from sara.domain.contract_status import ContractStatus, PropertyStatus
from sara.domain.identity import Identity
from sara.domain.signature import SignaturePolicy, SignerRole
from sara.errors import NotFoundError, UnauthorizedError

logger = logging.getLogger(__name__)


def apply_signature(
    store: AtomicStore,
    contract_id: int,
    signer_role: SignerRole | str,
    identity: Identity | None,
    *,
    now: datetime | None = None,
):
    """
    Apply the tenant's or the landlord's signature to a draft contract.

    Validation and writes happen inside a single ``store.run`` unit: the
    contract flag and timestamp are set and, when this signature completes
    the pair, the contract becomes active and its property is marked as
    leased in the same unit.

    Returns the updated contract.

    Raises:
        UnauthorizedError: If there is no verified caller identity.
        NotFoundError: If the contract does not exist.
        InvalidStateError: If the contract is not a draft.
        ForbiddenError: If the caller is not the party of ``signer_role``.
        OutOfOrderError: If the landlord signs before the tenant.
        AlreadySignedError: If the caller's role already signed.
    """
    if identity is None:
        raise UnauthorizedError("Your session could not be verified, please sign in again")
    signer_role = SignerRole(signer_role)

    def sign(uow: UnitOfWork):
        contract = uow.get_contract(contract_id)
        if contract is None:
            raise NotFoundError("Contract not found")

        policy = SignaturePolicy(signed_at=now or datetime.now(timezone.utc))
        changes = policy.changes_for(contract, signer_role, identity)
        uow.update_contract(contract, changes)

        if changes.get("status") == ContractStatus.ACTIVE.value:
            uow.update_property(
                contract.property_id, {"status": PropertyStatus.LEASED.value}
            )
        return contract

    contract = store.run(sign)
    logger.info(
        "Contract %s signed by %s (user %s), status is now %s",
        contract_id,
        signer_role.value,
        identity.user_id,
        contract.status,
    )
    return contract
