"""Rules of the two-party contract signature workflow.

A draft contract is signed first by the tenant and then by the landlord. The
second signature activates the contract. Checks are evaluated in a fixed
order and the first failing one is reported:

1. the contract must still be a draft (``InvalidStateError``)
2. the caller must be the party of the requested role (``ForbiddenError``)
3. the landlord may only sign after the tenant (``OutOfOrderError``)
4. each party signs once (``AlreadySignedError``)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from sara.domain.contract_status import ContractStatus
from sara.domain.identity import Identity
from sara.errors import (
    AlreadySignedError,
    ForbiddenError,
    InvalidStateError,
    OutOfOrderError,
)


class SignerRole(str, Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"


def is_contract_tenant(contract, identity: Identity) -> bool:
    """Match by tenant id once linked, by tenant email before that."""
    if contract.tenant_id is not None:
        return identity.user_id == contract.tenant_id
    return identity.has_email(contract.tenant_email)


def is_contract_landlord(contract, identity: Identity) -> bool:
    return identity.user_id == contract.landlord_id


@dataclass(frozen=True, slots=True)
class SignaturePolicy:
    """Computes the field changes a signature makes to a contract.

    ``contract`` is any object exposing the contract columns as attributes
    (an ORM row or an in-memory record). Nothing is written here.
    """

    signed_at: datetime

    def changes_for(
        self, contract, signer_role: SignerRole | str, identity: Identity
    ) -> dict[str, Any]:
        signer_role = SignerRole(signer_role)

        if contract.status != ContractStatus.DRAFT:
            raise InvalidStateError(
                "This contract is no longer a draft and cannot be signed"
            )

        if signer_role is SignerRole.TENANT:
            changes = self._tenant_changes(contract, identity)
            tenant_signed, landlord_signed = True, bool(contract.signed_by_landlord)
        else:
            changes = self._landlord_changes(contract, identity)
            tenant_signed, landlord_signed = bool(contract.signed_by_tenant), True

        if tenant_signed and landlord_signed:
            changes["status"] = ContractStatus.ACTIVE.value
        return changes

    def _tenant_changes(self, contract, identity: Identity) -> dict[str, Any]:
        if not is_contract_tenant(contract, identity):
            raise ForbiddenError("You are not the tenant of this contract")
        if contract.signed_by_tenant:
            raise AlreadySignedError("You have already signed this contract")

        changes: dict[str, Any] = {
            "signed_by_tenant": True,
            "tenant_signed_at": self.signed_at,
        }
        if contract.tenant_id is None:
            changes["tenant_id"] = identity.user_id
        return changes

    def _landlord_changes(self, contract, identity: Identity) -> dict[str, Any]:
        if not is_contract_landlord(contract, identity):
            raise ForbiddenError("You are not the landlord of this contract")
        if not contract.signed_by_tenant:
            raise OutOfOrderError(
                "The tenant must sign the contract before the landlord"
            )
        if contract.signed_by_landlord:
            raise AlreadySignedError("You have already signed this contract")

        return {
            "signed_by_landlord": True,
            "landlord_signed_at": self.signed_at,
        }
