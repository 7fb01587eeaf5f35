"""Signature workflow tests against the in-memory atomic store (no database)."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from sara.db.memory import ContractRecord, InMemoryAtomicStore, PropertyRecord
from sara.domain.identity import Identity
from sara.domain.signature import SignerRole
from sara.errors import (
    AlreadySignedError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    OutOfOrderError,
    UnauthorizedError,
)
from sara.services.contract import change_contract_status
from sara.services.signature import apply_signature

LANDLORD = Identity(user_id=1, email="landlord@example.com")
TENANT = Identity(user_id=2, email="tenant@example.com")
STRANGER = Identity(user_id=3, email="stranger@example.com")

T0 = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryAtomicStore:
    store = InMemoryAtomicStore()
    store.add_property(PropertyRecord(id=10))
    store.add_contract(
        ContractRecord(
            id=100,
            property_id=10,
            landlord_id=LANDLORD.user_id,
            tenant_id=TENANT.user_id,
            tenant_email=TENANT.email,
        )
    )
    return store


# ============================================================================
# ORDERING
# ============================================================================


def test_signature_ordering_scenario(store: InMemoryAtomicStore):
    """Landlord first is out of order, tenant then landlord activates, then nothing more."""
    with pytest.raises(OutOfOrderError):
        apply_signature(store, 100, SignerRole.LANDLORD, LANDLORD, now=T0)

    contract = apply_signature(store, 100, SignerRole.TENANT, TENANT, now=T0)
    assert contract.signed_by_tenant is True
    assert contract.tenant_signed_at == T0
    assert contract.status == "draft"
    assert store.get_property(10).status == "available"

    with pytest.raises(AlreadySignedError):
        apply_signature(store, 100, SignerRole.TENANT, TENANT, now=T0 + timedelta(minutes=1))

    later = T0 + timedelta(hours=1)
    contract = apply_signature(store, 100, SignerRole.LANDLORD, LANDLORD, now=later)
    assert contract.signed_by_landlord is True
    assert contract.landlord_signed_at == later
    assert contract.status == "active"
    assert store.get_property(10).status == "leased"

    for role, identity in ((SignerRole.LANDLORD, LANDLORD), (SignerRole.TENANT, TENANT)):
        with pytest.raises(InvalidStateError):
            apply_signature(store, 100, role, identity)


def test_repeated_tenant_signature_keeps_first_timestamp(store: InMemoryAtomicStore):
    apply_signature(store, 100, "tenant", TENANT, now=T0)
    with pytest.raises(AlreadySignedError):
        apply_signature(store, 100, "tenant", TENANT, now=T0 + timedelta(days=1))

    assert store.get_contract(100).tenant_signed_at == T0


def test_failed_landlord_signature_changes_nothing(store: InMemoryAtomicStore):
    before = store.get_contract(100)
    with pytest.raises(OutOfOrderError):
        apply_signature(store, 100, "landlord", LANDLORD)

    assert store.get_contract(100) == before


# ============================================================================
# AUTHORIZATION
# ============================================================================


@pytest.mark.parametrize(
    "role, identity",
    [
        (SignerRole.TENANT, LANDLORD),
        (SignerRole.TENANT, STRANGER),
        (SignerRole.LANDLORD, TENANT),
        (SignerRole.LANDLORD, STRANGER),
    ],
)
def test_signing_for_the_wrong_party_is_forbidden(store, role, identity):
    with pytest.raises(ForbiddenError):
        apply_signature(store, 100, role, identity)
    assert store.get_contract(100).signed_by_tenant is False


def test_forbidden_is_reported_before_out_of_order(store: InMemoryAtomicStore):
    with pytest.raises(ForbiddenError):
        apply_signature(store, 100, SignerRole.LANDLORD, STRANGER)


def test_linked_tenant_is_matched_by_id_not_email(store: InMemoryAtomicStore):
    same_email = Identity(user_id=99, email=TENANT.email)
    with pytest.raises(ForbiddenError):
        apply_signature(store, 100, SignerRole.TENANT, same_email)


def test_unlinked_tenant_is_matched_by_email_and_linked(store: InMemoryAtomicStore):
    store.add_contract(
        ContractRecord(
            id=101,
            property_id=10,
            landlord_id=LANDLORD.user_id,
            tenant_email="New.Tenant@Example.com",
        )
    )
    new_tenant = Identity(user_id=7, email="new.tenant@example.com")

    contract = apply_signature(store, 101, SignerRole.TENANT, new_tenant)

    assert contract.tenant_id == 7
    assert contract.signed_by_tenant is True
    # From now on only the linked account matches.
    with pytest.raises(ForbiddenError):
        apply_signature(
            store, 101, SignerRole.TENANT, Identity(user_id=8, email="new.tenant@example.com")
        )


def test_missing_identity_is_unauthorized(store: InMemoryAtomicStore):
    with pytest.raises(UnauthorizedError):
        apply_signature(store, 100, SignerRole.TENANT, None)


def test_unknown_contract_is_not_found(store: InMemoryAtomicStore):
    with pytest.raises(NotFoundError):
        apply_signature(store, 404, SignerRole.TENANT, TENANT)


def test_unknown_signer_role_rejected(store: InMemoryAtomicStore):
    with pytest.raises(ValueError):
        apply_signature(store, 100, "notary", TENANT)


def test_non_draft_contract_cannot_be_signed(store: InMemoryAtomicStore):
    change_contract_status(store, 100, "cancelled", LANDLORD)
    with pytest.raises(InvalidStateError):
        apply_signature(store, 100, SignerRole.TENANT, TENANT)


# ============================================================================
# ATOMICITY
# ============================================================================


def test_activation_rolls_back_when_property_is_missing():
    store = InMemoryAtomicStore()
    store.add_contract(
        ContractRecord(
            id=1,
            property_id=999,
            landlord_id=LANDLORD.user_id,
            tenant_id=TENANT.user_id,
            tenant_email=TENANT.email,
            signed_by_tenant=True,
            tenant_signed_at=T0,
        )
    )

    with pytest.raises(NotFoundError):
        apply_signature(store, 1, SignerRole.LANDLORD, LANDLORD)

    contract = store.get_contract(1)
    assert contract.status == "draft"
    assert contract.signed_by_landlord is False
    assert contract.landlord_signed_at is None


def test_concurrent_landlord_signatures_succeed_once(store: InMemoryAtomicStore):
    apply_signature(store, 100, SignerRole.TENANT, TENANT)

    attempts = 8
    barrier = threading.Barrier(attempts)
    results: list[str] = []
    results_lock = threading.Lock()

    def sign():
        barrier.wait()
        try:
            apply_signature(store, 100, SignerRole.LANDLORD, LANDLORD)
            outcome = "ok"
        except InvalidStateError:
            outcome = "invalid_state"
        with results_lock:
            results.append(outcome)

    threads = [threading.Thread(target=sign) for _ in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert results.count("ok") == 1
    assert results.count("invalid_state") == attempts - 1
    assert store.get_contract(100).status == "active"


def test_readers_never_see_half_activated_contract(store: InMemoryAtomicStore):
    apply_signature(store, 100, SignerRole.TENANT, TENANT)

    stop = threading.Event()
    inconsistent: list[tuple[str, str]] = []

    def watch():
        while not stop.is_set():
            contract, property_ = store.snapshot(100)
            active = contract.status == "active"
            leased = property_.status == "leased"
            if active != leased:
                inconsistent.append((contract.status, property_.status))

    watcher = threading.Thread(target=watch)
    watcher.start()
    try:
        apply_signature(store, 100, SignerRole.LANDLORD, LANDLORD)
    finally:
        stop.set()
        watcher.join()

    assert inconsistent == []
    contract, property_ = store.snapshot(100)
    assert (contract.status, property_.status) == ("active", "leased")


# ============================================================================
# ADMINISTRATIVE STATUS CHANGES
# ============================================================================


def test_archive_stamps_archived_at(store: InMemoryAtomicStore):
    change_contract_status(store, 100, "cancelled", LANDLORD, now=T0)
    contract = change_contract_status(store, 100, "archived", LANDLORD, now=T0)

    assert contract.status == "archived"
    assert contract.archived_at == T0


def test_status_change_by_tenant_forbidden(store: InMemoryAtomicStore):
    with pytest.raises(ForbiddenError):
        change_contract_status(store, 100, "cancelled", TENANT)


def test_archived_contract_is_final(store: InMemoryAtomicStore):
    change_contract_status(store, 100, "cancelled", LANDLORD)
    change_contract_status(store, 100, "archived", LANDLORD)
    with pytest.raises(InvalidStateError):
        change_contract_status(store, 100, "cancelled", LANDLORD)
