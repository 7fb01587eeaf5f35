"""In-memory AtomicStore for running the contract workflows without a database."""

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, TypeVar

from sara.errors import NotFoundError

T = TypeVar("T")


@dataclass
class ContractRecord:
    id: int
    property_id: int
    landlord_id: int
    tenant_email: str
    tenant_id: int | None = None
    status: str = "draft"
    signed_by_tenant: bool = False
    tenant_signed_at: datetime | None = None
    signed_by_landlord: bool = False
    landlord_signed_at: datetime | None = None
    archived_at: datetime | None = None


@dataclass
class PropertyRecord:
    id: int
    status: str = "available"


class _InMemoryUnitOfWork:
    # Reads hand out private copies; nothing is visible to other readers
    # until commit() publishes them.

    def __init__(
        self,
        contracts: dict[int, ContractRecord],
        properties: dict[int, PropertyRecord],
    ):
        self._contracts = contracts
        self._properties = properties
        self._staged_contracts: dict[int, ContractRecord] = {}
        self._staged_properties: dict[int, PropertyRecord] = {}

    def get_contract(self, contract_id: int) -> ContractRecord | None:
        if contract_id in self._staged_contracts:
            return self._staged_contracts[contract_id]
        record = self._contracts.get(contract_id)
        if record is None:
            return None
        staged = replace(record)
        self._staged_contracts[contract_id] = staged
        return staged

    def update_contract(self, contract: ContractRecord, fields: dict[str, Any]) -> None:
        staged = self.get_contract(contract.id)
        if staged is None:
            raise NotFoundError("Contract not found")
        for name, value in fields.items():
            setattr(staged, name, value)

    def update_property(self, property_id: int, fields: dict[str, Any]) -> None:
        staged = self._staged_properties.get(property_id)
        if staged is None:
            record = self._properties.get(property_id)
            if record is None:
                raise NotFoundError("Property not found")
            staged = replace(record)
            self._staged_properties[property_id] = staged
        for name, value in fields.items():
            setattr(staged, name, value)

    def commit(self) -> None:
        for contract_id, record in self._staged_contracts.items():
            self._contracts[contract_id] = replace(record)
        for property_id, record in self._staged_properties.items():
            self._properties[property_id] = replace(record)


class InMemoryAtomicStore:
    """
    Dict-backed AtomicStore guarded by a single lock.

    ``run`` holds the lock for the whole unit of work, which makes units
    serializable. A unit that raises publishes nothing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._contracts: dict[int, ContractRecord] = {}
        self._properties: dict[int, PropertyRecord] = {}

    def add_contract(self, record: ContractRecord) -> None:
        with self._lock:
            self._contracts[record.id] = replace(record)

    def add_property(self, record: PropertyRecord) -> None:
        with self._lock:
            self._properties[record.id] = replace(record)

    def get_contract(self, contract_id: int) -> ContractRecord | None:
        with self._lock:
            record = self._contracts.get(contract_id)
            return replace(record) if record is not None else None

    def get_property(self, property_id: int) -> PropertyRecord | None:
        with self._lock:
            record = self._properties.get(property_id)
            return replace(record) if record is not None else None

    def snapshot(self, contract_id: int) -> tuple[ContractRecord, PropertyRecord]:
        """Read a contract and its property together, as one consistent view."""
        with self._lock:
            contract = replace(self._contracts[contract_id])
            property_ = replace(self._properties[contract.property_id])
            return contract, property_

    def run(self, work: Callable[[_InMemoryUnitOfWork], T]) -> T:
        with self._lock:
            uow = _InMemoryUnitOfWork(self._contracts, self._properties)
            result = work(uow)
            uow.commit()
            if isinstance(result, (ContractRecord, PropertyRecord)):
                return replace(result)
            return result
