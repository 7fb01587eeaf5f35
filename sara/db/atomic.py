"""Atomic read-modify-write units spanning a contract and its property.

Workflows that must not race (signatures, administrative status changes)
describe their reads and writes as a function of a ``UnitOfWork`` and hand it
to an ``AtomicStore``, which runs it all-or-nothing.
"""

import logging
from typing import Any, Callable, Protocol, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from sara.core.config import settings
from sara.db.models.contract import Contract as ContractModel
from sara.db.models.property import Property as PropertyModel
from sara.errors import NotFoundError, TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork(Protocol):
    def get_contract(self, contract_id: int) -> Any | None:
        """Read a contract for update, or None when it does not exist."""
        ...

    def update_contract(self, contract: Any, fields: dict[str, Any]) -> None: ...

    def update_property(self, property_id: int, fields: dict[str, Any]) -> None: ...


class AtomicStore(Protocol):
    def run(self, work: Callable[[UnitOfWork], T]) -> T:
        """Run ``work`` as a single unit, retrying on infrastructure conflicts."""
        ...


class SqlAlchemyUnitOfWork:
    """Row-locking unit of work bound to a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def get_contract(self, contract_id: int) -> ContractModel | None:
        return (
            self.db.query(ContractModel)
            .filter(ContractModel.id == contract_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def update_contract(self, contract: ContractModel, fields: dict[str, Any]) -> None:
        for name, value in fields.items():
            setattr(contract, name, value)

    def update_property(self, property_id: int, fields: dict[str, Any]) -> None:
        property_ = (
            self.db.query(PropertyModel)
            .filter(PropertyModel.id == property_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if property_ is None:
            raise NotFoundError("Property not found")
        for name, value in fields.items():
            setattr(property_, name, value)


class SqlAlchemyAtomicStore:
    """
    AtomicStore over a SQLAlchemy session.

    The unit of work runs inside the session's transaction and is committed
    once at the end. Domain errors roll back and propagate untouched;
    ``OperationalError`` (serialization failures, deadlocks, lock timeouts)
    rolls back and reruns the unit, up to ``max_attempts`` times in total.
    """

    def __init__(self, db: Session, max_attempts: int | None = None):
        self.db = db
        self.max_attempts = max_attempts or settings.transaction_max_attempts

    def run(self, work: Callable[[UnitOfWork], T]) -> T:
        last_error: OperationalError | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = work(SqlAlchemyUnitOfWork(self.db))
                self.db.commit()
            except OperationalError as exc:
                self.db.rollback()
                last_error = exc
                logger.warning(
                    "Atomic unit failed on attempt %d/%d: %s",
                    attempt,
                    self.max_attempts,
                    exc,
                )
                continue
            except Exception:
                self.db.rollback()
                raise
            return result

        raise TransactionConflictError(
            "The operation could not be completed because of a concurrent update, please try again"
        ) from last_error
