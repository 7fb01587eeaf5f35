from __future__ import annotations

from enum import Enum


class ContractStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


class PropertyStatus(str, Enum):
    AVAILABLE = "available"
    LEASED = "leased"
    MAINTENANCE = "maintenance"


class PropertyType(str, Enum):
    HOUSE = "house"
    APARTMENT = "apartment"
    COMMERCIAL = "commercial"
    LAND = "land"
    WAREHOUSE = "warehouse"
    PARKING = "parking"
    ROOM = "room"
    SHED = "shed"


class PropertyUsage(str, Enum):
    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"


class AdjustmentFrequency(str, Enum):
    QUARTERLY = "quarterly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"


# Status changes a landlord may apply by hand. DRAFT -> ACTIVE is reserved to
# the signature workflow.
ADMINISTRATIVE_TRANSITIONS: dict[ContractStatus, frozenset[ContractStatus]] = {
    ContractStatus.DRAFT: frozenset({ContractStatus.CANCELLED}),
    ContractStatus.ACTIVE: frozenset({ContractStatus.FINISHED, ContractStatus.CANCELLED}),
    ContractStatus.FINISHED: frozenset({ContractStatus.ARCHIVED}),
    ContractStatus.CANCELLED: frozenset({ContractStatus.ARCHIVED}),
    ContractStatus.ARCHIVED: frozenset(),
}


def can_transition(current: ContractStatus | str, target: ContractStatus | str) -> bool:
    """Whether an administrative status change from ``current`` to ``target`` is allowed."""
    return ContractStatus(target) in ADMINISTRATIVE_TRANSITIONS[ContractStatus(current)]
