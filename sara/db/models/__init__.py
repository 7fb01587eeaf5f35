from sara.db.models.role import Role
from sara.db.models.user import User
from sara.db.models.property import Property
from sara.db.models.contract import Contract

__all__ = ["Role", "User", "Property", "Contract"]
