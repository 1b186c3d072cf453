"""Users known to the ordering service and the roles they act under.

Registration and login are handled elsewhere; the order flow only needs to
resolve an acting user, check their roles and, for staff, their branch.
"""

import json
from enum import Enum

from protean.fields import Identifier, String, Text

from ordering.domain import ordering


class Role(Enum):
    CLIENT = "CLIENT"
    RESTAURANT = "RESTAURANT"
    DELIVERY = "DELIVERY"
    ADMIN = "ADMIN"


@ordering.aggregate
class User:
    name = String(required=True, max_length=100)
    lastname = String(max_length=100)
    email = String(max_length=255)
    phone = String(max_length=30)
    branch_id = Identifier()  # staff and couriers belong to a branch
    roles = Text(default="[]")  # JSON list of Role values

    @classmethod
    def create(cls, name: str, roles: list[Role], **fields):
        return cls(name=name, roles=json.dumps([role.value for role in roles]), **fields)

    @property
    def role_set(self) -> set[Role]:
        return {Role(value) for value in json.loads(self.roles or "[]")}

    def has_role(self, role: Role) -> bool:
        return role in self.role_set

    def snapshot(self) -> dict:
        """Public contact details shared with the other party of an order."""
        return {
            "id": str(self.id),
            "name": self.name,
            "lastname": self.lastname or "",
            "phone": self.phone or "",
        }
