"""Acting-user resolution and role checks.

Authentication happens upstream; requests carry the authenticated user id
in the ``X-User-Id`` header.
"""

from fastapi import Depends, Header, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.directory.user import Role, User


async def current_actor(x_user_id: str | None = Header(default=None)) -> User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        return current_domain.repository_for(User).get(x_user_id)
    except ObjectNotFoundError:
        raise HTTPException(status_code=401, detail="Unknown user")


def require_role(role: Role):
    async def dependency(actor: User = Depends(current_actor)) -> User:
        if not actor.has_role(role):
            raise HTTPException(status_code=403, detail=f"{role.value} role required")
        return actor

    return dependency


require_client = require_role(Role.CLIENT)
require_restaurant = require_role(Role.RESTAURANT)
require_delivery = require_role(Role.DELIVERY)
require_admin = require_role(Role.ADMIN)
