# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import Depends, Header

from fieldops.exceptions import InvalidRequestError
from fieldops.models.enums import Role
from fieldops.schemas.auth import AuthContext


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_role: str = Header(default=Role.TECH.value),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    try:
        role = Role(x_role.upper())
    except ValueError:
        raise InvalidRequestError(f"Unknown role: {x_role}") from None
    return AuthContext(user_id=x_user_id, role=role)


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]
