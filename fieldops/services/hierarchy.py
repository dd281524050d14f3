"""Organizational hierarchy: role levels, approval chains and permissions.

Authorization is a pure function of the actor's role and id and the target's
role and supervisor id. No storage access happens here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fieldops.config import get_settings
from fieldops.models.enums import Role

if TYPE_CHECKING:
    import uuid

ROLE_HIERARCHY: dict[Role, int] = {
    Role.ADMIN: 100,
    Role.FINANCE_LEADER: 80,
    Role.SALES_LEADER: 80,
    Role.HEAD_TECH: 80,
    Role.CUSTOMER_SERVICE: 60,
    Role.LEADER: 60,
    Role.FINANCE: 40,
    Role.SALES: 40,
    Role.TECH: 20,
}

# Requester role -> roles allowed to decide that requester's leave.
LEAVE_APPROVAL_CHAIN: dict[Role, tuple[Role, ...]] = {
    Role.TECH: (Role.LEADER, Role.HEAD_TECH),
    Role.LEADER: (Role.HEAD_TECH,),
    Role.FINANCE: (Role.FINANCE_LEADER,),
    Role.SALES: (Role.SALES_LEADER,),
    Role.CUSTOMER_SERVICE: (),
    Role.HEAD_TECH: (),
    Role.FINANCE_LEADER: (),
    Role.SALES_LEADER: (),
    Role.ADMIN: (),
}

_TASK_ASSIGNERS = frozenset({Role.ADMIN, Role.HEAD_TECH, Role.LEADER, Role.CUSTOMER_SERVICE})


def role_level(role: Role | str) -> int:
    return ROLE_HIERARCHY.get(Role(role), 0)


def is_higher_in_hierarchy(role: Role | str, other: Role | str) -> bool:
    return role_level(role) > role_level(other)


def get_next_approvers(requester_role: Role | str) -> tuple[Role, ...]:
    """Roles that may decide leave for ``requester_role`` without a supervisor link."""
    return LEAVE_APPROVAL_CHAIN.get(Role(requester_role), ())


def can_approve_leave_for(
    approver_role: Role | str,
    approver_id: uuid.UUID,
    requester_role: Role | str,
    requester_supervisor_id: uuid.UUID | None,
    approver_floor_level: int | None = None,
) -> bool:
    """Whether the approver may approve or reject the requester's leave.

    Allowed when the approver is the requester's direct supervisor, holds a
    role listed in the requester's approval chain, is an administrator, or
    sits at or above the approver floor and strictly above the requester.
    """
    if requester_supervisor_id is not None and requester_supervisor_id == approver_id:
        return True

    approver = Role(approver_role)
    if approver in get_next_approvers(requester_role):
        return True

    if approver == Role.ADMIN:
        return True

    floor = approver_floor_level if approver_floor_level is not None else get_settings().approver_floor_level
    return role_level(approver) >= floor and is_higher_in_hierarchy(approver, requester_role)


def can_assign_tasks(role: Role | str) -> bool:
    return Role(role) in _TASK_ASSIGNERS
