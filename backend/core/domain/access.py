"""
core.domain.access — Role / authority helpers shared by every service.

Authority in this project is hierarchical: each ``Role`` carries a
``hierarchy_level`` and an operation names the *minimum* role it needs.

╔══════════════════════════════════════════════════════════════════╗
║  Role codes and levels                                           ║
║    CITIZEN      0                                                ║
║    OFFICER     10   (initiate / accept / reject transfers)       ║
║    ADMIN       50   (manage department connections)              ║
║    SUPER_ADMIN 100  (officer lifecycle, consistency repair)      ║
║  Django superusers always count as SUPER_ADMIN.                  ║
╚══════════════════════════════════════════════════════════════════╝

Usage in an app's service layer::

    from core.domain.access import require_authority
    from accounts.models import RoleCode

    require_authority(actor, RoleCode.SUPER_ADMIN)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.domain.exceptions import InsufficientAuthority

if TYPE_CHECKING:
    from accounts.models import User


def get_user_role_code(user: User | None) -> str | None:
    """
    Return the role code for a user, or ``None`` if unassigned.

    Args:
        user: User instance (may be ``None`` for system-initiated runs).

    Returns:
        Upper-case role code string, or ``None``.
    """
    if user is None:
        return None
    if user.is_superuser:
        return "SUPER_ADMIN"
    role = getattr(user, "role", None)
    if role is None:
        return None
    return role.code


def role_level(code: str | None) -> int:
    """Hierarchy level of a role code (unknown / missing → -1)."""
    from accounts.models import ROLE_LEVELS

    if code is None:
        return -1
    return ROLE_LEVELS.get(code, -1)


def has_authority(user: User | None, minimum: str) -> bool:
    """``True`` when the user is active and at or above ``minimum``."""
    if user is None or not user.is_active:
        return False
    return role_level(get_user_role_code(user)) >= role_level(minimum)


def require_authority(user: User | None, minimum: str) -> str:
    """
    Guard that raises ``InsufficientAuthority`` if the user's role is
    below ``minimum``.

    Returns:
        The actor's role code (handy for snapshotting the initiator role).

    Raises:
        core.domain.exceptions.InsufficientAuthority
    """
    actual = get_user_role_code(user)
    if not has_authority(user, minimum):
        raise InsufficientAuthority(required=minimum, actual=actual)
    return actual
