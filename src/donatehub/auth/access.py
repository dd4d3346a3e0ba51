"""Access control gate.

Two independent predicates: a role check (is this kind of user allowed at
all?) and an ownership check (is this user the owner of that entity?). They
fail with different errors so the two conditions stay distinguishable in logs
and tests, even though both surface as 403.
"""

from __future__ import annotations

from donatehub.auth.principal import Principal
from donatehub.errors import AuthenticationError, AuthorizationError, OwnershipError


def has_role(principal: Principal | None, *allowed: str) -> bool:
    """Pure predicate: the principal exists and acts in one of ``allowed`` roles."""
    return principal is not None and principal.role in allowed


def check_role(principal: Principal | None, *allowed: str, message: str | None = None) -> Principal:
    """Return the principal if its role is allowed, else raise.

    Raises:
        AuthenticationError: no principal at all.
        AuthorizationError: principal's role is not in ``allowed``.
    """
    if principal is None:
        msg = "Authentication required"
        raise AuthenticationError(msg)
    if not has_role(principal, *allowed):
        msg = message or f"Access denied. Required role: {' or '.join(allowed)}"
        raise AuthorizationError(msg)
    return principal


def is_owner(principal: Principal | None, owner_id: str) -> bool:
    """Pure predicate: the principal is the owner identified by ``owner_id``."""
    return principal is not None and principal.id == owner_id


def check_owner(principal: Principal | None, owner_id: str, message: str | None = None) -> None:
    """Raise OwnershipError unless the principal owns the entity."""
    if principal is None:
        msg = "Authentication required"
        raise AuthenticationError(msg)
    if not is_owner(principal, owner_id):
        raise OwnershipError(message)
