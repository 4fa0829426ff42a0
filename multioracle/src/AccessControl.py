"""AccessControl: Role checks for mutating oracle calls.

.. code-block:: python

    >>> acl = AccessControl(admin="deployer")
    >>> acl.has_role("deployer", ADMIN_ROLE)
    True
    >>> acl.require("stranger", OPERATOR_ROLE)
    Traceback (most recent call last):
    ...
    multioracle.src.OracleErrors.AccessDenied: ACCESS_DENIED: 'stranger' requires one of OPERATOR
"""

from __future__ import annotations

import logging
import threading

from .OracleErrors import AccessDenied

logger = logging.getLogger(__name__)

ADMIN_ROLE = "ADMIN"
OPERATOR_ROLE = "OPERATOR"


class AccessControl:
    """Role membership by caller identity."""

    def __init__(self, admin: str | None = None) -> None:
        """Initialize role membership.

        :param admin: Optional identity granted both ADMIN and OPERATOR.
        """
        self._lock = threading.Lock()
        self._members: dict[str, set[str]] = {ADMIN_ROLE: set(), OPERATOR_ROLE: set()}
        if admin is not None:
            self.grant(ADMIN_ROLE, admin)
            self.grant(OPERATOR_ROLE, admin)

    def grant(self, role: str, caller: str) -> None:
        with self._lock:
            self._members.setdefault(role, set()).add(caller)
        logger.info(f"Granted {role} to {caller!r}")

    def revoke(self, role: str, caller: str) -> None:
        with self._lock:
            self._members.get(role, set()).discard(caller)
        logger.info(f"Revoked {role} from {caller!r}")

    def has_role(self, caller: str, role: str) -> bool:
        return caller in self._members.get(role, set())

    def require(self, caller: str, *roles: str) -> None:
        """Check that the caller holds at least one of ``roles``.

        :raises AccessDenied: If the caller holds none of them.
        """
        if any(self.has_role(caller, role) for role in roles):
            return
        logger.warning(f"Access denied for {caller!r} (requires {', '.join(roles)})")
        raise AccessDenied(caller, roles)
