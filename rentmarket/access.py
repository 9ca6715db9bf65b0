from __future__ import annotations
"""Single authorization predicate for privileged (admin-only) operations."""

import logging

from .errors import OwnerOnly

log = logging.getLogger(__name__)


class AdminGuard:
    """
    Holds the privileged identity fixed at construction. Every admin-only
    operation goes through `require_admin`.
    """

    def __init__(self, admin: str) -> None:
        if not admin:
            raise ValueError("admin identity must be non-empty")
        self._admin = str(admin)

    @property
    def admin(self) -> str:
        return self._admin

    def is_admin(self, caller: str) -> bool:
        return caller == self._admin

    def require_admin(self, caller: str, action: str = "") -> None:
        if not self.is_admin(caller):
            log.debug("admin check failed caller=%s action=%s", caller, action)
            raise OwnerOnly(
                f"{action or 'operation'} is restricted to the market admin",
                details={"caller": caller},
            )


__all__ = ["AdminGuard"]
