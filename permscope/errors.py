"""
Error taxonomy.

Catalog misses and decision misses are not errors at all (they resolve to
"not found" / ``False``). What remains is what callers have to react to:

- ``StoreUnavailable``: the store could not be reached or timed out; retry the whole call.
- ``StoreError``: the store rejected a read or write for any other reason.
- ``TransitionFailed``: a role transition was rolled back as a unit.
- ``PermissionDenied``: the actor lacks a permission an operation requires.
- ``UnknownUser`` / ``SessionNotFound``: nothing to build or return a context from.
"""

from __future__ import annotations


class PermscopeError(Exception):
    """Base class for errors raised by this package."""

    retryable: bool = False


class StoreError(PermscopeError):
    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"store error during {operation}")


class StoreUnavailable(StoreError):
    """Connectivity or timeout failure. Never turned into a permissive default."""

    retryable = True

    def __init__(self, operation: str, message: str | None = None) -> None:
        super().__init__(operation, message or f"store unavailable during {operation}")


class TransitionFailed(PermscopeError):
    """Raised when a role transition could not be applied; nothing was written."""

    def __init__(self, user_id: int, message: str, *, retryable: bool = False) -> None:
        self.user_id = user_id
        self.retryable = retryable
        super().__init__(message)


class PermissionDenied(PermscopeError):
    def __init__(self, permission_id: str) -> None:
        self.permission_id = permission_id
        super().__init__(f"missing permission {permission_id!r}")


class UnknownUser(PermscopeError):
    def __init__(self, user_id: int) -> None:
        self.user_id = user_id
        super().__init__(f"unknown or inactive user {user_id}")


class SessionNotFound(PermscopeError):
    pass
