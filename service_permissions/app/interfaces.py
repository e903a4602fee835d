"""
Collaborator interfaces consumed by the permission checkers.
"""

from typing import Protocol, Sequence, runtime_checkable

from .models import PermissionRequest, Decision


@runtime_checkable
class PolicyEngine(Protocol):
    """Rule-based policy engine evaluating one canonical tuple."""

    async def enforce(self, subject: str, obj: str, action: str, domain: str) -> bool:
        ...


@runtime_checkable
class RootUserLookup(Protocol):
    """Resolves superuser identities. Must answer False for user_id <= 0."""

    async def is_root(self, user_id: int) -> bool:
        ...


@runtime_checkable
class DomainLockLookup(Protocol):
    """Reports whether the requested actions are blocked by a domain lock."""

    async def is_locked(self, domain_type: str, domain_id: str, acts: Sequence[str]) -> bool:
        ...


@runtime_checkable
class PermissionChecker(Protocol):
    """Strategy deciding one class of permission requests."""

    name: str

    async def check(self, request: PermissionRequest, cancel_event=None) -> Decision:
        ...
