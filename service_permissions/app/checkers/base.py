"""
Shared pipeline steps for permission checkers.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Iterable, Optional

from shared.logging import get_logger
from shared.errors import (
    AccessLayerException, ValidationError, DomainLockedError,
    PermissionDeniedError, CanceledError
)
from ..canonical import Canonicalizer
from ..engine.adapter import PolicyEngineAdapter
from ..interfaces import RootUserLookup, DomainLockLookup
from ..lookups.domain_lock import DEFAULT_WRITE_ACTS, acts_imply_write
from ..models import PermissionRequest, CanonicalTuple, Decision, Bypass


MSG_NO_PERMISSION = "No permission"


class BaseChecker:
    """Base class for permission checkers.

    A checker never raises for an expected outcome: validation failures,
    lock blocks, denials and cancellations are all returned inside the
    ``Decision``. Subclasses implement ``_run`` by chaining the step helpers
    below in the order their resource type requires.
    """

    name = "base"

    def __init__(
        self,
        canonicalizer: Canonicalizer,
        adapter: PolicyEngineAdapter,
        root_lookup: RootUserLookup,
        lock_lookup: DomainLockLookup,
        write_acts: Iterable[str] = DEFAULT_WRITE_ACTS,
    ):
        self.canonicalizer = canonicalizer
        self.adapter = adapter
        self.root_lookup = root_lookup
        self.lock_lookup = lock_lookup
        self.write_acts = frozenset(write_acts)
        self.logger = get_logger(f"permissions.checker.{self.name}")

    async def check(self, request: PermissionRequest,
                    cancel_event: Optional[asyncio.Event] = None) -> Decision:
        """Run the checker pipeline for one request."""
        start_time = time.time()
        self.logger.info("Request check permission", data=request.model_dump())

        try:
            decision = await self._run(request, cancel_event)
        except AccessLayerException as e:
            decision = Decision(allowed=False, checker=self.name, reason=e.message, error=e)

        decision.evaluation_time_ms = (time.time() - start_time) * 1000
        return decision

    async def _run(self, request: PermissionRequest,
                   cancel_event: Optional[asyncio.Event]) -> Decision:
        raise NotImplementedError

    def _raise_if_canceled(self, cancel_event: Optional[asyncio.Event], step: str) -> None:
        if cancel_event is not None and cancel_event.is_set():
            self.logger.info("Permission check canceled", step=step)
            raise CanceledError(details={"step": step})

    async def _external(self, cancel_event: Optional[asyncio.Event], step: str,
                        call: Callable[..., Awaitable[Any]], *args) -> Any:
        """Await a collaborator call, honoring cancellation on both sides of it."""
        self._raise_if_canceled(cancel_event, step)
        result = await call(*args)
        self._raise_if_canceled(cancel_event, step)
        return result

    async def check_domain_lock(self, request: PermissionRequest,
                                cancel_event: Optional[asyncio.Event]) -> None:
        """Block write actions on a locked domain.

        Read-only requests never reach the lock lookup, so an unavailable
        lock store only blocks writes.
        """
        if not request.has_domain or not acts_imply_write(request.acts, self.write_acts):
            return
        self.canonicalizer.validate_domain(request)

        details = {"domain_type": request.domain_type, "domain_id": request.domain_id}
        try:
            locked = await self._external(
                cancel_event, "domain_lock", self.lock_lookup.is_locked,
                request.domain_type, request.domain_id, list(request.acts)
            )
        except CanceledError:
            raise
        except Exception as e:
            # Lock state unknown: writes stay blocked
            self.logger.error("Domain lock lookup failed", error=str(e), **details)
            raise DomainLockedError("Domain lock state unavailable", details=details) from e

        if locked:
            self.logger.info("Domain is locked", acts=list(request.acts), **details)
            raise DomainLockedError(
                f"Domain {request.domain_type}:{request.domain_id} is locked", details=details
            )

    async def is_root_user(self, user_id: int, cancel_event: Optional[asyncio.Event]) -> bool:
        if user_id <= 0:
            return False
        try:
            return bool(await self._external(cancel_event, "root_lookup", self.root_lookup.is_root, user_id))
        except CanceledError:
            raise
        except Exception as e:
            self.logger.warning("Root user lookup failed", user_id=user_id, error=str(e))
            return False

    def build_tuple(self, request: PermissionRequest) -> CanonicalTuple:
        try:
            return self.canonicalizer.canonicalize(request)
        except ValidationError as e:
            self.logger.error("ReqPermission is invalid", error=e.message)
            raise ValidationError(f"ReqPermission is invalid. {e.message}", details=e.details) from e

    def permit(self, bypass: Optional[Bypass] = None, reason: Optional[str] = None,
               canonical: Optional[CanonicalTuple] = None) -> Decision:
        return Decision(allowed=True, checker=self.name, reason=reason, bypass=bypass, canonical=canonical)

    def interpret(self, canonical: CanonicalTuple, allowed: bool,
                  engine_error: Optional[str] = None) -> Decision:
        """Turn the engine verdict into a decision; only the boolean counts."""
        if allowed:
            return self.permit(reason="Policy matched", canonical=canonical)

        details = {"subject": canonical.subject, "object": canonical.object,
                   "action": canonical.action, "domain": canonical.domain}
        if engine_error:
            details["engine_error"] = engine_error
        error = PermissionDeniedError(MSG_NO_PERMISSION, details=details)
        return Decision(
            allowed=False,
            checker=self.name,
            reason=MSG_NO_PERMISSION,
            error=error,
            canonical=canonical,
            engine_error=engine_error,
        )
