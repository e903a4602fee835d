"""
Pod terminal permission checker.
"""

import asyncio
from typing import Iterable, Optional

from shared.errors import EngineError, ValidationError
from .base import BaseChecker
from ..canonical import Canonicalizer
from ..engine.adapter import PolicyEngineAdapter
from ..interfaces import RootUserLookup, DomainLockLookup
from ..lookups.domain_lock import DEFAULT_WRITE_ACTS
from ..models import PermissionRequest, Decision, Bypass


class PodTerminalChecker(BaseChecker):
    """Checks terminal access to an app's pods.

    Terminal rules exist only per environment, so a non-root request must
    name a domain of ``domain_type`` and is evaluated against exactly one
    rule shape.
    """

    name = "pod_terminal"

    def __init__(
        self,
        canonicalizer: Canonicalizer,
        adapter: PolicyEngineAdapter,
        root_lookup: RootUserLookup,
        lock_lookup: DomainLockLookup,
        domain_type: str = "env",
        write_acts: Iterable[str] = DEFAULT_WRITE_ACTS,
    ):
        super().__init__(canonicalizer, adapter, root_lookup, lock_lookup, write_acts)
        self.domain_type = domain_type

    async def _run(self, request: PermissionRequest,
                   cancel_event: Optional[asyncio.Event]) -> Decision:
        self.canonicalizer.validate_identity(request)

        await self.check_domain_lock(request, cancel_event)

        if await self.is_root_user(request.user_id, cancel_event):
            self.logger.info("Root user bypass", user_id=request.user_id)
            return self.permit(bypass=Bypass.ROOT, reason="Root user")

        canonical = self.build_tuple(request)
        if not request.has_domain or request.domain_type != self.domain_type:
            self.logger.error("Pod terminal request without domain", domain_type=request.domain_type)
            raise ValidationError(
                f"Pod terminal permission requires a {self.domain_type} domain",
                details={"domain_type": request.domain_type, "domain_id": request.domain_id}
            )

        engine_error = None
        try:
            allowed = await self._external(
                cancel_event, "policy_engine", self.adapter.enforce_one, *canonical.as_args()
            )
        except EngineError as e:
            self.logger.warning("ReqPerm not pass", error=e.message, fatal=e.fatal)
            allowed, engine_error = False, e.message

        return self.interpret(canonical, allowed, engine_error)
