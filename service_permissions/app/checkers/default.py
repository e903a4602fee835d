"""
Default permission checker, used for every resource without a special rule.
"""

import asyncio
from typing import Optional

from shared.errors import EngineError
from .base import BaseChecker
from ..models import PermissionRequest, Decision, Bypass, ObjectType


class DefaultChecker(BaseChecker):
    """Generic pipeline: route bypass, lock gate, root bypass, any-of enforcement."""

    name = "default"

    async def _run(self, request: PermissionRequest,
                   cancel_event: Optional[asyncio.Event]) -> Decision:
        self.canonicalizer.validate_identity(request)

        # TODO: replace with real route permission evaluation once route rules exist
        if request.object_type == ObjectType.ROUTE.value:
            self.logger.info("Route always pass currently", object_idx=request.object_idx)
            return self.permit(bypass=Bypass.ROUTE, reason="Route objects always pass (provisional)")

        await self.check_domain_lock(request, cancel_event)

        if await self.is_root_user(request.user_id, cancel_event):
            self.logger.info("Root user bypass", user_id=request.user_id)
            return self.permit(bypass=Bypass.ROOT, reason="Root user")

        canonical = self.build_tuple(request)

        engine_error = None
        try:
            allowed = await self._external(
                cancel_event, "policy_engine", self.adapter.enforce_any, [canonical]
            )
        except EngineError as e:
            self.logger.warning("ReqPerm not pass", error=e.message, fatal=e.fatal)
            allowed, engine_error = False, e.message

        return self.interpret(canonical, allowed, engine_error)
