"""
Adapter between the checkers and the external policy engine.
"""

from typing import Iterable, Optional

from shared.logging import get_logger
from shared.errors import EngineError
from ..interfaces import PolicyEngine
from ..models import CanonicalTuple


class PolicyEngineAdapter:
    """Single-rule and any-of-many-rules evaluation over a policy engine."""

    def __init__(self, engine: PolicyEngine):
        self.engine = engine
        self.logger = get_logger("permissions.engine_adapter")

    async def enforce_one(self, subject: str, obj: str, action: str, domain: str) -> bool:
        """Evaluate one canonical tuple.

        Errors raised by the engine as ``EngineError`` concern this tuple only
        and propagate unchanged. Anything else means the rule store itself
        could not be queried and is raised as a fatal ``EngineError``.
        """
        try:
            return bool(await self.engine.enforce(subject, obj, action, domain))
        except EngineError:
            raise
        except Exception as e:
            raise EngineError(
                f"Policy engine unavailable: {e}",
                fatal=True,
                details={"subject": subject, "object": obj, "action": action, "domain": domain}
            ) from e

    async def enforce_any(self, tuples: Iterable[CanonicalTuple]) -> bool:
        """Return True if at least one tuple is permitted.

        Stops at the first permitted tuple. A candidate error does not stop
        the remaining candidates; a fatal error does. When nothing matched
        and some candidate failed, the last candidate error is raised.
        """
        last_error: Optional[EngineError] = None

        for item in tuples:
            try:
                if await self.enforce_one(*item.as_args()):
                    return True
            except EngineError as e:
                if e.fatal:
                    raise
                self.logger.debug("Candidate rule evaluation failed", object=item.object, error=e.message)
                last_error = e

        if last_error is not None:
            raise last_error
        return False
