"""
Casbin-backed policy engine for canonical permission tuples.
"""

import asyncio
from typing import Optional, Set

import casbin
from casbin.model import Model

from shared.logging import get_logger
from shared.errors import EngineError
from ..models import ACT_SEPARATOR, WILDCARD


# Request and policy are (sub, obj, act, dom). A request domain "*" matches
# any domain-scoped rule; a policy domain "*" matches any request domain.
DEFAULT_MODEL_TEXT = """
[request_definition]
r = sub, obj, act, dom

[policy_definition]
p = sub, obj, act, dom

[role_definition]
g = _, _

[policy_effect]
e = some(where (p.eft == allow))

[matchers]
m = g(r.sub, p.sub) && keyMatch(r.obj, p.obj) && actsMatch(r.act, p.act) && (r.dom == "*" || p.dom == "*" || r.dom == p.dom)
"""


def _split_acts(acts: str) -> Set[str]:
    return {act for act in acts.split(ACT_SEPARATOR) if act}


def acts_match(request_acts: str, policy_acts: str) -> bool:
    """Every requested act must be granted by the policy act set.

    A policy wildcard grants everything; a request wildcard asks for every
    action and is only granted by a policy wildcard.
    """
    if policy_acts == WILDCARD:
        return True
    if request_acts == WILDCARD:
        return False
    requested = _split_acts(request_acts)
    return bool(requested) and requested <= _split_acts(policy_acts)


class CasbinPolicyEngine:
    """Policy engine evaluating canonical tuples with a casbin enforcer.

    Casbin evaluates synchronously. With ``offload`` set each evaluation runs
    in a worker thread so large file-backed rule sets do not stall the event
    loop; the default evaluates inline, which suits in-memory rule sets.
    """

    def __init__(self, enforcer: Optional[casbin.Enforcer] = None, offload: bool = False):
        if enforcer is None:
            model = Model()
            model.load_model_from_text(DEFAULT_MODEL_TEXT)
            enforcer = casbin.Enforcer(model)
        self.enforcer = enforcer
        self.offload = offload
        self.enforcer.add_function("actsMatch", acts_match)
        self.logger = get_logger("permissions.casbin")

    @classmethod
    def from_files(cls, model_path: str, policy_path: str, offload: bool = False) -> "CasbinPolicyEngine":
        """Create an engine from a model file and a CSV policy file."""
        return cls(casbin.Enforcer(model_path, policy_path), offload=offload)

    def add_policy(self, subject: str, obj: str, action: str, domain: str = WILDCARD) -> bool:
        """Add an allow rule."""
        added = self.enforcer.add_policy(subject, obj, action, domain)
        self.logger.info("Policy added", subject=subject, object=obj, action=action, domain=domain)
        return added

    def remove_policy(self, subject: str, obj: str, action: str, domain: str = WILDCARD) -> bool:
        """Remove an allow rule."""
        return self.enforcer.remove_policy(subject, obj, action, domain)

    def add_role_for_user(self, subject: str, role: str) -> bool:
        """Link a subject to a role subject."""
        return self.enforcer.add_role_for_user(subject, role)

    async def enforce(self, subject: str, obj: str, action: str, domain: str) -> bool:
        """Evaluate one canonical tuple against the loaded rules."""
        try:
            if self.offload:
                allowed = await asyncio.to_thread(self.enforcer.enforce, subject, obj, action, domain)
            else:
                allowed = self.enforcer.enforce(subject, obj, action, domain)
            return bool(allowed)
        except Exception as e:
            self.logger.error("Casbin evaluation error", object=obj, error=str(e))
            raise EngineError(f"Casbin evaluation failed: {e}") from e
