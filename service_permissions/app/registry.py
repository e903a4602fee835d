"""
Strategy registry mapping (object type, sub-resource) to a checker.
"""

from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Tuple

from .canonical import Canonicalizer
from .checkers import DefaultChecker, PodTerminalChecker
from .engine.adapter import PolicyEngineAdapter
from .interfaces import PermissionChecker, RootUserLookup, DomainLockLookup
from .lookups.domain_lock import DEFAULT_WRITE_ACTS
from .models import ObjectType, SUB_RESOURCE_POD_TERMINAL


class StrategyRegistry:
    """Read-only two-level checker table with a default fallback.

    The table is frozen at construction, so lookups from concurrent checks
    need no locking. Adding registrations at runtime would require a
    read-write lock around ``_strategies``.
    """

    def __init__(self, default: PermissionChecker,
                 strategies: Optional[Mapping[str, Mapping[str, PermissionChecker]]] = None):
        self._default = default
        self._strategies = MappingProxyType({
            object_type: MappingProxyType(dict(sub_resources))
            for object_type, sub_resources in (strategies or {}).items()
        })

    @property
    def default(self) -> PermissionChecker:
        return self._default

    def select(self, object_type: str, sub_resource: str) -> PermissionChecker:
        """Return the checker for the pair, or the default checker."""
        sub_resources = self._strategies.get(object_type)
        if sub_resources is None:
            return self._default
        return sub_resources.get(sub_resource, self._default)

    def registered(self) -> List[Tuple[str, str, str]]:
        """List (object type, sub-resource, checker name) registrations."""
        return [
            (object_type, sub_resource, checker.name)
            for object_type, sub_resources in self._strategies.items()
            for sub_resource, checker in sub_resources.items()
        ]


def build_default_registry(
    canonicalizer: Canonicalizer,
    adapter: PolicyEngineAdapter,
    root_lookup: RootUserLookup,
    lock_lookup: DomainLockLookup,
    pod_terminal_domain_type: str = "env",
    write_acts: Iterable[str] = DEFAULT_WRITE_ACTS,
) -> StrategyRegistry:
    """Build the registry with the standard checkers."""
    default = DefaultChecker(canonicalizer, adapter, root_lookup, lock_lookup, write_acts)
    pod_terminal = PodTerminalChecker(
        canonicalizer, adapter, root_lookup, lock_lookup,
        domain_type=pod_terminal_domain_type, write_acts=write_acts
    )
    return StrategyRegistry(
        default,
        {
            ObjectType.TABLE.value: {
                SUB_RESOURCE_POD_TERMINAL: pod_terminal,
            },
        },
    )
