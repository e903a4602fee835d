"""
Permission Service application package.

Decides whether a user may perform actions on an object, optionally
scoped to a domain. A strategy registry selects a checker per
(object type, sub-resource); checkers gate writes on locked domains,
let root users through, canonicalize the request into policy tuples and
ask the policy engine.

Modules of interest:
- models: request, canonical tuple and decision types.
- canonical: request validation and canonical tuple assembly.
- checkers: the default and pod terminal checker pipelines.
- registry: (object type, sub-resource) -> checker table.
- service: entry point and wiring from configuration.
"""

from .models import PermissionRequest, CanonicalTuple, Decision, ObjectType, Bypass
from .service import PermissionService, build_permission_service

__all__ = [
    "PermissionRequest",
    "CanonicalTuple",
    "Decision",
    "ObjectType",
    "Bypass",
    "PermissionService",
    "build_permission_service",
]
