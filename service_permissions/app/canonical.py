"""
Conversion of permission requests into canonical policy tuples.
"""

from typing import Iterable, Optional, Sequence

from shared.errors import ValidationError
from .models import (
    PermissionRequest, CanonicalTuple, ObjectType,
    SEPARATOR, ACT_SEPARATOR, WILDCARD, USER_PREFIX, SUB_RESOURCE_MARKER
)


RESERVED_CHARACTERS = (SEPARATOR, ACT_SEPARATOR, WILDCARD)


def join_policy_parts(*parts: str) -> Optional[str]:
    """Join parts with the policy separator; None when any part is empty."""
    if not parts or any(not part for part in parts):
        return None
    return SEPARATOR.join(parts)


def join_acts(acts: Sequence[str]) -> str:
    """Join requested actions into a rule action string; empty means any."""
    if not acts:
        return WILDCARD
    return ACT_SEPARATOR.join(acts)


class Canonicalizer:
    """Validates permission requests and builds their canonical tuples.

    Instances are immutable and hold no per-request state, so one instance
    is shared by every checker.
    """

    def __init__(self, permitted_object_types: Optional[Iterable[str]] = None):
        if permitted_object_types is None:
            permitted_object_types = [t.value for t in ObjectType]
        self.permitted_object_types = frozenset(permitted_object_types)

    def validate_identity(self, request: PermissionRequest) -> None:
        """Reject anonymous or invalid subjects."""
        if request.user_id <= 0:
            raise ValidationError(
                "UserId must be a positive integer",
                details={"user_id": request.user_id}
            )

    def validate(self, request: PermissionRequest) -> None:
        """Check that the request can be turned into a canonical tuple."""
        self.validate_identity(request)

        if not request.object_type or not request.object_idx or not request.sub_resource:
            raise ValidationError(
                "The UserId, ObjectType, ObjectIdx and SubResource cannot be empty",
                details={
                    "object_type": request.object_type,
                    "object_idx": request.object_idx,
                    "sub_resource": request.sub_resource,
                }
            )

        if request.object_type not in self.permitted_object_types:
            raise ValidationError(
                f"ObjectType({request.object_type}) is invalid",
                details={"object_type": request.object_type}
            )

        self._reject_reserved("object_idx", request.object_idx)
        self._reject_reserved("sub_resource", request.sub_resource)
        self.validate_domain(request)

        for act in request.acts:
            if not act:
                raise ValidationError("Acts cannot contain empty action names")
            self._reject_reserved("acts", act)

    def validate_domain(self, request: PermissionRequest) -> None:
        """Reject reserved characters in the domain parts that are present."""
        if request.domain_type:
            self._reject_reserved("domain_type", request.domain_type)
        if request.domain_id:
            self._reject_reserved("domain_id", request.domain_id)

    def canonicalize(self, request: PermissionRequest) -> CanonicalTuple:
        """Build the (subject, object, action, domain) tuple for a request."""
        self.validate(request)

        subject = join_policy_parts(USER_PREFIX, str(request.user_id))
        obj = join_policy_parts(
            request.object_type, request.object_idx,
            SUB_RESOURCE_MARKER, request.sub_resource
        )
        action = join_acts(request.acts)
        # A partial or absent domain falls back to the wildcard domain
        domain = join_policy_parts(request.domain_type or "", request.domain_id or "") or WILDCARD

        return CanonicalTuple(subject=subject, object=obj, action=action, domain=domain)

    @staticmethod
    def _reject_reserved(name: str, value: str) -> None:
        for char in RESERVED_CHARACTERS:
            if char in value:
                raise ValidationError(
                    f"{name} contains reserved character '{char}'",
                    details={"field": name, "value": value}
                )
