"""
Data models for the Permission Service.
"""

from typing import Optional, Tuple
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import AccessLayerException


# Reserved characters of the canonical policy strings
SEPARATOR = ":"
ACT_SEPARATOR = "|"
WILDCARD = "*"

USER_PREFIX = "user"
SUB_RESOURCE_MARKER = "sub"

SUB_RESOURCE_POD_TERMINAL = "pod-terminal"


class ObjectType(str, Enum):
    """Object-type prefixes known to the policy store."""
    ROUTE = "route"
    APP = "app"
    INSTANCE = "instance"
    CLUSTER = "cluster"
    DATABASE = "database"
    TABLE = "table"
    CONFIG_RESOURCE = "configResource"


class Bypass(str, Enum):
    """Shortcuts that grant a request without policy evaluation."""
    ROUTE = "route"
    ROOT = "root"


class PermissionRequest(BaseModel):
    """Permission check request supplied by the enclosing request layer."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., description="Requesting user; <= 0 is anonymous")
    object_type: str = Field(..., description="Resource category, e.g. table")
    object_idx: str = Field(..., description="Identifier of the object instance")
    sub_resource: str = Field(..., description="Capability under the object")
    acts: Tuple[str, ...] = Field(default=(), description="Requested actions; empty means any")
    domain_type: Optional[str] = Field(None, description="Domain scope type, e.g. env")
    domain_id: Optional[str] = Field(None, description="Domain scope identifier")

    @property
    def has_domain(self) -> bool:
        return bool(self.domain_type) and bool(self.domain_id)


@dataclass(frozen=True)
class CanonicalTuple:
    """Normalized (subject, object, action, domain) policy strings."""
    subject: str
    object: str
    action: str
    domain: str

    def as_args(self) -> Tuple[str, str, str, str]:
        return (self.subject, self.object, self.action, self.domain)


@dataclass
class Decision:
    """Outcome of a permission check."""
    allowed: bool
    checker: str
    reason: Optional[str] = None
    error: Optional[AccessLayerException] = None
    bypass: Optional[Bypass] = None
    canonical: Optional[CanonicalTuple] = None
    engine_error: Optional[str] = None
    evaluation_time_ms: float = 0.0

    @property
    def outcome(self) -> str:
        """Short label for metrics and logs."""
        if self.allowed:
            return "allowed"
        if self.error is not None:
            return self.error.code.lower()
        return "denied"

    def raise_for_error(self) -> None:
        """Raise the carried error, if any."""
        if self.error is not None:
            raise self.error
