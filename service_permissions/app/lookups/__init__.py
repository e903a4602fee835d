"""
Reference implementations of the root user and domain lock collaborators.
"""

from .root import StaticRootUserLookup
from .domain_lock import (
    InMemoryDomainLockLookup, RedisDomainLockLookup, acts_imply_write, DEFAULT_WRITE_ACTS
)

__all__ = [
    "StaticRootUserLookup",
    "InMemoryDomainLockLookup",
    "RedisDomainLockLookup",
    "acts_imply_write",
    "DEFAULT_WRITE_ACTS",
]
