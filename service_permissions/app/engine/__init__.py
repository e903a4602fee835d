"""
Policy engine package.

- adapter: single-rule and any-of-many evaluation with engine fault handling.
- casbin_engine: casbin enforcer over canonical (sub, obj, act, dom) tuples.
"""

from .adapter import PolicyEngineAdapter
from .casbin_engine import CasbinPolicyEngine, acts_match

__all__ = ["PolicyEngineAdapter", "CasbinPolicyEngine", "acts_match"]
