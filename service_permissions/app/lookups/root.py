"""
Root user lookup.
"""

from typing import Iterable


class StaticRootUserLookup:
    """Root identities taken from configuration."""

    def __init__(self, root_user_ids: Iterable[int] = ()):
        self.root_user_ids = frozenset(uid for uid in root_user_ids if uid > 0)

    async def is_root(self, user_id: int) -> bool:
        if user_id <= 0:
            return False
        return user_id in self.root_user_ids
