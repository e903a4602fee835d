"""
Domain lock lookups for the permission checkers.
"""

from typing import Iterable, Optional, Sequence, Set, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import ExternalServiceError, ValidationError
from ..models import SEPARATOR


DEFAULT_WRITE_ACTS = ("create", "edit", "update", "delete", "write", "insert")


def acts_imply_write(acts: Sequence[str], write_acts: Iterable[str] = DEFAULT_WRITE_ACTS) -> bool:
    """True when the requested actions include a write.

    An empty action list is the wildcard "any action", which includes writes.
    """
    if not acts:
        return True
    write_set = set(write_acts)
    return any(act in write_set for act in acts)


class InMemoryDomainLockLookup:
    """Domain lock state held in process memory."""

    def __init__(self, write_acts: Iterable[str] = DEFAULT_WRITE_ACTS):
        self.write_acts = frozenset(write_acts)
        self._locked: Set[Tuple[str, str]] = set()
        self.logger = get_logger("permissions.domain_lock.memory")

    def lock(self, domain_type: str, domain_id: str) -> None:
        self._locked.add((domain_type, domain_id))
        self.logger.info("Domain locked", domain_type=domain_type, domain_id=domain_id)

    def unlock(self, domain_type: str, domain_id: str) -> None:
        self._locked.discard((domain_type, domain_id))
        self.logger.info("Domain unlocked", domain_type=domain_type, domain_id=domain_id)

    async def is_locked(self, domain_type: str, domain_id: str, acts: Sequence[str]) -> bool:
        if not acts_imply_write(acts, self.write_acts):
            return False
        return (domain_type, domain_id) in self._locked


class RedisDomainLockLookup:
    """Domain lock flags stored as Redis keys."""

    def __init__(self, redis_url: str, key_prefix: str = "domain_lock:",
                 write_acts: Iterable[str] = DEFAULT_WRITE_ACTS):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.write_acts = frozenset(write_acts)
        self.logger = get_logger("permissions.domain_lock.redis")
        self.redis: Optional[redis.Redis] = None

    async def start(self):
        """Connect to Redis."""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )

            # Test connection
            await self.redis.ping()

            self.logger.info("Domain lock store started")

        except Exception as e:
            self.logger.error("Failed to start domain lock store", error=str(e))
            raise ExternalServiceError("redis", str(e))

    async def stop(self):
        """Close the Redis connection."""
        if self.redis:
            await self.redis.close()
            self.logger.info("Domain lock store stopped")

    def _key(self, domain_type: str, domain_id: str) -> str:
        # The key joins both parts with the separator, so neither may contain it
        for name, value in (("domain_type", domain_type), ("domain_id", domain_id)):
            if not value or SEPARATOR in value:
                raise ValidationError(
                    f"{name} must be non-empty and cannot contain '{SEPARATOR}'",
                    details={"field": name, "value": value}
                )
        return f"{self.key_prefix}{domain_type}{SEPARATOR}{domain_id}"

    async def lock(self, domain_type: str, domain_id: str) -> None:
        await self._call("set", self._key(domain_type, domain_id), "1")
        self.logger.info("Domain locked", domain_type=domain_type, domain_id=domain_id)

    async def unlock(self, domain_type: str, domain_id: str) -> None:
        await self._call("delete", self._key(domain_type, domain_id))
        self.logger.info("Domain unlocked", domain_type=domain_type, domain_id=domain_id)

    async def is_locked(self, domain_type: str, domain_id: str, acts: Sequence[str]) -> bool:
        if not acts_imply_write(acts, self.write_acts):
            return False
        return bool(await self._call("exists", self._key(domain_type, domain_id)))

    async def _call(self, command: str, *args):
        if self.redis is None:
            raise ExternalServiceError("redis", "domain lock store not started")
        try:
            return await getattr(self.redis, command)(*args)
        except RedisError as e:
            self.logger.error("Domain lock store error", command=command, error=str(e))
            raise ExternalServiceError("redis", str(e))
