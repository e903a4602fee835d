"""
Shared configuration management for the Access Layer permission service.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")


class PermissionsConfig(BaseConfig):
    """Permission decision service configuration."""

    service_name: str = Field(default="permissions")

    # Identities that bypass policy evaluation
    root_user_ids: List[int] = Field(default_factory=list)

    # Object-type prefixes accepted by the canonicalizer
    permitted_object_types: List[str] = Field(default_factory=lambda: [
        "route", "app", "instance", "cluster", "database", "table", "configResource",
    ])

    # Actions that count as writes for the domain lock gate
    write_acts: List[str] = Field(default_factory=lambda: [
        "create", "edit", "update", "delete", "write", "insert",
    ])

    # Pod terminal checks are only defined for this domain type
    pod_terminal_domain_type: str = Field(default="env")

    # Casbin policy engine
    casbin_model_path: Optional[str] = Field(default=None)
    casbin_policy_path: Optional[str] = Field(default=None)
    # Evaluate in a worker thread instead of on the event loop
    casbin_offload: bool = Field(default=False)

    # Domain lock state: "memory" or "redis"
    domain_lock_backend: str = Field(default="memory")
    domain_lock_key_prefix: str = Field(default="domain_lock:")


def get_config(**overrides) -> PermissionsConfig:
    """Get configuration for the permission service."""
    return PermissionsConfig(**overrides)
