"""
Permission service: entry point of the permission decision pipeline.
"""

import asyncio
import time
import uuid
from typing import Optional

from opentelemetry import trace

from shared.config import PermissionsConfig, get_config
from shared.logging import (
    configure_logging, get_logger, set_permission_context, clear_permission_context, request_id_var
)
from shared.metrics import MetricsCollector

from .canonical import Canonicalizer
from .engine.adapter import PolicyEngineAdapter
from .engine.casbin_engine import CasbinPolicyEngine
from .interfaces import PermissionChecker, PolicyEngine, RootUserLookup, DomainLockLookup
from .lookups import StaticRootUserLookup, InMemoryDomainLockLookup, RedisDomainLockLookup
from .models import PermissionRequest, Decision
from .registry import StrategyRegistry, build_default_registry


class PermissionService:
    """Owns the strategy registry and dispatches permission checks."""

    def __init__(self, registry: StrategyRegistry,
                 metrics: Optional[MetricsCollector] = None,
                 lock_lookup: Optional[DomainLockLookup] = None):
        self.registry = registry
        self.metrics = metrics
        self.lock_lookup = lock_lookup
        self.logger = get_logger("permissions.service")
        self.tracer = trace.get_tracer("permissions.service")

    def select_checker(self, object_type: str, sub_resource: str) -> PermissionChecker:
        return self.registry.select(object_type, sub_resource)

    async def check(self, request: PermissionRequest,
                    cancel_event: Optional[asyncio.Event] = None,
                    timeout: Optional[float] = None,
                    request_id: Optional[str] = None) -> Decision:
        """Decide a permission request.

        ``timeout`` arms ``cancel_event`` after that many seconds; the
        pipeline then stops at its next collaborator call and the decision
        carries a ``CanceledError``.

        Logs are correlated by ``request_id``; without one the caller's request
        id is kept, or a new one is generated. The caller's log context is
        restored when the check returns.
        """
        checker = self.select_checker(request.object_type, request.sub_resource)
        domain = f"{request.domain_type}:{request.domain_id}" if request.has_domain else None
        request_id = request_id or request_id_var.get() or str(uuid.uuid4())
        context_tokens = set_permission_context(
            user_id=str(request.user_id), domain=domain, request_id=request_id
        )

        timer = None
        if timeout is not None:
            if cancel_event is None:
                cancel_event = asyncio.Event()
            timer = asyncio.get_running_loop().call_later(timeout, cancel_event.set)

        start_time = time.time()
        try:
            with self.tracer.start_as_current_span("permission.check") as span:
                span.set_attribute("permission.checker", checker.name)
                span.set_attribute("permission.object_type", request.object_type)
                span.set_attribute("permission.request_id", request_id)
                decision = await checker.check(request, cancel_event)
                span.set_attribute("permission.outcome", decision.outcome)
            duration = time.time() - start_time
            self._record(decision, duration)
            self._log_decision(request, decision)
        finally:
            if timer is not None:
                timer.cancel()
            clear_permission_context(context_tokens)

        return decision

    async def require(self, request: PermissionRequest,
                      cancel_event: Optional[asyncio.Event] = None,
                      timeout: Optional[float] = None,
                      request_id: Optional[str] = None) -> Decision:
        """Like ``check`` but raise the decision's error unless permitted."""
        decision = await self.check(request, cancel_event=cancel_event, timeout=timeout, request_id=request_id)
        decision.raise_for_error()
        return decision

    def _record(self, decision: Decision, duration: float) -> None:
        if self.metrics is None:
            return
        self.metrics.record_permission_check(decision.checker, decision.outcome, duration)
        if decision.engine_error:
            self.metrics.record_engine_error(decision.checker)
        if decision.error is not None:
            self.metrics.record_error(decision.error.code)

    def _log_decision(self, request: PermissionRequest, decision: Decision) -> None:
        fields = {
            "checker": decision.checker,
            "object_type": request.object_type,
            "object_idx": request.object_idx,
            "sub_resource": request.sub_resource,
            "outcome": decision.outcome,
            "evaluation_time_ms": decision.evaluation_time_ms,
        }
        if decision.allowed:
            self.logger.info("Permission granted", bypass=decision.bypass, **fields)
        else:
            self.logger.info("Permission refused", reason=decision.reason, **fields)

    async def start(self):
        """Start collaborators that hold connections."""
        if isinstance(self.lock_lookup, RedisDomainLockLookup):
            await self.lock_lookup.start()
        self.logger.info("Permission service started", registrations=self.registry.registered())

    async def stop(self):
        """Stop collaborators that hold connections."""
        if isinstance(self.lock_lookup, RedisDomainLockLookup):
            await self.lock_lookup.stop()
        self.logger.info("Permission service stopped")


def build_permission_service(
    config: Optional[PermissionsConfig] = None,
    policy_engine: Optional[PolicyEngine] = None,
    root_lookup: Optional[RootUserLookup] = None,
    lock_lookup: Optional[DomainLockLookup] = None,
    metrics: Optional[MetricsCollector] = None,
) -> PermissionService:
    """Wire a permission service from configuration.

    Without ``config`` the settings are read from the environment.
    Collaborators passed explicitly take precedence over the configured ones.
    """
    if config is None:
        config = get_config()

    configure_logging(config.service_name, config.log_level)

    if policy_engine is None:
        if config.casbin_model_path and config.casbin_policy_path:
            policy_engine = CasbinPolicyEngine.from_files(
                config.casbin_model_path, config.casbin_policy_path, offload=config.casbin_offload
            )
        else:
            policy_engine = CasbinPolicyEngine(offload=config.casbin_offload)

    if root_lookup is None:
        root_lookup = StaticRootUserLookup(config.root_user_ids)

    if lock_lookup is None:
        if config.domain_lock_backend == "redis":
            lock_lookup = RedisDomainLockLookup(
                config.redis_url,
                key_prefix=config.domain_lock_key_prefix,
                write_acts=config.write_acts
            )
        else:
            lock_lookup = InMemoryDomainLockLookup(write_acts=config.write_acts)

    registry = build_default_registry(
        Canonicalizer(config.permitted_object_types),
        PolicyEngineAdapter(policy_engine),
        root_lookup,
        lock_lookup,
        pod_terminal_domain_type=config.pod_terminal_domain_type,
        write_acts=config.write_acts,
    )
    return PermissionService(registry, metrics=metrics, lock_lookup=lock_lookup)
