"""
Tests for decision models, error responses and log correlation.
"""

import pytest

from service_permissions.app.models import PermissionRequest, Decision, Bypass
from shared.errors import (
    ErrorResponse, PermissionDeniedError, DomainLockedError, EngineError, CanceledError
)
from shared.logging import (
    add_correlation_context, set_permission_context, clear_permission_context
)


class TestDecision:
    """Test cases for Decision."""

    def test_allowed_outcome(self):
        """Test allowed decisions raise nothing."""
        decision = Decision(allowed=True, checker="default", bypass=Bypass.ROOT)

        decision.raise_for_error()
        assert decision.outcome == "allowed"

    def test_error_outcome(self):
        """Test the outcome label follows the error code."""
        decision = Decision(allowed=False, checker="default", error=DomainLockedError())

        assert decision.outcome == "domain_locked"
        with pytest.raises(DomainLockedError):
            decision.raise_for_error()

    def test_bare_denial(self):
        """Test a denial without error object."""
        assert Decision(allowed=False, checker="default").outcome == "denied"


class TestPermissionRequest:
    """Test cases for PermissionRequest."""

    def test_acts_are_normalized_to_tuple(self):
        """Test list acts become an immutable tuple."""
        request = PermissionRequest(user_id=1, object_type="app", object_idx="1", sub_resource="x", acts=["view"])

        assert request.acts == ("view",)
        assert hash(request) == hash(request.model_copy())

    def test_frozen(self):
        """Test requests cannot be mutated."""
        request = PermissionRequest(user_id=1, object_type="app", object_idx="1", sub_resource="x")

        with pytest.raises(Exception):
            request.user_id = 2

    @pytest.mark.parametrize("domain_type,domain_id,expected", [
        ("env", "prod", True),
        ("env", None, False),
        (None, None, False),
        ("", "prod", False),
    ])
    def test_has_domain(self, domain_type, domain_id, expected):
        """Test domain presence requires both parts."""
        request = PermissionRequest(
            user_id=1, object_type="app", object_idx="1", sub_resource="x",
            domain_type=domain_type, domain_id=domain_id,
        )

        assert request.has_domain is expected


class TestErrors:
    """Test cases for the error taxonomy."""

    def test_to_response(self):
        """Test errors convert to the standard response."""
        error = PermissionDeniedError(details={"object": "table:T1:sub:read"})

        response = error.to_response()

        assert isinstance(response, ErrorResponse)
        assert response.code == "PERMISSION_DENIED"
        assert response.message == "No permission"
        assert response.details == {"object": "table:T1:sub:read"}
        assert response.trace_id is None

    def test_engine_error_fatal_flag(self):
        """Test engine errors carry their fatal flag."""
        assert EngineError().fatal is False
        assert EngineError("down", fatal=True).fatal is True

    def test_canceled_code(self):
        """Test cancellation code."""
        assert CanceledError().code == "CANCELED"


class TestCorrelationContext:
    """Test cases for log correlation context."""

    def test_context_added_to_events(self):
        """Test request id, subject and domain are attached to log events."""
        tokens = set_permission_context(user_id="7", domain="env:prod", request_id="req-1")
        try:
            event = add_correlation_context(None, "info", {"event": "Permission granted"})
        finally:
            clear_permission_context(tokens)

        assert event["request_id"] == "req-1"
        assert event["user_id"] == "7"
        assert event["domain"] == "env:prod"

    def test_cleared_context(self):
        """Test cleared permission context is not attached."""
        clear_permission_context(set_permission_context(user_id="7", domain="env:prod", request_id="req-1"))

        event = add_correlation_context(None, "info", {"event": "x"})

        assert "request_id" not in event
        assert "user_id" not in event
        assert "domain" not in event

    def test_clear_restores_outer_context(self):
        """Test a nested check restores the caller's subject and domain."""
        outer = set_permission_context(user_id="1", domain="env:dev", request_id="req-outer")
        try:
            inner = set_permission_context(user_id="7")
            inner_event = add_correlation_context(None, "info", {"event": "inner"})
            clear_permission_context(inner)

            event = add_correlation_context(None, "info", {"event": "outer"})
        finally:
            clear_permission_context(outer)

        assert inner_event["user_id"] == "7"
        assert "domain" not in inner_event
        assert inner_event["request_id"] == "req-outer"
        assert event["user_id"] == "1"
        assert event["domain"] == "env:dev"
        assert event["request_id"] == "req-outer"
