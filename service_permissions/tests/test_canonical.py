"""
Unit tests for the Canonicalizer.
"""

import pytest

from service_permissions.app.canonical import Canonicalizer, join_acts, join_policy_parts
from service_permissions.app.models import PermissionRequest, CanonicalTuple
from shared.errors import ValidationError


class TestCanonicalizer:
    """Test cases for Canonicalizer."""

    @pytest.fixture
    def canonicalizer(self):
        """Create Canonicalizer with the default object types."""
        return Canonicalizer()

    @pytest.fixture
    def table_request(self):
        """Create a table read request."""
        return PermissionRequest(
            user_id=7,
            object_type="table",
            object_idx="T1",
            sub_resource="read",
            acts=["select"],
        )

    def test_canonicalize_table_request(self, canonicalizer, table_request):
        """Test tuple assembly for a request without domain."""
        result = canonicalizer.canonicalize(table_request)

        assert result == CanonicalTuple(
            subject="user:7",
            object="table:T1:sub:read",
            action="select",
            domain="*",
        )

    def test_canonicalize_joins_acts(self, canonicalizer):
        """Test multiple acts are joined with the action separator."""
        request = PermissionRequest(
            user_id=3, object_type="app", object_idx="12",
            sub_resource="config", acts=["view", "edit"],
        )

        assert canonicalizer.canonicalize(request).action == "view|edit"

    def test_canonicalize_empty_acts_is_wildcard(self, canonicalizer):
        """Test empty acts render as the wildcard action."""
        request = PermissionRequest(user_id=3, object_type="app", object_idx="12", sub_resource="config")

        assert canonicalizer.canonicalize(request).action == "*"

    def test_canonicalize_with_domain(self, canonicalizer):
        """Test a complete domain pair is joined."""
        request = PermissionRequest(
            user_id=3, object_type="app", object_idx="12", sub_resource="pod",
            acts=["view"], domain_type="env", domain_id="prod",
        )

        assert canonicalizer.canonicalize(request).domain == "env:prod"

    @pytest.mark.parametrize("domain_type,domain_id", [
        ("env", None),
        (None, "prod"),
        ("", "prod"),
        ("env", ""),
    ])
    def test_canonicalize_partial_domain_is_wildcard(self, canonicalizer, domain_type, domain_id):
        """Test a partial domain falls back to the wildcard domain."""
        request = PermissionRequest(
            user_id=3, object_type="app", object_idx="12", sub_resource="pod",
            domain_type=domain_type, domain_id=domain_id,
        )

        assert canonicalizer.canonicalize(request).domain == "*"

    def test_canonicalize_is_deterministic(self, canonicalizer):
        """Test structurally equal requests give identical tuples."""
        first = PermissionRequest(
            user_id=9, object_type="database", object_idx="logs", sub_resource="query",
            acts=["view"], domain_type="env", domain_id="dev",
        )
        second = PermissionRequest(**first.model_dump())

        assert first == second
        assert canonicalizer.canonicalize(first) == canonicalizer.canonicalize(second)

    @pytest.mark.parametrize("user_id", [0, -1, -100])
    def test_non_positive_user_id_is_invalid(self, canonicalizer, user_id):
        """Test anonymous user ids fail validation."""
        request = PermissionRequest(user_id=user_id, object_type="table", object_idx="T1", sub_resource="read")

        with pytest.raises(ValidationError):
            canonicalizer.canonicalize(request)

    @pytest.mark.parametrize("field", ["object_type", "object_idx", "sub_resource"])
    def test_empty_required_field_is_invalid(self, canonicalizer, table_request, field):
        """Test empty object fields fail validation."""
        request = table_request.model_copy(update={field: ""})

        with pytest.raises(ValidationError) as exc_info:
            canonicalizer.canonicalize(request)

        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_unknown_object_type_is_invalid(self, canonicalizer, table_request):
        """Test object types outside the permitted set are rejected."""
        request = table_request.model_copy(update={"object_type": "bucket"})

        with pytest.raises(ValidationError) as exc_info:
            canonicalizer.canonicalize(request)

        assert "bucket" in exc_info.value.message

    def test_custom_permitted_object_types(self, table_request):
        """Test the permitted object types come from the constructor."""
        canonicalizer = Canonicalizer(["bucket"])

        with pytest.raises(ValidationError):
            canonicalizer.canonicalize(table_request)

        request = table_request.model_copy(update={"object_type": "bucket"})
        assert canonicalizer.canonicalize(request).object == "bucket:T1:sub:read"

    @pytest.mark.parametrize("update", [
        {"object_idx": "T1:sub:admin"},
        {"object_idx": "*"},
        {"sub_resource": "read|write"},
        {"acts": ("select|drop",)},
        {"acts": ("*",)},
        {"domain_type": "env:x", "domain_id": "prod"},
        {"domain_type": "env", "domain_id": "*"},
    ])
    def test_reserved_characters_are_rejected(self, canonicalizer, table_request, update):
        """Test inputs that could collide with another tuple are rejected."""
        request = table_request.model_copy(update=update)

        with pytest.raises(ValidationError):
            canonicalizer.canonicalize(request)

    def test_empty_act_is_rejected(self, canonicalizer, table_request):
        """Test empty action names are rejected."""
        request = table_request.model_copy(update={"acts": ("select", "")})

        with pytest.raises(ValidationError):
            canonicalizer.canonicalize(request)


def test_join_policy_parts():
    """Test joining policy parts."""
    assert join_policy_parts("env", "prod") == "env:prod"
    assert join_policy_parts("env", "") is None
    assert join_policy_parts() is None


def test_join_acts():
    """Test joining acts."""
    assert join_acts(["view"]) == "view"
    assert join_acts([]) == "*"
