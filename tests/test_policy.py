"""
Tests for the route policy table and the request authorizer
"""

from datetime import timedelta

import pytest

from app.auth.authorizer import RequestAuthorizer, extract_bearer_token
from app.auth.models import Role, User
from app.auth.policy import ROUTE_POLICY, RoutePolicyTable, RouteRule
from app.core.exceptions import (
    AccountDisabledError,
    ForbiddenError,
    MalformedTokenError,
    MissingTokenError,
    TokenExpiredError,
    UnauthorizedError,
)
from app.core.security import TokenService

SECRET = "policy-test-secret-key-0123456789abcdef"


class TestRouteRule:
    """Pattern matching."""

    def test_literal_match(self):
        rule = RouteRule("/api/leave/all", frozenset({"GET"}))
        assert rule.matches("GET", "/api/leave/all")
        assert rule.matches("get", "/api/leave/all/")
        assert not rule.matches("POST", "/api/leave/all")
        assert not rule.matches("GET", "/api/leave/all/extra")

    def test_placeholder_matches_one_segment(self):
        rule = RouteRule("/api/leave/{id}/approve")
        assert rule.matches("PUT", "/api/leave/123/approve")
        assert not rule.matches("PUT", "/api/leave/approve")
        assert not rule.matches("PUT", "/api/leave/1/2/approve")

    def test_wildcard_tail(self):
        rule = RouteRule("/api/admin/**")
        assert rule.matches("GET", "/api/admin")
        assert rule.matches("GET", "/api/admin/users")
        assert rule.matches("DELETE", "/api/admin/users/42")
        assert not rule.matches("GET", "/api/administrator")

    def test_wildcard_only_at_end(self):
        with pytest.raises(ValueError):
            RouteRule("/api/**/users")


class TestRoutePolicy:
    """Resolution against the application's rule table."""

    @pytest.mark.parametrize("method,path", [
        ("POST", "/api/auth/register"),
        ("POST", "/api/auth/login"),
        ("POST", "/api/auth/refresh"),
        ("GET", "/health"),
        ("GET", "/error"),
        ("GET", "/docs"),
        ("GET", "/openapi.json"),
    ])
    def test_public_routes(self, method, path):
        assert ROUTE_POLICY.resolve(method, path).public

    @pytest.mark.parametrize("method,path,allowed", [
        ("POST", "/api/leave/submit", None),
        ("GET", "/api/leave/my-requests", None),
        ("GET", "/api/leave/all", {Role.MANAGER, Role.ADMIN}),
        ("PUT", "/api/leave/abc/approve", {Role.MANAGER, Role.ADMIN}),
        ("PUT", "/api/leave/abc/reject", {Role.MANAGER, Role.ADMIN}),
        ("POST", "/api/complaints", None),
        ("GET", "/api/complaints/my", None),
        ("GET", "/api/complaints/all", {Role.MANAGER, Role.ADMIN}),
        ("GET", "/api/complaints/assigned", {Role.MANAGER, Role.ADMIN}),
        ("GET", "/api/complaints/unassigned", {Role.MANAGER, Role.ADMIN}),
        ("PUT", "/api/complaints/abc/assign/def", {Role.MANAGER, Role.ADMIN}),
        ("PUT", "/api/complaints/abc", None),
        ("DELETE", "/api/complaints/abc", {Role.ADMIN}),
        ("GET", "/api/admin/users", {Role.ADMIN}),
        ("PUT", "/api/admin/users/abc/role", {Role.ADMIN}),
    ])
    def test_protected_routes(self, method, path, allowed):
        rule = ROUTE_POLICY.resolve(method, path)
        assert not rule.public
        if allowed is None:
            assert rule.roles is None
        else:
            assert set(rule.roles) == allowed

    def test_me_is_not_public(self):
        """The auth namespace is public except for the identity lookup."""
        assert not ROUTE_POLICY.resolve("GET", "/api/auth/me").public

    def test_unknown_route_requires_authentication(self):
        rule = ROUTE_POLICY.resolve("GET", "/api/unknown")
        assert not rule.public
        assert rule.roles is None

    def test_most_specific_rule_wins_regardless_of_order(self):
        table = RoutePolicyTable([
            RouteRule("/api/**", public=True),
            RouteRule("/api/{x}/secret", roles=frozenset({Role.ADMIN})),
            RouteRule("/api/reports/secret", frozenset({"GET"}), roles=frozenset({Role.MANAGER})),
        ])
        assert table.resolve("GET", "/api/reports/secret").roles == frozenset({Role.MANAGER})
        assert table.resolve("POST", "/api/reports/secret").roles == frozenset({Role.ADMIN})
        assert table.resolve("GET", "/api/reports/open").public


class TestExtractBearerToken:
    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"
        assert extract_bearer_token("bearer abc") == "abc"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer ", "Basic abc", "abc"])
    def test_invalid_header(self, header):
        assert extract_bearer_token(header) is None


class TestRequestAuthorizer:
    """Decisions made without a database: users come from a dict."""

    def setup_method(self):
        self.tokens = TokenService(SECRET, ttl=timedelta(hours=1))
        self.users = {
            "emp@x.com": User(email="emp@x.com", role=Role.EMPLOYEE, is_active=True),
            "mgr@x.com": User(email="mgr@x.com", role=Role.MANAGER, is_active=True),
            "admin@x.com": User(email="admin@x.com", role=Role.ADMIN, is_active=True),
            "gone@x.com": User(email="gone@x.com", role=Role.ADMIN, is_active=False),
        }
        self.authorizer = RequestAuthorizer(self.users.get, tokens=self.tokens)

    def bearer(self, email: str, role: str = None) -> str:
        role = role or self.users[email].role.value
        return f"Bearer {self.tokens.issue(email, role)}"

    def test_public_route_needs_no_token(self):
        assert self.authorizer.authorize("POST", "/api/auth/login", None) is None

    def test_public_route_ignores_bad_token(self):
        assert self.authorizer.authorize("POST", "/api/auth/login", "Bearer junk") is None

    def test_missing_token(self):
        with pytest.raises(MissingTokenError):
            self.authorizer.authorize("GET", "/api/leave/my-requests", None)

    def test_malformed_token(self):
        with pytest.raises(MalformedTokenError):
            self.authorizer.authorize("GET", "/api/leave/my-requests", "Bearer junk")

    def test_expired_token(self):
        expired = TokenService(SECRET, ttl=timedelta(seconds=-10))
        header = f"Bearer {expired.issue('emp@x.com', 'EMPLOYEE')}"
        with pytest.raises(TokenExpiredError):
            self.authorizer.authorize("GET", "/api/leave/my-requests", header)

    def test_unknown_subject(self):
        header = f"Bearer {self.tokens.issue('ghost@x.com', 'ADMIN')}"
        with pytest.raises(UnauthorizedError):
            self.authorizer.authorize("GET", "/api/leave/my-requests", header)

    def test_disabled_account(self):
        with pytest.raises(AccountDisabledError):
            self.authorizer.authorize("GET", "/api/admin/users", self.bearer("gone@x.com"))

    @pytest.mark.parametrize("email", ["emp@x.com", "mgr@x.com"])
    def test_admin_namespace_forbidden_for_non_admins(self, email):
        with pytest.raises(ForbiddenError):
            self.authorizer.authorize("GET", "/api/admin/users", self.bearer(email))

    def test_admin_namespace_allowed_for_admin(self):
        principal = self.authorizer.authorize("GET", "/api/admin/users", self.bearer("admin@x.com"))
        assert principal.subject == "admin@x.com"
        assert principal.role == Role.ADMIN

    def test_stored_role_overrides_token_role(self):
        """A token minted before a demotion does not keep the old role."""
        header = self.bearer("emp@x.com", role="ADMIN")
        with pytest.raises(ForbiddenError):
            self.authorizer.authorize("GET", "/api/admin/users", header)

    def test_manager_can_decide_leave(self):
        principal = self.authorizer.authorize("PUT", "/api/leave/abc/approve", self.bearer("mgr@x.com"))
        assert principal.role == Role.MANAGER

    def test_employee_cannot_decide_leave(self):
        with pytest.raises(ForbiddenError):
            self.authorizer.authorize("PUT", "/api/leave/abc/approve", self.bearer("emp@x.com"))
