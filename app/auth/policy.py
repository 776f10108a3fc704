"""
Static route policy: which roles may call which (method, path).

Rules are matched most-specific-first. A path that matches no rule still
requires an authenticated caller; nothing is public unless listed here.

Pattern syntax:
    /api/leave/all          literal segments
    /api/leave/{id}/approve ``{name}`` matches exactly one segment
    /api/admin/**           trailing ``**`` matches zero or more segments
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Tuple

from app.auth.models import Role, STAFF_ROLES

ANY_METHOD = None

MANAGER_OR_ADMIN = STAFF_ROLES
ADMIN_ONLY = frozenset({Role.ADMIN})


def _split(path: str) -> List[str]:
    return [segment for segment in path.strip("/").split("/") if segment]


@dataclass(frozen=True)
class RouteRule:
    pattern: str
    methods: Optional[FrozenSet[str]] = ANY_METHOD
    roles: Optional[FrozenSet[Role]] = None  # None: any authenticated identity
    public: bool = False
    segments: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        segments = tuple(_split(self.pattern))
        if "**" in segments[:-1]:
            raise ValueError(f"'**' is only allowed at the end of a pattern: {self.pattern}")
        object.__setattr__(self, "segments", segments)

    @property
    def has_wildcard_tail(self) -> bool:
        return bool(self.segments) and self.segments[-1] == "**"

    @property
    def specificity(self) -> Tuple[int, int, int, int]:
        fixed = [s for s in self.segments if s != "**"]
        literals = [s for s in fixed if not (s.startswith("{") and s.endswith("}"))]
        return (
            len(literals),
            len(fixed),
            0 if self.has_wildcard_tail else 1,
            1 if self.methods is not ANY_METHOD else 0,
        )

    def matches(self, method: str, path: str) -> bool:
        if self.methods is not ANY_METHOD and method.upper() not in self.methods:
            return False

        parts = _split(path)
        pattern = self.segments
        if self.has_wildcard_tail:
            pattern = pattern[:-1]
            if len(parts) < len(pattern):
                return False
            parts = parts[:len(pattern)]
        elif len(parts) != len(pattern):
            return False

        for expected, actual in zip(pattern, parts):
            if expected.startswith("{") and expected.endswith("}"):
                continue
            if expected != actual:
                return False
        return True

    def allows(self, role: Role) -> bool:
        return self.roles is None or role in self.roles


DEFAULT_RULE = RouteRule("/**")


class RoutePolicyTable:
    """Ordered, immutable list of route rules."""

    def __init__(self, rules: Iterable[RouteRule], default: RouteRule = DEFAULT_RULE):
        # stable sort keeps declaration order between equally specific rules
        self._rules = tuple(sorted(rules, key=lambda rule: rule.specificity, reverse=True))
        self.default = default

    @property
    def rules(self) -> Tuple[RouteRule, ...]:
        return self._rules

    def resolve(self, method: str, path: str) -> RouteRule:
        for rule in self._rules:
            if rule.matches(method, path):
                return rule
        return self.default


def _methods(*names: str) -> FrozenSet[str]:
    return frozenset(names)


GET = _methods("GET", "HEAD")
POST = _methods("POST")
PUT = _methods("PUT")
DELETE = _methods("DELETE")


ROUTE_RULES = [
    # Public
    RouteRule("/api/auth/**", public=True),
    RouteRule("/error", public=True),
    RouteRule("/health", GET, public=True),
    RouteRule("/", GET, public=True),
    RouteRule("/docs/**", GET, public=True),
    RouteRule("/redoc", GET, public=True),
    RouteRule("/openapi.json", GET, public=True),

    # Identity of the caller
    RouteRule("/api/auth/me", GET),

    # Leave management
    RouteRule("/api/leave/submit", POST),
    RouteRule("/api/leave/my-requests", GET),
    RouteRule("/api/leave/all", GET, MANAGER_OR_ADMIN),
    RouteRule("/api/leave/{id}/approve", PUT, MANAGER_OR_ADMIN),
    RouteRule("/api/leave/{id}/reject", PUT, MANAGER_OR_ADMIN),

    # Complaint management
    RouteRule("/api/complaints", POST),
    RouteRule("/api/complaints/my", GET),
    RouteRule("/api/complaints/all", GET, MANAGER_OR_ADMIN),
    RouteRule("/api/complaints/assigned", GET, MANAGER_OR_ADMIN),
    RouteRule("/api/complaints/unassigned", GET, MANAGER_OR_ADMIN),
    RouteRule("/api/complaints/{id}/assign/**", PUT, MANAGER_OR_ADMIN),
    RouteRule("/api/complaints/{id}", PUT),
    RouteRule("/api/complaints/{id}", DELETE, ADMIN_ONLY),

    # Admin panel
    RouteRule("/api/admin/**", roles=ADMIN_ONLY),
]

ROUTE_POLICY = RoutePolicyTable(ROUTE_RULES)
