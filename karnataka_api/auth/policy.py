"""Per-route authorization policy table."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

PUBLIC = "public"
AUTHENTICATED = "authenticated"

SAFE_METHODS = frozenset({"GET", "HEAD"})

DEFAULT_ROUTE_POLICY: dict[str, str] = {
    "GET /health": PUBLIC,
    "POST /Signup": PUBLIC,
    "POST /Login": PUBLIC,
    "POST /RefreshToken": PUBLIC,
    "POST /Logout": PUBLIC,
    "GET /checkUserExist": PUBLIC,
    "GET /me": AUTHENTICATED,
    "GET /places": PUBLIC,
    "GET /places/{place_id}": PUBLIC,
    "POST /Createplaces": "Admin",
    "PUT /places/{place_id}": "Admin",
    "DELETE /places/{place_id}": "Admin",
    "POST /Feedback": PUBLIC,
    "GET /Feedback": "Admin",
    "DELETE /Feedback/{feedback_id}": "Admin",
    "POST /bookings": AUTHENTICATED,
    "GET /bookings": "Admin",
    "DELETE /bookings/{booking_id}": "Admin",
}

_PARAM_RE = re.compile(r"\{[^/{}]+\}")


def _compile_template(template: str) -> re.Pattern[str]:
    parts = _PARAM_RE.split(template)
    pattern = "[^/]+".join(re.escape(part) for part in parts)
    return re.compile(f"^{pattern}/?$", re.IGNORECASE)


@dataclass(frozen=True)
class RouteRule:
    """Access requirement for one ``METHOD /path/{param}`` entry."""

    method: str
    template: str
    access: str
    pattern: re.Pattern[str] = field(compare=False)

    @classmethod
    def parse(cls, key: str, access: str) -> "RouteRule":
        try:
            method, template = key.strip().split(" ", 1)
        except ValueError as exc:
            raise ValueError(f"Route policy key must be 'METHOD /path': {key!r}") from exc
        template = template.strip()
        if not template.startswith("/"):
            raise ValueError(f"Route policy path must start with '/': {key!r}")
        access = access.strip()
        if not access:
            raise ValueError(f"Route policy access must be non-empty: {key!r}")
        return cls(
            method=method.upper(),
            template=template,
            access=access,
            pattern=_compile_template(template),
        )

    def matches(self, method: str, path: str) -> bool:
        return self.method == method.upper() and bool(self.pattern.match(path))

    @property
    def shape(self) -> str:
        """Template with parameter names erased, for comparing entries."""
        return _PARAM_RE.sub("{}", self.template).lower()


class RoutePolicy:
    """Resolve which access level a request needs.

    Access is ``public``, ``authenticated`` or the name of the role the
    caller must hold. CORS preflights are public. Unlisted ``GET`` and
    ``HEAD`` routes are public; any other unlisted method needs a valid token.
    """

    def __init__(self, table: dict[str, str]) -> None:
        self._rules = [RouteRule.parse(key, access) for key, access in table.items()]
        # Literal segments win over parameters (``/places/new`` before ``/places/{id}``).
        self._rules.sort(key=lambda rule: rule.template.count("{"))

    @classmethod
    def with_overrides(cls, overrides: dict[str, str] | None = None) -> "RoutePolicy":
        merged: dict[tuple[str, str], tuple[str, str]] = {}
        for key, access in [*DEFAULT_ROUTE_POLICY.items(), *(overrides or {}).items()]:
            rule = RouteRule.parse(key, access)
            merged[(rule.method, rule.shape)] = (
                f"{rule.method} {rule.template}",
                rule.access,
            )
        return cls(dict(merged.values()))

    @property
    def rules(self) -> list[RouteRule]:
        return list(self._rules)

    def _rule_for(self, method: str, path: str) -> RouteRule | None:
        for rule in self._rules:
            if rule.matches(method, path):
                return rule
        return None

    def access_for(self, method: str, path: str) -> str:
        method = method.upper()
        if method == "OPTIONS":
            return PUBLIC
        # HEAD shares the GET entry.
        rule = self._rule_for("GET" if method == "HEAD" else method, path)
        if rule is not None:
            return rule.access
        return PUBLIC if method in SAFE_METHODS else AUTHENTICATED

    def required_role(self, method: str, path: str) -> str | None:
        """Return the role a caller must hold, ``None`` when any valid token will do."""
        access = self.access_for(method, path)
        if access in {PUBLIC, AUTHENTICATED}:
            return None
        return access

    def is_public(self, method: str, path: str) -> bool:
        return self.access_for(method, path) == PUBLIC

    def unlisted(self, routes: Iterable[tuple[str, str]]) -> list[str]:
        """Return ``METHOD /path`` for each served route with no table entry."""
        listed = {(rule.method, rule.shape) for rule in self._rules}
        return [
            f"{method.upper()} {path}"
            for method, path in routes
            if method.upper() not in {"HEAD", "OPTIONS"}
            and (method.upper(), _PARAM_RE.sub("{}", path).lower()) not in listed
        ]
