"""
Endpoint policy table - which permission an API path prefix requires per method.

Prefixes are compared lower-case and matched longest-prefix-wins, so
``/api/events/expenses`` governs ``/api/events/expenses/5`` even when
``/api/events`` is configured too.

Paths with no configured prefix, and methods with no configured permission,
are not under permission governance and are let through. That fail-open
default is intentional and mirrored by the client-side route guards; do not
harden it without changing both sides.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from .permissions import parse_permission

if TYPE_CHECKING:
    from ..config import AuthorizationSettings

logger = logging.getLogger("temple_api.authorization")

HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})


def normalize_prefix(prefix: str) -> str:
    return prefix.strip().lower()


class EndpointPolicyTable:
    """Prefix -> {METHOD: configured permission} with longest-prefix lookup.

    Built during startup with ``configure`` and sealed with ``freeze``; the
    sealed table is shared read-only by every request.
    """

    def __init__(self) -> None:
        self._policies: dict[str, Mapping[str, str]] = {}
        self._frozen = False

    def configure(self, prefix: str, method_permissions: Mapping[str, str]) -> None:
        if self._frozen:
            raise RuntimeError("Endpoint policy table is frozen")

        key = normalize_prefix(prefix)
        if key in self._policies:
            # Two prefixes normalizing to the same key would tie on length;
            # the first registration wins.
            logger.warning(
                "Duplicate endpoint policy for %s ignored (first registration wins)",
                prefix,
            )
            return

        methods = {
            method.strip().upper(): permission
            for method, permission in method_permissions.items()
        }
        self._policies[key] = MappingProxyType(methods)

    def freeze(self) -> "EndpointPolicyTable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def lookup(self, path: str) -> str | None:
        normalized = path.lower()
        best: str | None = None
        for prefix in self._policies:
            if normalized.startswith(prefix) and (best is None or len(prefix) > len(best)):
                best = prefix
        return best

    def required_permission(self, prefix: str, method: str) -> str | None:
        methods = self._policies.get(prefix)
        if methods is None:
            return None
        return methods.get(method.upper())

    def items(self) -> Iterable[tuple[str, Mapping[str, str]]]:
        return self._policies.items()

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._policies

    def __len__(self) -> int:
        return len(self._policies)


@dataclass(frozen=True)
class AuthorizationPolicy:
    """Everything the decision engine needs, fixed for the life of the process."""

    enabled: bool = True
    default_require_authentication: bool = True
    public_endpoints: tuple[str, ...] = ()
    endpoints: EndpointPolicyTable = field(
        default_factory=lambda: EndpointPolicyTable().freeze()
    )

    @classmethod
    def build(
        cls,
        *,
        enabled: bool = True,
        default_require_authentication: bool = True,
        public_endpoints: Iterable[str] = (),
        endpoint_permissions: Mapping[str, Mapping[str, str]] | None = None,
    ) -> "AuthorizationPolicy":
        table = EndpointPolicyTable()
        for prefix, method_permissions in (endpoint_permissions or {}).items():
            table.configure(prefix, method_permissions)
        return cls(
            enabled=enabled,
            default_require_authentication=default_require_authentication,
            public_endpoints=tuple(
                normalize_prefix(prefix) for prefix in public_endpoints if prefix.strip()
            ),
            endpoints=table.freeze(),
        )

    @classmethod
    def from_settings(cls, settings: "AuthorizationSettings") -> "AuthorizationPolicy":
        return cls.build(
            enabled=settings.enable_permission_based_auth,
            default_require_authentication=settings.default_require_authentication,
            public_endpoints=settings.public_endpoints,
            endpoint_permissions=settings.endpoint_permissions,
        )

    def is_public(self, path: str) -> bool:
        normalized = path.lower()
        return any(normalized.startswith(prefix) for prefix in self.public_endpoints)

    def validate(self) -> list[str]:
        """Collect configuration problems without rejecting the configuration.

        Unparsable permissions stay fail-open at request time and codes outside
        the catalog are denied by the store; this only surfaces both at startup
        instead of on the first matching request.
        """
        problems: list[str] = []
        for prefix in self.public_endpoints:
            if not prefix.startswith("/"):
                problems.append(f"Public endpoint {prefix!r} does not start with '/'")
        for prefix, methods in self.endpoints.items():
            if not prefix.startswith("/"):
                problems.append(f"Endpoint {prefix!r} does not start with '/'")
            for method, permission in methods.items():
                if method not in HTTP_METHODS:
                    problems.append(f"Endpoint {prefix!r} uses unsupported method {method!r}")
                if parse_permission(permission) is None:
                    problems.append(
                        f"Endpoint {prefix!r} {method} has unknown permission {permission!r}"
                    )
        return problems

    def log_problems(self) -> list[str]:
        problems = self.validate()
        for problem in problems:
            logger.warning("Authorization configuration: %s", problem)
        return problems
