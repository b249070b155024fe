"""
Request-time authorization decisions.

For each request the engine walks a fixed sequence and stops at the first
terminal outcome:

    kill-switch off        -> ALLOW
    public prefix          -> ALLOW
    anonymous caller       -> DENY 401 or ALLOW (default_require_authentication)
    no matching prefix     -> ALLOW
    no rule for the method -> ALLOW
    unparsable permission  -> ALLOW, with a configuration warning
    no numeric user id     -> DENY 401
    store says no / fails  -> DENY 403
    store says yes         -> ALLOW

Missing policy is "not enforced"; a broken store is "not permitted". The
engine holds no mutable state and performs a single store query at most.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from ..domain.ports.permission_store import PermissionStore
from ..domain.result import Success
from ..errors import AccessDeniedError, AuthenticationRequiredError, MissingIdentityError
from ..security.token_inspection import extract_user_id
from .endpoint_policy import AuthorizationPolicy
from .page_mapper import map_to_page
from .permissions import Permission, parse_permission, parse_permission_code

logger = logging.getLogger("temple_api.authorization")


class Outcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class Reason(str, Enum):
    DISABLED = "disabled"
    PUBLIC_ENDPOINT = "public_endpoint"
    ANONYMOUS_ALLOWED = "anonymous_allowed"
    AUTHENTICATION_REQUIRED = "authentication_required"
    NO_POLICY = "no_policy"
    NO_METHOD_RULE = "no_method_rule"
    INVALID_PERMISSION = "invalid_permission"
    MISSING_USER_ID = "missing_user_id"
    GRANTED = "granted"
    NOT_GRANTED = "not_granted"
    STORE_FAILURE = "store_failure"


@dataclass(frozen=True)
class AccessRequest:
    method: str
    path: str
    authenticated: bool = False
    claims: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class AuthorizationDecision:
    outcome: Outcome
    reason: Reason
    path: str
    status_code: int | None = None
    message: str | None = None
    user_id: int | None = None
    permission: Permission | int | None = None
    endpoint: str | None = None
    page_url: str | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOW

    @classmethod
    def allow(cls, reason: Reason, path: str, **details: Any) -> "AuthorizationDecision":
        return cls(outcome=Outcome.ALLOW, reason=reason, path=path, **details)

    @classmethod
    def deny(
        cls, reason: Reason, path: str, status_code: int, message: str, **details: Any
    ) -> "AuthorizationDecision":
        return cls(
            outcome=Outcome.DENY,
            reason=reason,
            path=path,
            status_code=status_code,
            message=message,
            **details,
        )


class AuthorizationEngine:
    def __init__(self, policy: AuthorizationPolicy, store: PermissionStore):
        self.policy = policy
        self.store = store

    async def authorize(self, request: AccessRequest) -> AuthorizationDecision:
        policy = self.policy
        if not policy.enabled:
            return AuthorizationDecision.allow(Reason.DISABLED, request.path)

        path = request.path.lower()
        method = request.method.upper()

        if policy.is_public(path):
            return AuthorizationDecision.allow(Reason.PUBLIC_ENDPOINT, path)

        if not request.authenticated:
            if policy.default_require_authentication:
                error = AuthenticationRequiredError()
                return AuthorizationDecision.deny(
                    Reason.AUTHENTICATION_REQUIRED, path, error.status_code, error.message
                )
            return AuthorizationDecision.allow(Reason.ANONYMOUS_ALLOWED, path)

        endpoint = policy.endpoints.lookup(path)
        if endpoint is None:
            return AuthorizationDecision.allow(Reason.NO_POLICY, path)

        configured = policy.endpoints.required_permission(endpoint, method)
        if configured is None:
            return AuthorizationDecision.allow(Reason.NO_METHOD_RULE, path, endpoint=endpoint)

        code = parse_permission_code(configured)
        if code is None:
            logger.warning(
                "Invalid permission configured: %s",
                configured,
                extra={"endpoint": endpoint, "method": method, "path": path},
            )
            return AuthorizationDecision.allow(
                Reason.INVALID_PERMISSION, path, endpoint=endpoint
            )

        # Codes outside the catalog still go to the store and are denied there.
        permission: Permission | int = parse_permission(code) or code

        user_id = extract_user_id(request.claims or {})
        if user_id is None:
            error = MissingIdentityError()
            return AuthorizationDecision.deny(
                Reason.MISSING_USER_ID,
                path,
                error.status_code,
                error.message,
                permission=permission,
                endpoint=endpoint,
            )

        page_url = map_to_page(endpoint)
        details = {
            "user_id": user_id,
            "permission": permission,
            "endpoint": endpoint,
            "page_url": page_url,
        }

        result = await self.store.has_active_permission(user_id, page_url, int(permission))
        match result:
            case Success(value=True):
                logger.info(
                    "User %s granted %s access to %s",
                    user_id,
                    permission,
                    path,
                    extra=_audit_extra(details, path, Reason.GRANTED),
                )
                return AuthorizationDecision.allow(Reason.GRANTED, path, **details)
            case Success():
                reason = Reason.NOT_GRANTED
            case _:
                reason = Reason.STORE_FAILURE

        denied = AccessDeniedError(str(permission), page_url)
        logger.warning(
            "User %s denied %s access to %s",
            user_id,
            permission,
            path,
            extra=_audit_extra(details, path, reason),
        )
        return AuthorizationDecision.deny(
            reason, path, denied.status_code, denied.message, **details
        )


def _audit_extra(details: Mapping[str, Any], path: str, reason: Reason) -> dict[str, Any]:
    return {
        "user_id": details["user_id"],
        "permission": str(details["permission"]),
        "page_url": details["page_url"],
        "path": path,
        "reason": reason.value,
    }
