import re
from dataclasses import dataclass, field
from typing import Any, Mapping

import jwt

from ..config import Settings

USER_ID_CLAIM = "userid"
SUBJECT_CLAIM = "sub"

# users.id is a 32-bit INTEGER column.
USER_ID_MIN = -(2**31)
USER_ID_MAX = 2**31 - 1
_USER_ID_PATTERN = re.compile(r"[+-]?[0-9]+")


class InvalidTokenError(Exception):
    """Raised when a token cannot be parsed or is malformed."""


class ExpiredTokenError(Exception):
    """Raised when a token has expired."""


@dataclass(frozen=True)
class Identity:
    """Who the caller is, as far as the bearer token says."""

    authenticated: bool = False
    claims: Mapping[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> int | None:
        return extract_user_id(self.claims)


ANONYMOUS = Identity()


def _parse_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _USER_ID_PATTERN.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        return None
    if not USER_ID_MIN <= number <= USER_ID_MAX:
        return None
    return number


def extract_user_id(claims: Mapping[str, Any]) -> int | None:
    """Numeric user id from ``userid``, falling back to ``sub``.

    The fallback only applies when ``userid`` is absent; a present but
    unparsable ``userid`` yields ``None``.
    """
    if USER_ID_CLAIM in claims:
        return _parse_int(claims[USER_ID_CLAIM])
    if SUBJECT_CLAIM in claims:
        return _parse_int(claims[SUBJECT_CLAIM])
    return None


def validate_access_token(token: str, settings: Settings) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredTokenError from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError from exc


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


def resolve_identity(authorization: str | None, settings: Settings) -> Identity:
    """Turn an ``Authorization`` header into an identity.

    Missing, expired or invalid tokens give the anonymous identity; whether
    that is acceptable is decided by the authorization policy.
    """
    token = bearer_token(authorization)
    if token is None:
        return ANONYMOUS
    try:
        claims = validate_access_token(token, settings)
    except (ExpiredTokenError, InvalidTokenError):
        return ANONYMOUS
    return Identity(authenticated=True, claims=claims)
