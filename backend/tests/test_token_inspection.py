from datetime import datetime, timedelta, timezone

import jwt
import pytest

from temple_api.config import Settings
from temple_api.security.token_inspection import (
    ANONYMOUS,
    ExpiredTokenError,
    InvalidTokenError,
    bearer_token,
    extract_user_id,
    resolve_identity,
    validate_access_token,
)

SETTINGS = Settings(secret_key="token-secret", allowed_origins=["http://localhost:3000"])


def encode(claims: dict) -> str:
    return jwt.encode(claims, "token-secret", algorithm="HS256")


@pytest.mark.parametrize(
    ("claims", "expected"),
    [
        ({"userid": 7}, 7),
        ({"userid": " 12 "}, 12),
        ({"sub": "5"}, 5),
        ({"userid": 3, "sub": "5"}, 3),
        ({"userid": "abc", "sub": "5"}, None),
        ({"userid": True}, None),
        ({"userid": 1.5}, None),
        ({}, None),
        ({"userid": "7_0"}, None),
        ({"userid": "\u0663"}, None),
        ({"userid": "99999999999"}, None),
        ({"userid": 2**31}, None),
        ({"userid": "2147483647"}, 2147483647),
        ({"userid": "-5"}, -5),
    ],
)
def test_extract_user_id(claims, expected) -> None:
    assert extract_user_id(claims) == expected


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Bearer abc", "abc"),
        ("bearer  abc ", "abc"),
        ("Bearer ", None),
        ("Token abc", None),
    ],
)
def test_bearer_token(header, expected) -> None:
    assert bearer_token(header) == expected


def test_validate_access_token_errors() -> None:
    expired = encode({"userid": 1, "exp": datetime.now(timezone.utc) - timedelta(seconds=30)})

    with pytest.raises(ExpiredTokenError):
        validate_access_token(expired, SETTINGS)
    with pytest.raises(InvalidTokenError):
        validate_access_token("garbage", SETTINGS)


def test_resolve_identity() -> None:
    identity = resolve_identity(f"Bearer {encode({'userid': 7})}", SETTINGS)

    assert identity.authenticated
    assert identity.user_id == 7
    assert resolve_identity(None, SETTINGS) is ANONYMOUS
    assert resolve_identity("Bearer garbage", SETTINGS) is ANONYMOUS
