import json
import os
import threading
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field


load_dotenv()

SUPPORTED_DATABASE_SCHEMES = {"postgresql+asyncpg", "sqlite+aiosqlite"}
DEFAULT_PUBLIC_ENDPOINTS = ["/api/auth", "/health", "/docs", "/openapi.json"]


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean value")


def _parse_list(name: str, raw: str) -> list[str]:
    # Support both CSV format and JSON array format
    raw = raw.strip()
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{name} JSON is malformed: {exc}") from exc
        if not isinstance(parsed, list):
            raise ValueError(f"{name} JSON must be an array")
        return [item.strip() for item in parsed if isinstance(item, str) and item.strip()]
    return [item.strip() for item in raw.split(",") if item.strip()]


def _parse_endpoint_permissions(name: str, raw: Any) -> dict[str, dict[str, str]]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{name} JSON is malformed: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"{name} must be an object of prefix -> {{method: permission}}")

    endpoint_permissions: dict[str, dict[str, str]] = {}
    for prefix, methods in raw.items():
        if not isinstance(prefix, str) or not isinstance(methods, dict):
            raise ValueError(f"{name} entry for {prefix!r} must map methods to permissions")
        method_permissions: dict[str, str] = {}
        for method, permission in methods.items():
            if not isinstance(method, str) or not isinstance(permission, (str, int)):
                raise ValueError(
                    f"{name} entry {prefix!r} has an invalid method/permission pair"
                )
            method_permissions[method] = str(permission)
        endpoint_permissions[prefix] = method_permissions
    return endpoint_permissions


class AuthorizationSettings(BaseModel):
    """Permission-based authorization switches, read once at startup."""

    model_config = ConfigDict(frozen=True)

    enable_permission_based_auth: bool = Field(default=True)
    default_require_authentication: bool = Field(default=True)
    public_endpoints: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PUBLIC_ENDPOINTS)
    )
    endpoint_permissions: dict[str, dict[str, str]] = Field(default_factory=dict)
    store_timeout_seconds: float = Field(default=5.0, gt=0)

    @classmethod
    def from_file(cls, path: str | Path) -> dict[str, Any]:
        """Read the ``Authorization`` section of a JSON settings file.

        Keys may be written either as ``EnablePermissionBasedAuth`` or
        ``enable_permission_based_auth``.
        """
        file_path = Path(path)
        try:
            document = json.loads(file_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ValueError(f"AUTHORIZATION_CONFIG_FILE not found: {file_path}") from exc
        except json.JSONDecodeError as exc:
            raise ValueError(f"AUTHORIZATION_CONFIG_FILE is malformed: {exc}") from exc

        if not isinstance(document, dict):
            raise ValueError("AUTHORIZATION_CONFIG_FILE must contain a JSON object")
        section = document.get("Authorization", document)
        if not isinstance(section, dict):
            raise ValueError("Authorization section must be a JSON object")

        aliases = {
            "EnablePermissionBasedAuth": "enable_permission_based_auth",
            "DefaultRequireAuthentication": "default_require_authentication",
            "PublicEndpoints": "public_endpoints",
            "EndpointPermissions": "endpoint_permissions",
            "StoreTimeoutSeconds": "store_timeout_seconds",
        }
        values: dict[str, Any] = {}
        for key, value in section.items():
            values[aliases.get(key, key)] = value
        if "endpoint_permissions" in values:
            values["endpoint_permissions"] = _parse_endpoint_permissions(
                "EndpointPermissions", values["endpoint_permissions"]
            )
        return values

    @classmethod
    def from_env(cls) -> "AuthorizationSettings":
        values: dict[str, Any] = {}

        config_file = os.getenv("AUTHORIZATION_CONFIG_FILE", "").strip()
        if config_file:
            values.update(cls.from_file(config_file))

        raw_enabled = os.getenv("ENABLE_PERMISSION_BASED_AUTH")
        if raw_enabled is not None:
            values["enable_permission_based_auth"] = _parse_bool(
                "ENABLE_PERMISSION_BASED_AUTH", raw_enabled
            )

        raw_default_auth = os.getenv("DEFAULT_REQUIRE_AUTHENTICATION")
        if raw_default_auth is not None:
            values["default_require_authentication"] = _parse_bool(
                "DEFAULT_REQUIRE_AUTHENTICATION", raw_default_auth
            )

        raw_public = os.getenv("PUBLIC_ENDPOINTS")
        if raw_public is not None:
            values["public_endpoints"] = _parse_list("PUBLIC_ENDPOINTS", raw_public)

        raw_endpoint_permissions = os.getenv("ENDPOINT_PERMISSIONS", "").strip()
        if raw_endpoint_permissions:
            values["endpoint_permissions"] = _parse_endpoint_permissions(
                "ENDPOINT_PERMISSIONS", raw_endpoint_permissions
            )

        raw_timeout = os.getenv("AUTHORIZATION_STORE_TIMEOUT_SECONDS", "").strip()
        if raw_timeout:
            try:
                values["store_timeout_seconds"] = float(raw_timeout)
            except ValueError as exc:
                raise ValueError(
                    "AUTHORIZATION_STORE_TIMEOUT_SECONDS must be a number"
                ) from exc

        timeout = values.get("store_timeout_seconds", cls.model_fields["store_timeout_seconds"].default)
        if float(timeout) <= 0:
            raise ValueError("AUTHORIZATION_STORE_TIMEOUT_SECONDS must be greater than 0")

        return cls(**values)


class Settings(BaseModel):
    app_name: str = Field(default="Temple API")
    debug: bool = Field(default=False)
    database_url: str = Field(default="")
    allowed_origins: list[str] = Field(default_factory=list)
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)
    secret_key: str | None = Field(default=None)
    algorithm: str = Field(default="HS256")
    authorization: AuthorizationSettings = Field(default_factory=AuthorizationSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        secret_key = os.getenv("SECRET_KEY", "").strip()
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set")

        raw_allowed_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
        if not raw_allowed_origins:
            raise ValueError("ALLOWED_ORIGINS environment variable must be set")

        allowed_origins = _parse_list("ALLOWED_ORIGINS", raw_allowed_origins)
        if not allowed_origins:
            raise ValueError("ALLOWED_ORIGINS must contain at least one origin")

        if "*" in allowed_origins:
            raise ValueError(
                "ALLOWED_ORIGINS cannot contain '*' when credentialed requests are used"
            )

        for origin in allowed_origins:
            parsed = urlparse(origin)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise ValueError(
                    "ALLOWED_ORIGINS must contain valid http/https origins with host"
                )

        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme not in SUPPORTED_DATABASE_SCHEMES:
            raise ValueError(
                "DATABASE_URL must start with 'postgresql+asyncpg://' or 'sqlite+aiosqlite://'"
            )
        if parsed_db.scheme == "postgresql+asyncpg" and not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        db_pool_size = int(os.getenv("DB_POOL_SIZE", cls.model_fields["db_pool_size"].default))
        if db_pool_size <= 0:
            raise ValueError("DB_POOL_SIZE must be greater than 0")

        db_max_overflow = int(
            os.getenv("DB_MAX_OVERFLOW", cls.model_fields["db_max_overflow"].default)
        )
        if db_max_overflow < 0:
            raise ValueError("DB_MAX_OVERFLOW must be greater than or equal to 0")

        db_pool_recycle = int(
            os.getenv("DB_POOL_RECYCLE", cls.model_fields["db_pool_recycle"].default)
        )
        if db_pool_recycle <= 0:
            raise ValueError("DB_POOL_RECYCLE must be greater than 0")

        db_pool_pre_ping = _parse_bool(
            "DB_POOL_PRE_PING",
            os.getenv("DB_POOL_PRE_PING", str(cls.model_fields["db_pool_pre_ping"].default)),
        )

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            database_url=database_url,
            allowed_origins=allowed_origins,
            secret_key=secret_key,
            algorithm=os.getenv("ALGORITHM", cls.model_fields["algorithm"].default),
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=db_pool_pre_ping,
            authorization=AuthorizationSettings.from_env(),
        )


_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    The module can be imported without environment validation; validation
    happens when settings are first accessed (typically during startup).

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
