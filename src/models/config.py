"""Model with service configuration."""

from typing import Annotated, Optional
from enum import Enum
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
    field_validator,
    FilePath,
    AnyHttpUrl,
    PositiveInt,
    PositiveFloat,
    NonNegativeInt,
    SecretStr,
)

from typing_extensions import Self, Literal

import constants

# TCP port number
Port = Annotated[int, Field(gt=0, le=65535)]


class ConfigurationBase(BaseModel):
    """Base class for all configuration models that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class TLSConfiguration(ConfigurationBase):
    """Certificate and key used when the gateway serves HTTPS."""

    tls_certificate_path: Optional[FilePath] = None
    tls_key_path: Optional[FilePath] = None
    # file with the key password
    tls_key_password: Optional[FilePath] = None


class CORSConfiguration(ConfigurationBase):
    """Cross-origin settings for browser based admin tools."""

    # plain strings, "*" is not a valid URL
    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_credentials: bool = False
    allow_methods: list[str] = Field(default_factory=lambda: ["*"])
    allow_headers: list[str] = Field(default_factory=lambda: ["*"])

    @model_validator(mode="after")
    def check_cors_configuration(self) -> Self:
        """Reject credentials combined with wildcard origin."""
        if self.allow_credentials and "*" in self.allow_origins:
            raise ValueError(
                "Invalid CORS configuration: credentials can not be allowed "
                "for '*' origin, list the admin origins explicitly"
            )
        return self


class SQLiteDatabaseConfiguration(ConfigurationBase):
    """SQLite database file."""

    db_path: str


class PostgreSQLDatabaseConfiguration(ConfigurationBase):
    """PostgreSQL server, gateway tables live in their own schema."""

    host: str = "localhost"
    port: Port = 5432
    db: str
    user: str
    password: SecretStr
    # "public" or None keeps the server default search path
    namespace: Optional[str] = "ai-gateway"
    ssl_mode: str = constants.POSTGRES_DEFAULT_SSL_MODE
    gss_encmode: str = constants.POSTGRES_DEFAULT_GSS_ENCMODE
    ca_cert_path: Optional[FilePath] = None


class DatabaseConfiguration(ConfigurationBase):
    """Database with credentials and model overrides, SQLite by default."""

    sqlite: Optional[SQLiteDatabaseConfiguration] = None
    postgres: Optional[PostgreSQLDatabaseConfiguration] = None

    @model_validator(mode="after")
    def check_database_configuration(self) -> Self:
        """Use default SQLite file unless exactly one database is configured."""
        if self.sqlite is not None and self.postgres is not None:
            raise ValueError("Only one database configuration can be provided")
        if self.sqlite is None and self.postgres is None:
            self.sqlite = SQLiteDatabaseConfiguration(
                db_path=constants.DEFAULT_SQLITE_DB_PATH
            )
        return self

    @property
    def db_type(self) -> Literal["sqlite", "postgres"]:
        """Return the configured database type."""
        return "sqlite" if self.sqlite is not None else "postgres"

    @property
    def config(self) -> SQLiteDatabaseConfiguration | PostgreSQLDatabaseConfiguration:
        """Return the active database configuration."""
        if self.sqlite is not None:
            return self.sqlite
        if self.postgres is None:
            raise ValueError("No database configuration found")
        return self.postgres


class ServiceConfiguration(ConfigurationBase):
    """HTTP server settings."""

    host: str = "localhost"
    port: Port = 8080
    workers: PositiveInt = 1
    color_log: bool = True
    access_log: bool = True
    tls_config: TLSConfiguration = Field(default_factory=TLSConfiguration)
    cors: CORSConfiguration = Field(default_factory=CORSConfiguration)

    @model_validator(mode="after")
    def check_service_configuration(self) -> Self:
        """Allow single worker only."""
        if self.workers > 1:
            # rotation cursor and token cache live in process memory
            raise ValueError(
                "Only one worker is supported, token rotation state is process-local"
            )
        return self


class Action(str, Enum):
    """Actions guarded by the authorization middleware."""

    # grants every other action
    ADMIN = "admin"

    # Send chat completion requests through the gateway
    QUERY = "query"

    # Read own quota and usage summary
    GET_QUOTA = "get_quota"

    # List enabled models
    GET_MODELS = "get_models"

    # Enroll, list, delete and test credentials
    MANAGE_CREDENTIALS = "manage_credentials"

    # Create, update and delete model overrides
    MANAGE_MODELS = "manage_models"

    GET_METRICS = "get_metrics"
    INFO = "info"


class AccessRule(ConfigurationBase):
    """Actions granted to one role, "*" matches every user."""

    role: str  # Role name
    actions: list[Action]


def default_access_rules() -> list[AccessRule]:
    """Access rules used when none are configured."""
    return [
        AccessRule(role=constants.ADMIN_ROLE, actions=[Action.ADMIN]),
        AccessRule(
            role="*",
            actions=[
                Action.QUERY,
                Action.GET_QUOTA,
                Action.GET_MODELS,
                Action.GET_METRICS,
                Action.INFO,
            ],
        ),
    ]


class AuthorizationConfiguration(ConfigurationBase):
    """Administrators and role based access rules."""

    # users that receive the admin role and bypass usage quotas
    admin_users: list[str] = Field(default_factory=list)
    access_rules: list[AccessRule] = Field(default_factory=default_access_rules)


class AuthenticationConfiguration(ConfigurationBase):
    """Selection of the module authenticating API callers."""

    module: str = constants.DEFAULT_AUTHENTICATION_MODULE

    @model_validator(mode="after")
    def check_authentication_model(self) -> Self:
        """Check that the authentication module is known."""
        if self.module not in constants.SUPPORTED_AUTHENTICATION_MODULES:
            supported_modules = ", ".join(
                sorted(constants.SUPPORTED_AUTHENTICATION_MODULES)
            )
            raise ValueError(
                f"Unsupported authentication module '{self.module}'. "
                f"Supported modules: {supported_modules}"
            )
        return self


class TokenExchangeConfiguration(ConfigurationBase):
    """Upstream token exchange configuration."""

    url: AnyHttpUrl = Field(
        default=constants.DEFAULT_TOKEN_EXCHANGE_URL, validate_default=True
    )
    timeout: PositiveFloat = constants.DEFAULT_TOKEN_EXCHANGE_TIMEOUT
    expiry_margin: NonNegativeInt = constants.DEFAULT_TOKEN_EXPIRY_MARGIN
    editor_version: str = constants.DEFAULT_EDITOR_VERSION
    editor_plugin_version: str = constants.DEFAULT_EDITOR_PLUGIN_VERSION
    user_agent: str = constants.DEFAULT_EXCHANGE_USER_AGENT
    integration_id: str = constants.DEFAULT_COPILOT_INTEGRATION_ID
    # credential used when the pool is empty, not tracked by health checks
    fallback_secret: Optional[SecretStr] = None
    device_flow_client_id: str = constants.DEFAULT_DEVICE_FLOW_CLIENT_ID

    @property
    def headers(self) -> dict[str, str]:
        """Return headers sent with every exchange request."""
        return {
            "Accept": "application/json",
            "editor-version": self.editor_version,
            "editor-plugin-version": self.editor_plugin_version,
            "user-agent": self.user_agent,
        }


class RotationConfiguration(ConfigurationBase):
    """Credential rotation configuration."""

    pool_refresh_interval: PositiveFloat = constants.DEFAULT_POOL_REFRESH_INTERVAL


class QuotaConfiguration(ConfigurationBase):
    """Per-user per-model daily quota configuration."""

    day_timezone: str = constants.DEFAULT_QUOTA_DAY_TIMEZONE
    tier_limits: dict[
        Literal["free", "standard", "heavy"], NonNegativeInt
    ] = Field(default_factory=lambda: dict(constants.DEFAULT_TIER_DAILY_LIMITS))
    free_models: list[str] = Field(
        default_factory=lambda: list(constants.DEFAULT_FREE_MODELS)
    )
    heavy_models: list[str] = Field(
        default_factory=lambda: list(constants.DEFAULT_HEAVY_MODELS)
    )
    operation_timeout: PositiveFloat = constants.DEFAULT_QUOTA_OPERATION_TIMEOUT
    # usage storage, the main database is used when neither is set
    sqlite: Optional[SQLiteDatabaseConfiguration] = None
    postgres: Optional[PostgreSQLDatabaseConfiguration] = None

    @field_validator("day_timezone")
    @classmethod
    def check_day_timezone(cls, value: str) -> str:
        """Check that the timezone is known."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{value}'") from e
        return value

    @model_validator(mode="after")
    def check_quota_configuration(self) -> Self:
        """Check quota storage and tier limits."""
        if self.sqlite is not None and self.postgres is not None:
            raise ValueError("Only one quota storage configuration can be provided")
        # tiers that are not configured keep their defaults
        for tier, limit in constants.DEFAULT_TIER_DAILY_LIMITS.items():
            self.tier_limits.setdefault(tier, limit)  # type: ignore[call-overload]
        return self


class Configuration(ConfigurationBase):
    """Whole gateway configuration as read from YAML."""

    name: str
    service: ServiceConfiguration = Field(default_factory=ServiceConfiguration)
    database: DatabaseConfiguration = Field(default_factory=DatabaseConfiguration)
    authentication: AuthenticationConfiguration = Field(
        default_factory=AuthenticationConfiguration
    )
    authorization: Optional[AuthorizationConfiguration] = None
    token_exchange: TokenExchangeConfiguration = Field(
        default_factory=TokenExchangeConfiguration
    )
    rotation: RotationConfiguration = Field(default_factory=RotationConfiguration)
    quota: QuotaConfiguration = Field(default_factory=QuotaConfiguration)

    def dump(self, filename: str = "configuration.json") -> None:
        """Write configuration into JSON file, secrets stay masked."""
        with open(filename, "w", encoding="utf-8") as fout:
            fout.write(self.model_dump_json(indent=4))
