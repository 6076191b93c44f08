"""Constants used in business logic."""

UNABLE_TO_PROCESS_RESPONSE = "Unable to process this request"

# Credential status values persisted in the credential store
CREDENTIAL_STATUS_ALIVE = "alive"
CREDENTIAL_STATUS_DEAD = "dead"

# Upstream token exchange endpoint and the headers it expects from an editor
# integration
DEFAULT_TOKEN_EXCHANGE_URL = "https://api.github.com/copilot_internal/v2/token"
DEFAULT_EDITOR_VERSION = "vscode/1.98.0"
DEFAULT_EDITOR_PLUGIN_VERSION = "GitHub.copilot/1.276.0"
DEFAULT_EXCHANGE_USER_AGENT = "GithubCopilot/1.276.0"
DEFAULT_COPILOT_INTEGRATION_ID = "vscode-chat"

# Exchange call timeout in seconds
DEFAULT_TOKEN_EXCHANGE_TIMEOUT = 3.0

# Expiry used when the upstream response does not carry one (seconds)
DEFAULT_INFERENCE_TOKEN_LIFETIME = 1800

# Cached inference tokens are treated as expired this many seconds before
# their real expiry
DEFAULT_TOKEN_EXPIRY_MARGIN = 300

# Upper bound of the number of cached inference tokens
TOKEN_CACHE_MAX_ENTRIES = 1024

# Reserved cache key for the operator-configured fallback credential
FALLBACK_CREDENTIAL_ID = "__fallback__"

# Inference base URL used when the token does not announce its proxy endpoint
DEFAULT_INFERENCE_BASE_URL = "https://api.individual.githubcopilot.com"

# Pool snapshot older than this (seconds) is reloaded from the store
DEFAULT_POOL_REFRESH_INTERVAL = 30.0

# GitHub OAuth device flow
DEFAULT_DEVICE_FLOW_CLIENT_ID = "Iv1.b507a08c87ecfe98"
DEVICE_CODE_URL = "https://github.com/login/device/code"
DEVICE_ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"
DEVICE_FLOW_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"
DEVICE_FLOW_SCOPE = "read:user"
DEFAULT_DEVICE_FLOW_INTERVAL = 5
DEFAULT_CREDENTIAL_LABEL = "GitHub Account"

# Model tiers
MODEL_TIER_FREE = "free"
MODEL_TIER_STANDARD = "standard"
MODEL_TIER_HEAVY = "heavy"

# Default daily request limits per tier, 0 means unlimited
DEFAULT_TIER_DAILY_LIMITS = {
    MODEL_TIER_FREE: 0,
    MODEL_TIER_STANDARD: 15,
    MODEL_TIER_HEAVY: 5,
}

# Models that never consume premium requests, matched as case-insensitive
# substrings of the model identifier
DEFAULT_FREE_MODELS = (
    "gpt-4.1-mini",
    "gpt-4.1-nano",
    "gpt-4o-mini",
    "claude-haiku-4-5",
    "claude-3-5-haiku",
    "gemini-3-flash-preview",
    "gemini-2.5-flash-preview-04-17",
    "gemini-2-0-flash",
    "llama",
    "ministral",
    "phi",
)

# Models billed with the premium multiplier
DEFAULT_HEAVY_MODELS = (
    "claude-opus-4-5",
    "claude-opus-4",
    "claude-3-opus",
    "gpt-5.2",
    "gpt-5.1",
    "gemini-3-1-pro-preview",
    "gemini-2-5-pro-preview-03-25",
    "gemini-2.5-pro",
    "o1",
    "o3",
    "o1-preview",
    "o3-mini",
    "grok-3",
)

# Value reported as remaining/limit when a quota does not apply
QUOTA_UNLIMITED = -1

# Calendar day boundary used for usage records
DEFAULT_QUOTA_DAY_TIMEZONE = "UTC"

# Timeout for quota reads and writes (seconds)
DEFAULT_QUOTA_OPERATION_TIMEOUT = 2.0

# Authentication constants
DEFAULT_VIRTUAL_PATH = "/gw-access"
DEFAULT_USER_NAME = "gateway-user"
DEFAULT_USER_UID = "00000000-0000-0000-0000-000"
# default value for token when no token is provided
NO_USER_TOKEN = ""
AUTH_MOD_NOOP = "noop"
AUTH_MOD_NOOP_WITH_TOKEN = "noop-with-token"
# Supported authentication modules
SUPPORTED_AUTHENTICATION_MODULES = frozenset(
    {
        AUTH_MOD_NOOP,
        AUTH_MOD_NOOP_WITH_TOKEN,
    }
)
DEFAULT_AUTHENTICATION_MODULE = AUTH_MOD_NOOP

# Role granted to users listed as administrators
ADMIN_ROLE = "admin"

# PostgreSQL connection constants
# See: https://www.postgresql.org/docs/current/libpq-connect.html#LIBPQ-CONNECT-SSLMODE
POSTGRES_DEFAULT_SSL_MODE = "prefer"
# See: https://www.postgresql.org/docs/current/libpq-connect.html#LIBPQ-CONNECT-GSSENCMODE
POSTGRES_DEFAULT_GSS_ENCMODE = "prefer"

# SQLite file used when no database is configured
DEFAULT_SQLITE_DB_PATH = "/tmp/ai-gateway.db"

# Environment variable with path to configuration file, used by the app
# started by Uvicorn
CONFIG_PATH_ENV_VARIABLE = "AI_GATEWAY_CONFIG_PATH"

# Timeout of chat completion requests forwarded upstream (seconds)
DEFAULT_INFERENCE_TIMEOUT = 120.0
