from .auth import SapoAuth, canonical_query, normalize_store
from .client import AsyncSapoClient, SapoClient
from .env import load_auth_config_from_env
from .errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    SapoError,
    ValidationError,
)
from .rate_limiter import AsyncRateLimiter, RateLimiter
from .transport import AsyncHttpClient, HttpClient, HttpResponse
from .types import (
    AuthConfig,
    ClientConfig,
    OAuthConfig,
    OAuthToken,
    PrivateAppConfig,
    RateLimits,
    Scope,
    coerce_auth_config,
)

__all__ = [
    "SapoClient",
    "AsyncSapoClient",
    "SapoAuth",
    "AuthConfig",
    "PrivateAppConfig",
    "OAuthConfig",
    "OAuthToken",
    "ClientConfig",
    "RateLimits",
    "Scope",
    "coerce_auth_config",
    "RateLimiter",
    "AsyncRateLimiter",
    "HttpClient",
    "AsyncHttpClient",
    "HttpResponse",
    "SapoError",
    "ConfigurationError",
    "AuthenticationError",
    "ApiError",
    "NotFoundError",
    "ValidationError",
    "RateLimitError",
    "canonical_query",
    "normalize_store",
    "load_auth_config_from_env",
]
