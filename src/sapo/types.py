from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Literal, Union

from .errors import ConfigurationError

Scope = Literal[
    "read_products",
    "write_products",
    "read_orders",
    "write_orders",
    "read_customers",
    "write_customers",
    "read_content",
    "write_content",
    "read_inventory",
    "write_inventory",
    "read_price_rules",
    "write_price_rules",
    "read_fulfillments",
    "write_fulfillments",
    "read_themes",
    "write_themes",
    "read_script_tags",
    "write_script_tags",
]

# Sapo REST quota: 40 call bucket leaking 2 calls per second
DEFAULT_BUCKET_CAPACITY = 40
DEFAULT_LEAK_RATE = 2.0
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class PrivateAppConfig:
    store: str = ""
    api_key: str = ""
    api_secret: str = ""
    type: Literal["private"] = "private"


@dataclass(frozen=True)
class OAuthConfig:
    store: str = ""
    api_key: str = ""
    secret_key: str = ""
    redirect_uri: str = ""
    type: Literal["oauth"] = "oauth"


AuthConfig = Union[PrivateAppConfig, OAuthConfig]


@dataclass
class ClientConfig:
    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    headers: dict[str, str] = field(default_factory=dict)
    # Private-app credentials; None for OAuth clients
    api_key: str | None = None
    api_secret: str | None = None


@dataclass(frozen=True)
class OAuthToken:
    access_token: str
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class RateLimits:
    limit: int
    used: int
    remaining: int
    # seconds until the next call would be admitted (0.0 when one is available now)
    retry_after: float = 0.0


def coerce_auth_config(config: Union[AuthConfig, Mapping, None]) -> AuthConfig:
    """Turn a PrivateAppConfig | OAuthConfig | mapping into an AuthConfig.

    Accepted inputs:
      - PrivateAppConfig / OAuthConfig instance (returned as-is)
      - mapping with "type": "oauth" -> OAuthConfig
      - mapping with "type": "private" or no "type" -> PrivateAppConfig

    Unknown mapping keys are ignored. Required fields are *not* checked here;
    the client validates them so that a missing value raises ConfigurationError.
    """
    if isinstance(config, (PrivateAppConfig, OAuthConfig)):
        return config
    if isinstance(config, Mapping):
        kind = str(config.get("type") or "private").lower()
        if kind == "oauth":
            return OAuthConfig(
                store=config.get("store") or "",
                api_key=config.get("api_key") or "",
                secret_key=config.get("secret_key") or "",
                redirect_uri=config.get("redirect_uri") or "",
            )
        if kind == "private":
            return PrivateAppConfig(
                store=config.get("store") or "",
                api_key=config.get("api_key") or "",
                api_secret=config.get("api_secret") or "",
            )
        raise ConfigurationError(f"Unknown auth type {kind!r}. Use 'private' or 'oauth'.")
    raise ConfigurationError("config must be a PrivateAppConfig, OAuthConfig, or a mapping")
