import logging
from collections.abc import Iterable, Mapping
from typing import Any, Union

import httpx
import requests

from .auth import SapoAuth, normalize_store
from .env import DEFAULT_PREFIX, load_auth_config_from_env
from .errors import AuthenticationError, ConfigurationError, invalid_auth_method
from .rate_limiter import AsyncRateLimiter, RateLimiter
from .resources import (
    Blogs,
    Collections,
    Customers,
    Fulfillments,
    Inventory,
    Metafields,
    Orders,
    Pages,
    PriceRules,
    Products,
    Webhooks,
)
from .transport import AsyncHttpClient, HttpClient, HttpResponse
from .types import (
    DEFAULT_BUCKET_CAPACITY,
    DEFAULT_LEAK_RATE,
    DEFAULT_TIMEOUT,
    AuthConfig,
    ClientConfig,
    OAuthConfig,
    RateLimits,
    coerce_auth_config,
)


def _unwrap(data: Any, key: Union[str, None]) -> Any:
    if key is not None and isinstance(data, Mapping) and key in data:
        return data[key]
    return data


# ---------- Shared facade logic (I/O handled by subclasses) ----------


class _BaseClient:
    def __init__(
        self,
        config: Union[AuthConfig, Mapping],
        timeout: float = DEFAULT_TIMEOUT,
        headers: Union[dict[str, str], None] = None,
    ):
        """Validate config and wire auth + resource accessors.

        Args:
            config (AuthConfig | Mapping): PrivateAppConfig, OAuthConfig, or a mapping with "type"
            timeout (float, optional): per-request timeout in seconds
            headers (dict[str, str] | None, optional): extra headers sent with every request

        Raises:
            ConfigurationError: if a required field is missing for the chosen auth type
        """
        config = coerce_auth_config(config)
        self._validate_config(config)
        self.config: AuthConfig = config
        self.auth: Union[SapoAuth, None] = (
            SapoAuth(config) if isinstance(config, OAuthConfig) else None
        )
        self._client_config = self._build_client_config(timeout, headers)
        self._logger = logging.getLogger("sapo")

        self.products = Products(self)
        self.orders = Orders(self)
        self.customers = Customers(self)
        self.collections = Collections(self)
        self.inventory = Inventory(self)
        self.price_rules = PriceRules(self)
        self.fulfillments = Fulfillments(self)
        self.metafields = Metafields(self)
        self.pages = Pages(self)
        self.blogs = Blogs(self)
        self.webhooks = Webhooks(self)

    @staticmethod
    def _validate_config(config: AuthConfig) -> None:
        if not normalize_store(config.store or ""):
            raise ConfigurationError("store is required")
        if isinstance(config, OAuthConfig):
            if not (config.api_key and config.secret_key and config.redirect_uri):
                raise ConfigurationError(
                    "api_key, secret_key, and redirect_uri are required for OAuth"
                )
        elif not (config.api_key and config.api_secret):
            raise ConfigurationError("api_key and api_secret are required for Private App")

    def _build_client_config(
        self, timeout: float, headers: Union[dict[str, str], None]
    ) -> ClientConfig:
        cc = ClientConfig(
            base_url=f"https://{normalize_store(self.config.store)}",
            timeout=timeout,
            headers=dict(headers or {}),
        )
        if self.config.type == "private":
            cc.api_key = self.config.api_key
            cc.api_secret = self.config.api_secret
        return cc

    def _require_oauth(self) -> SapoAuth:
        if self.auth is None:
            raise invalid_auth_method()
        return self.auth

    def _finish_oauth(self, response: HttpResponse) -> str:
        if not response.ok:
            raise AuthenticationError(
                f"Token exchange failed with {response.status_code}",
                "TOKEN_EXCHANGE_FAILED",
                response.status_code,
                response.data,
            )
        token = self._require_oauth().accept_token(response.data)
        self._http.set_access_token(token.access_token)
        return token.access_token

    def _settle(self, method: str, path: str, response: HttpResponse) -> None:
        if response.status_code == 429:  # noqa: PLR2004, http status code can be constant
            self._rate_limiter.release_token()
            delay = self._rate_limiter.penalize(response.headers)
            self._logger.warning(f"429 on {method} {path}; pausing admissions ~{delay:.2f}s")
        else:
            self._rate_limiter.consume_token(response.headers)

    # ------------------------ public API ------------------------
    @property
    def store(self) -> str:
        return normalize_store(self._client_config.base_url)

    @property
    def oauth_stage(self) -> Union[str, None]:
        return self.auth.stage if self.auth is not None else None

    def set_access_token(self, token: str) -> None:
        """Set access token for authenticated requests."""
        self._http.set_access_token(token)

    def set_store(self, store: str) -> None:
        """Point subsequent requests at another store."""
        domain = normalize_store(store)
        if not domain:
            raise ConfigurationError("store is required")
        self._http.update_config(base_url=f"https://{domain}")

    def get_rate_limits(self) -> RateLimits:
        return self._rate_limiter.get_rate_limits()

    def get_authorization_url(
        self, store: str, scopes: Iterable[str], state: Union[str, None] = None
    ) -> str:
        return self._require_oauth().get_authorization_url(store, scopes, state)

    def verify_webhook_hmac(self, query: Mapping[str, Any], hmac: str) -> bool:
        return self._require_oauth().verify_hmac(query, hmac)

    def verify_webhook_payload(self, body: Union[bytes, str], hmac_header: str) -> bool:
        return self._require_oauth().verify_webhook_payload(body, hmac_header)

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_PREFIX, env_path: Union[str, None] = None, **kwargs):
        """Build a client from {prefix}STORE, {prefix}API_KEY, ... environment variables."""
        return cls(load_auth_config_from_env(prefix=prefix, env_path=env_path), **kwargs)


# ---------- Sync client (requests) ----------


class SapoClient(_BaseClient):
    """Sapo Admin API client over requests.

    Every verb waits on the rate limiter, sends with the active credentials, settles
    the limiter from the response headers, then raises for non-2xx or returns the
    decoded body (unwrapped by `key` when given).
    """

    def __init__(
        self,
        config: Union[AuthConfig, Mapping],
        timeout: float = DEFAULT_TIMEOUT,
        headers: Union[dict[str, str], None] = None,
        session: Union[requests.Session, None] = None,
        rate_limit_capacity: int = DEFAULT_BUCKET_CAPACITY,
        rate_limit_leak_rate: float = DEFAULT_LEAK_RATE,
    ):
        super().__init__(config, timeout=timeout, headers=headers)
        self._rate_limiter = RateLimiter(rate_limit_capacity, rate_limit_leak_rate)
        self._http = HttpClient(self._client_config, session=session)

    def close(self) -> None:
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def request(self, method: str, path: str, key: Union[str, None] = None, **kwargs) -> Any:
        self._rate_limiter.check_rate_limit()
        try:
            response = self._http.send(method, path, **kwargs)
        except BaseException:
            self._rate_limiter.release_token()
            raise
        self._settle(method, path, response)
        return _unwrap(response.raise_for_status().data, key)

    def get(self, path: str, params: Union[Mapping, None] = None, key: Union[str, None] = None):
        return self.request("GET", path, key=key, params=params)

    def post(self, path: str, data: Any = None, key: Union[str, None] = None):
        return self.request("POST", path, key=key, json=data)

    def put(self, path: str, data: Any = None, key: Union[str, None] = None):
        return self.request("PUT", path, key=key, json=data)

    def delete(self, path: str, params: Union[Mapping, None] = None, key: Union[str, None] = None):
        return self.request("DELETE", path, key=key, params=params)

    def complete_oauth(self, store: str, callback_url: str, state: Union[str, None] = None) -> str:
        """Exchange the callback's code for an access token and install it."""
        auth = self._require_oauth()
        code = auth.parse_callback(callback_url, state)
        url, form = auth.token_request(store, code)
        response = self._http.send("POST", url, data=form, authenticate=False)
        return self._finish_oauth(response)


# ---------- Async client (httpx) ----------


class AsyncSapoClient(_BaseClient):
    """Sapo Admin API client over httpx.AsyncClient; resource methods return awaitables."""

    def __init__(
        self,
        config: Union[AuthConfig, Mapping],
        timeout: float = DEFAULT_TIMEOUT,
        headers: Union[dict[str, str], None] = None,
        client: Union[httpx.AsyncClient, None] = None,
        rate_limit_capacity: int = DEFAULT_BUCKET_CAPACITY,
        rate_limit_leak_rate: float = DEFAULT_LEAK_RATE,
    ):
        super().__init__(config, timeout=timeout, headers=headers)
        self._rate_limiter = AsyncRateLimiter(rate_limit_capacity, rate_limit_leak_rate)
        self._http = AsyncHttpClient(self._client_config, client=client)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    async def request(self, method: str, path: str, key: Union[str, None] = None, **kwargs) -> Any:
        await self._rate_limiter.check_rate_limit()
        try:
            response = await self._http.send(method, path, **kwargs)
        except BaseException:
            # includes cancellation while the request was in flight
            self._rate_limiter.release_token()
            raise
        self._settle(method, path, response)
        return _unwrap(response.raise_for_status().data, key)

    async def get(
        self, path: str, params: Union[Mapping, None] = None, key: Union[str, None] = None
    ):
        return await self.request("GET", path, key=key, params=params)

    async def post(self, path: str, data: Any = None, key: Union[str, None] = None):
        return await self.request("POST", path, key=key, json=data)

    async def put(self, path: str, data: Any = None, key: Union[str, None] = None):
        return await self.request("PUT", path, key=key, json=data)

    async def delete(
        self, path: str, params: Union[Mapping, None] = None, key: Union[str, None] = None
    ):
        return await self.request("DELETE", path, key=key, params=params)

    async def complete_oauth(
        self, store: str, callback_url: str, state: Union[str, None] = None
    ) -> str:
        auth = self._require_oauth()
        code = auth.parse_callback(callback_url, state)
        url, form = auth.token_request(store, code)
        response = await self._http.send("POST", url, data=form, authenticate=False)
        return self._finish_oauth(response)
