import base64
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

import httpx
import requests

from .errors import (
    ApiError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)
from .rate_limiter import _parse_retry_after
from .types import ClientConfig

ACCESS_TOKEN_HEADER = "X-Sapo-Access-Token"
USER_AGENT = "sapo-python"


@dataclass
class HttpResponse:
    method: str
    url: str
    status_code: int
    headers: Mapping
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300  # noqa: PLR2004, http status codes can be constant

    def raise_for_status(self) -> "HttpResponse":
        """Raise the typed error matching a non-2xx status; return self otherwise."""
        if self.ok:
            return self
        status, body = self.status_code, self.data
        message = f"{self.method} {self.url} failed with {status}: {_error_detail(body)}"
        if status == 401:  # noqa: PLR2004
            raise AuthenticationError(message, "UNAUTHORIZED", status, body)
        if status == 403:  # noqa: PLR2004
            raise AuthenticationError(message, "FORBIDDEN", status, body)
        if status == 404:  # noqa: PLR2004
            raise NotFoundError(message, status, body)
        if status == 422:  # noqa: PLR2004
            raise ValidationError(message, status, body)
        if status == 429:  # noqa: PLR2004
            raise RateLimitError(
                message, status, body, retry_after=_parse_retry_after(self.headers, time.time())
            )
        raise ApiError(message, status, body)


def _error_detail(body: Any) -> str:
    if isinstance(body, dict):
        errors = body.get("errors", body.get("error"))
        if isinstance(errors, dict):
            return "; ".join(
                f"{k}: {', '.join(v) if isinstance(v, list) else v}" for k, v in errors.items()
            )
        if isinstance(errors, list):
            return "; ".join(str(e) for e in errors)
        if errors is not None:
            return str(errors)
    if body in (None, ""):
        return "no response body"
    return str(body)


def _decode(resp: Union[requests.Response, httpx.Response]) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _basic_auth(api_key: str, api_secret: str) -> str:
    raw = f"{api_key}:{api_secret}".encode()
    return "Basic " + base64.b64encode(raw).decode("ascii")


# ---------- Shared transport logic (I/O handled by subclasses) ----------


class _BaseTransport:
    def __init__(self, config: ClientConfig):
        self.config = config
        self.access_token: Union[str, None] = None
        self._logger = logging.getLogger("sapo")

    def set_access_token(self, token: str) -> None:
        self.access_token = token

    def update_config(
        self,
        base_url: Union[str, None] = None,
        timeout: Union[float, None] = None,
        headers: Union[dict[str, str], None] = None,
    ) -> None:
        if base_url is not None:
            self.config.base_url = base_url
        if timeout is not None:
            self.config.timeout = timeout
        if headers is not None:
            self.config.headers = {**self.config.headers, **headers}

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _headers(self, extra: Union[Mapping, None], authenticate: bool) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        headers.update(self.config.headers)
        if authenticate:
            # OAuth token wins once installed; private apps sign every call
            if self.access_token:
                headers[ACCESS_TOKEN_HEADER] = self.access_token
            elif self.config.api_key and self.config.api_secret:
                headers["Authorization"] = _basic_auth(self.config.api_key, self.config.api_secret)
        if extra:
            headers.update(extra)
        return headers


# ---------- requests (sync) ----------


class HttpClient(_BaseTransport):
    def __init__(self, config: ClientConfig, session: Union[requests.Session, None] = None):
        super().__init__(config)
        self._own_session = session is None
        self.session = session if session is not None else requests.Session()

    def close(self) -> None:
        if self._own_session:
            self.session.close()

    def send(
        self,
        method: str,
        path: str,
        params: Union[Mapping, None] = None,
        json: Any = None,
        data: Any = None,
        headers: Union[Mapping, None] = None,
        authenticate: bool = True,
    ) -> HttpResponse:
        """Perform one request; never raises for HTTP status (see HttpResponse.raise_for_status)."""
        url = self._url(path)
        self._logger.debug(f"req start method={method} url={url}")
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers=self._headers(headers, authenticate),
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            self._logger.warning(f"request error method={method} url={url}: {e}")
            raise
        self._logger.debug(f"req done method={method} url={url} status={resp.status_code}")
        return HttpResponse(method, url, resp.status_code, resp.headers, _decode(resp))

    def request(self, method: str, path: str, **kwargs) -> HttpResponse:
        return self.send(method, path, **kwargs).raise_for_status()

    # sugar
    def get(self, path: str, params: Union[Mapping, None] = None, **kw) -> HttpResponse:
        return self.request("GET", path, params=params, **kw)

    def post(self, path: str, data: Any = None, **kw) -> HttpResponse:
        return self.request("POST", path, json=data, **kw)

    def put(self, path: str, data: Any = None, **kw) -> HttpResponse:
        return self.request("PUT", path, json=data, **kw)

    def delete(self, path: str, params: Union[Mapping, None] = None, **kw) -> HttpResponse:
        return self.request("DELETE", path, params=params, **kw)


# ---------- httpx (async) ----------


class AsyncHttpClient(_BaseTransport):
    def __init__(self, config: ClientConfig, client: Union[httpx.AsyncClient, None] = None):
        super().__init__(config)
        self._own_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def aclose(self) -> None:
        if self._own_client:
            await self.client.aclose()

    async def send(
        self,
        method: str,
        path: str,
        params: Union[Mapping, None] = None,
        json: Any = None,
        data: Any = None,
        headers: Union[Mapping, None] = None,
        authenticate: bool = True,
    ) -> HttpResponse:
        url = self._url(path)
        self._logger.debug(f"req start method={method} url={url}")
        try:
            resp = await self.client.request(
                method,
                url,
                params=params,
                json=json,
                data=data,
                headers=self._headers(headers, authenticate),
                timeout=self.config.timeout,
            )
        except httpx.TransportError as e:
            self._logger.warning(f"request error method={method} url={url}: {e}")
            raise
        self._logger.debug(f"req done method={method} url={url} status={resp.status_code}")
        return HttpResponse(method, url, resp.status_code, resp.headers, _decode(resp))

    async def request(self, method: str, path: str, **kwargs) -> HttpResponse:
        return (await self.send(method, path, **kwargs)).raise_for_status()

    async def get(self, path: str, params: Union[Mapping, None] = None, **kw) -> HttpResponse:
        return await self.request("GET", path, params=params, **kw)

    async def post(self, path: str, data: Any = None, **kw) -> HttpResponse:
        return await self.request("POST", path, json=data, **kw)

    async def put(self, path: str, data: Any = None, **kw) -> HttpResponse:
        return await self.request("PUT", path, json=data, **kw)

    async def delete(self, path: str, params: Union[Mapping, None] = None, **kw) -> HttpResponse:
        return await self.request("DELETE", path, params=params, **kw)
