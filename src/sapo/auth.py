import base64
import hashlib
import hmac
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal, Union
from urllib.parse import parse_qsl, urlencode, urlsplit

from .errors import AuthenticationError
from .types import OAuthConfig, OAuthToken

OAuthStage = Literal[
    "unauthenticated",
    "authorization_url_issued",
    "code_received",
    "token_acquired",
]

# Query keys excluded from the signed message
_UNSIGNED_KEYS = frozenset({"hmac", "signature"})


def normalize_store(store: str) -> str:
    """'https://shop.mysapo.net/' -> 'shop.mysapo.net'"""
    domain = store.strip()
    if domain.startswith("https://"):
        domain = domain[8:]
    elif domain.startswith("http://"):
        domain = domain[7:]
    return domain.rstrip("/")


def _escape(text: str, key: bool = False) -> str:
    # '%' first so the escapes added below are not escaped again
    text = text.replace("%", "%25").replace("&", "%26")
    return text.replace("=", "%3D") if key else text


def canonical_query(query: Mapping[str, Any]) -> str:
    """Message the platform signs: sorted key=value pairs joined by '&', hmac/signature dropped.

    List values (repeated keys) are joined with ',' before signing. '%' and '&' are
    percent-escaped in values, and '%', '&' and '=' in keys, so a value cannot smuggle
    in another pair.
    """
    parts = []
    for key in sorted(k for k in query if k not in _UNSIGNED_KEYS):
        value = query[key]
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        parts.append(f"{_escape(str(key), key=True)}={_escape(str(value))}")
    return "&".join(parts)


class SapoAuth:
    """OAuth authorization-code flow and HMAC checks for public apps.

    Pure logic: the token exchange itself is performed by the client's transport
    (sync or async), this class only builds the request and reads the result.

    Stages move unauthenticated -> authorization_url_issued -> code_received ->
    token_acquired and never move back while a token is held; a repeated flow
    only replaces the token once the new exchange succeeds. There is no expiry or refresh.
    """

    def __init__(self, config: OAuthConfig):
        self.config = config
        self.stage: OAuthStage = "unauthenticated"
        self.token: Union[OAuthToken, None] = None
        self._logger = logging.getLogger("sapo")

    # ------------------------ authorization redirect ------------------------
    def get_authorization_url(
        self, store: str, scopes: Iterable[str], state: Union[str, None] = None
    ) -> str:
        scope_list = [scopes] if isinstance(scopes, str) else list(scopes)
        if not scope_list:
            raise AuthenticationError("At least one scope is required", "INVALID_SCOPE")
        params = {
            "client_id": self.config.api_key,
            "scope": ",".join(scope_list),
            "redirect_uri": self.config.redirect_uri,
        }
        if state is not None:
            params["state"] = state
        # An installed token stays in effect until a new one is accepted
        if self.token is None:
            self.stage = "authorization_url_issued"
        return f"https://{normalize_store(store)}/admin/oauth/authorize?{urlencode(params)}"

    # ------------------------ callback ------------------------
    def parse_callback(self, callback_url: str, state: Union[str, None] = None) -> str:
        """Return the authorization code carried by callback_url.

        The callback's hmac is verified when present, and its state when one is expected.
        """
        query = dict(parse_qsl(urlsplit(callback_url).query, keep_blank_values=True))
        code = query.get("code")
        if not code:
            raise AuthenticationError(
                "Authorization code not found in callback URL", "MISSING_CODE"
            )
        if "hmac" in query and not self.verify_hmac(query, query["hmac"]):
            raise AuthenticationError("Callback HMAC validation failed", "INVALID_HMAC")
        received_state = query.get("state", "").encode()
        if state is not None and not hmac.compare_digest(received_state, state.encode()):
            raise AuthenticationError("Callback state does not match", "INVALID_STATE")
        if self.token is None:
            self.stage = "code_received"
        return code

    # ------------------------ token exchange ------------------------
    def token_request(self, store: str, code: str) -> tuple[str, dict[str, str]]:
        """URL and form body for exchanging code for an access token."""
        url = f"https://{normalize_store(store)}/admin/oauth/access_token"
        return url, {
            "client_id": self.config.api_key,
            "client_secret": self.config.secret_key,
            "code": code,
        }

    def accept_token(self, body: Any) -> OAuthToken:
        if not isinstance(body, Mapping) or not body.get("access_token"):
            raise AuthenticationError(
                "Token exchange response has no access_token", "TOKEN_EXCHANGE_FAILED", body=body
            )
        raw_scope = body.get("scope") or ""
        token = OAuthToken(
            access_token=body["access_token"],
            scopes=tuple(s.strip() for s in raw_scope.split(",") if s.strip()),
        )
        self.token = token
        self.stage = "token_acquired"
        self._logger.info(f"oauth token acquired scopes={','.join(token.scopes) or '-'}")
        return token

    # ------------------------ signatures ------------------------
    def verify_hmac(self, query: Mapping[str, Any], hmac_value: str) -> bool:
        digest = hmac.new(
            self.config.secret_key.encode(),
            canonical_query(query).encode(),
            hashlib.sha256,
        ).hexdigest()
        return hmac.compare_digest(digest.encode(), (hmac_value or "").lower().encode())

    def verify_webhook_payload(self, body: Union[bytes, str], hmac_header: str) -> bool:
        """Check the base64 HMAC-SHA256 the platform sends with a webhook body."""
        raw = body.encode() if isinstance(body, str) else body
        digest = base64.b64encode(
            hmac.new(self.config.secret_key.encode(), raw, hashlib.sha256).digest()
        ).decode("ascii")
        return hmac.compare_digest(digest.encode(), (hmac_header or "").encode())
