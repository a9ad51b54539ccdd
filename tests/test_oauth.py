import hashlib
import hmac
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlencode, urlsplit

import httpx
import pytest
from conftest import fake_response

from sapo import AsyncSapoClient, AuthenticationError, SapoClient, canonical_query


def _signed_callback(secret, **params):
    digest = hmac.new(secret.encode(), canonical_query(params).encode(), hashlib.sha256)
    return f"https://app.example/callback?{urlencode({**params, 'hmac': digest.hexdigest()})}"


def test_authorization_url(oauth_config):
    client = SapoClient(oauth_config)
    url = client.get_authorization_url("demo.mysapo.net", ["read_products", "write_orders"])
    parts = urlsplit(url)
    assert parts.scheme == "https"
    assert parts.netloc == "demo.mysapo.net"
    assert parts.path == "/admin/oauth/authorize"
    q = parse_qs(parts.query)
    assert q["client_id"] == ["client-id"]
    assert q["scope"] == ["read_products,write_orders"]
    assert q["redirect_uri"] == ["https://app.example/callback"]
    assert "state" not in q
    assert client.oauth_stage == "authorization_url_issued"


def test_authorization_url_is_deterministic(oauth_config):
    client = SapoClient(oauth_config)
    a = client.get_authorization_url("demo.mysapo.net", ["read_products"], state="n1")
    b = client.get_authorization_url("demo.mysapo.net", ["read_products"], state="n1")
    assert a == b
    assert parse_qs(urlsplit(a).query)["state"] == ["n1"]


def test_authorization_url_requires_scope(oauth_config):
    client = SapoClient(oauth_config)
    with pytest.raises(AuthenticationError) as ei:
        client.get_authorization_url("demo.mysapo.net", [])
    assert ei.value.code == "INVALID_SCOPE"


@pytest.mark.parametrize(
    "call",
    [
        lambda c: c.get_authorization_url("demo.mysapo.net", ["read_products"]),
        lambda c: c.complete_oauth("demo.mysapo.net", "https://app.example/cb?code=x"),
        lambda c: c.verify_webhook_hmac({"shop": "demo"}, "abc"),
        lambda c: c.verify_webhook_payload(b"{}", "abc"),
    ],
)
def test_oauth_methods_rejected_for_private_app(private_config, call):
    client = SapoClient(private_config)
    with pytest.raises(AuthenticationError) as ei:
        call(client)
    assert ei.value.code == "INVALID_AUTH_METHOD"


def test_complete_oauth_installs_token(oauth_config, session):
    session.request.return_value = fake_response(
        200, {"access_token": "tok-123", "scope": "read_products,write_orders"}
    )
    client = SapoClient(oauth_config, session=session)
    callback = _signed_callback("shh", code="abc", store="demo.mysapo.net", timestamp="1700000000")

    token = client.complete_oauth("demo.mysapo.net", callback)

    assert token == "tok-123"
    assert client.oauth_stage == "token_acquired"
    assert client.auth.token.scopes == ("read_products", "write_orders")
    args, kwargs = session.request.call_args
    assert args == ("POST", "https://demo.mysapo.net/admin/oauth/access_token")
    assert kwargs["data"] == {"client_id": "client-id", "client_secret": "shh", "code": "abc"}
    # the exchange itself is not authenticated
    assert "X-Sapo-Access-Token" not in kwargs["headers"]
    assert "Authorization" not in kwargs["headers"]

    session.request.return_value = fake_response(200, {"shop": {"id": 1}})
    client.get("/admin/shop.json")
    _, kwargs = session.request.call_args
    assert kwargs["headers"]["X-Sapo-Access-Token"] == "tok-123"


def test_complete_oauth_without_code(oauth_config, session):
    client = SapoClient(oauth_config, session=session)
    with pytest.raises(AuthenticationError) as ei:
        client.complete_oauth("demo.mysapo.net", "https://app.example/callback?shop=demo")
    assert ei.value.code == "MISSING_CODE"
    session.request.assert_not_called()


def test_complete_oauth_rejects_tampered_callback(oauth_config, session):
    client = SapoClient(oauth_config, session=session)
    callback = _signed_callback("wrong-secret", code="abc", store="demo.mysapo.net")
    with pytest.raises(AuthenticationError) as ei:
        client.complete_oauth("demo.mysapo.net", callback)
    assert ei.value.code == "INVALID_HMAC"
    session.request.assert_not_called()


def test_complete_oauth_checks_state(oauth_config, session):
    client = SapoClient(oauth_config, session=session)
    with pytest.raises(AuthenticationError) as ei:
        client.complete_oauth(
            "demo.mysapo.net", "https://app.example/callback?code=abc&state=n2", state="n1"
        )
    assert ei.value.code == "INVALID_STATE"


def test_complete_oauth_exchange_failure(oauth_config, session):
    session.request.return_value = fake_response(400, {"error": "invalid_request"})
    client = SapoClient(oauth_config, session=session)
    with pytest.raises(AuthenticationError) as ei:
        client.complete_oauth("demo.mysapo.net", "https://app.example/callback?code=abc")
    assert ei.value.code == "TOKEN_EXCHANGE_FAILED"
    assert ei.value.status_code == 400  # noqa: PLR2004
    assert client.oauth_stage == "code_received"


def test_complete_oauth_response_without_token(oauth_config, session):
    session.request.return_value = fake_response(200, {"scope": "read_products"})
    client = SapoClient(oauth_config, session=session)
    with pytest.raises(AuthenticationError) as ei:
        client.complete_oauth("demo.mysapo.net", "https://app.example/callback?code=abc")
    assert ei.value.code == "TOKEN_EXCHANGE_FAILED"


@pytest.mark.asyncio
async def test_async_complete_oauth(oauth_config):
    seen = []

    def handler(request):
        seen.append(request)
        if request.url.path == "/admin/oauth/access_token":
            return httpx.Response(200, json={"access_token": "atok", "scope": "read_orders"})
        return httpx.Response(200, json={"orders": []})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    async with AsyncSapoClient(oauth_config, client=http) as client:
        token = await client.complete_oauth(
            "demo.mysapo.net", "https://app.example/callback?code=xyz&state=n1", state="n1"
        )
        assert token == "atok"
        orders = await client.orders.list()
    await http.aclose()

    assert orders == []
    exchange, follow_up = seen
    assert exchange.method == "POST"
    assert parse_qs(exchange.content.decode())["code"] == ["xyz"]
    assert "x-sapo-access-token" not in exchange.headers
    assert follow_up.headers["x-sapo-access-token"] == "atok"


def test_verify_webhook_hmac(oauth_config):
    client = SapoClient(oauth_config)
    query = {"shop": "demo.mysapo.net", "timestamp": "1700000000", "code": "abc"}
    good = hmac.new(b"shh", b"code=abc&shop=demo.mysapo.net&timestamp=1700000000", hashlib.sha256)

    assert client.verify_webhook_hmac(query, good.hexdigest()) is True
    assert client.verify_webhook_hmac(query, good.hexdigest().upper()) is True
    assert client.verify_webhook_hmac({**query, "hmac": "ignored"}, good.hexdigest()) is True
    assert client.verify_webhook_hmac({**query, "shop": "evil"}, good.hexdigest()) is False
    assert client.verify_webhook_hmac(query, "0" * 64) is False
    assert client.verify_webhook_hmac(query, "") is False


def test_verify_webhook_hmac_with_other_secret(oauth_config):
    client = SapoClient(oauth_config)
    query = {"shop": "demo.mysapo.net"}
    other = hmac.new(b"not-shh", canonical_query(query).encode(), hashlib.sha256).hexdigest()
    assert client.verify_webhook_hmac(query, other) is False


def test_verify_webhook_payload(oauth_config):
    import base64  # noqa: PLC0415

    client = SapoClient(oauth_config)
    body = b'{"id": 1, "email": "a@b.c"}'
    sig = base64.b64encode(hmac.new(b"shh", body, hashlib.sha256).digest()).decode()
    assert client.verify_webhook_payload(body, sig) is True
    assert client.verify_webhook_payload(body.decode(), sig) is True
    assert client.verify_webhook_payload(body + b" ", sig) is False


def test_canonical_query_sorts_and_drops_signature_keys():
    q = {"b": "2", "a": "1", "hmac": "x", "signature": "y", "ids": ["3", "4"]}
    assert canonical_query(q) == "a=1&b=2&ids=3,4"


def test_session_mock_is_not_used_for_url_building(oauth_config):
    # get_authorization_url is pure; no HTTP
    sess = MagicMock()
    client = SapoClient(oauth_config, session=sess)
    client.get_authorization_url("https://other.mysapo.net/", ["read_content"])
    sess.request.assert_not_called()


def test_canonical_query_escapes_separators():
    assert canonical_query({"shop": "demo&timestamp=1"}) == "shop=demo%26timestamp=1"
    assert canonical_query({"a=b": "c"}) == "a%3Db=c"
    assert canonical_query({"note": "100%26"}) == "note=100%2526"


def test_value_cannot_smuggle_extra_pair(oauth_config):
    client = SapoClient(oauth_config)
    signed = {"shop": "demo", "timestamp": "1"}
    sig = hmac.new(b"shh", canonical_query(signed).encode(), hashlib.sha256).hexdigest()

    assert client.verify_webhook_hmac(signed, sig) is True
    assert client.verify_webhook_hmac({"shop": "demo&timestamp=1"}, sig) is False


def test_new_flow_keeps_installed_token_stage(oauth_config, session):
    session.request.return_value = fake_response(200, {"access_token": "t", "scope": ""})
    client = SapoClient(oauth_config, session=session)
    client.complete_oauth("demo.mysapo.net", "https://app.example/callback?code=abc")

    client.get_authorization_url("demo.mysapo.net", ["read_orders"])
    assert client.oauth_stage == "token_acquired"

    session.request.return_value = fake_response(400, {"error": "invalid_grant"})
    with pytest.raises(AuthenticationError):
        client.complete_oauth("demo.mysapo.net", "https://app.example/callback?code=stale")
    assert client.oauth_stage == "token_acquired"

    session.request.return_value = fake_response(200, {"orders": []})
    client.get("/admin/orders.json")
    _, kwargs = session.request.call_args
    assert kwargs["headers"]["X-Sapo-Access-Token"] == "t"
