import httpx
import pytest

from adapters.http_client import HttpxTransport
from core.config import ServerConfig
from core.domain.models import ProfileRequest
from core.errors import TransportFailure

REQUEST = ProfileRequest(
    url="https://api.gravatar.com/v3/profiles/abc",
    headers={"accept": "application/json", "authorization": "Bearer t"},
)


def make_transport(handler) -> HttpxTransport:
    return HttpxTransport.from_config(ServerConfig(), transport=httpx.MockTransport(handler))


def test_response_is_passed_through() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(429, headers={"X-RateLimit-Reset": "123"}, text="slow down")

    with make_transport(handler) as transport:
        response = transport.send(REQUEST)

    assert seen == {"url": REQUEST.url, "auth": "Bearer t"}
    assert response.status_code == 429
    assert response.header("x-ratelimit-reset") == "123"
    assert response.body == "slow down"


def test_timeout_becomes_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with make_transport(handler) as transport:
        with pytest.raises(TransportFailure) as excinfo:
            transport.send(REQUEST)
    assert excinfo.value.timeout is True


def test_connection_error_becomes_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with make_transport(handler) as transport:
        with pytest.raises(TransportFailure) as excinfo:
            transport.send(REQUEST)
    assert excinfo.value.timeout is False


def test_nonstandard_status_is_passed_through() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(999, text="proxy says no")

    with make_transport(handler) as transport:
        response = transport.send(REQUEST)

    assert response.status_code == 999
    assert response.body == "proxy says no"
