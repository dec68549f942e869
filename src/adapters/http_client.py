"""Wrapper de httpx.

- Estandariza timeouts y redirects para el endpoint de perfiles.
- Traduce errores de red de httpx a `TransportFailure` para que el Core no
  dependa de httpx.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings, ServerConfig
from core.domain.models import HttpResponse, ProfileRequest
from core.errors import TransportFailure


def build_client(
    config: ServerConfig | AppSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Crea un `httpx.Client` síncrono con defaults seguros.

    Las cabeceras van en cada `ProfileRequest`, no en el cliente.
    """

    timeout = (config or AppSettings()).http_timeout_seconds
    return httpx.Client(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        transport=transport,
    )


class HttpxTransport:
    """Implementación de `core.interfaces.transport.Transport` sobre httpx."""

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    @classmethod
    def from_config(
        cls,
        config: ServerConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> "HttpxTransport":
        return cls(build_client(config, transport=transport))

    def send(self, request: ProfileRequest) -> HttpResponse:
        try:
            response = self._client.request(request.method, request.url, headers=request.headers)
        except httpx.TimeoutException as exc:
            raise TransportFailure(f"Request timed out: {exc}", timeout=True) from exc
        except httpx.TransportError as exc:
            raise TransportFailure(f"Transport error: {exc}") from exc

        return HttpResponse(
            status_code=response.status_code,
            headers=dict(response.headers.items()),
            body=response.text or "",
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
