"""Contrato del transporte HTTP.

Reglas:
- `send` es síncrono: el anfitrión conduce el scan llamada a llamada.
- Un fallo de red/timeout se señala con `core.errors.TransportFailure`;
  cualquier respuesta HTTP (incluidos 4xx/5xx) se devuelve como `HttpResponse`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import HttpResponse, ProfileRequest


@runtime_checkable
class Transport(Protocol):
    def send(self, request: ProfileRequest) -> HttpResponse:
        """Ejecuta el request y devuelve la respuesta cruda."""

        ...
