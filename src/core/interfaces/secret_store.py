"""Contrato del secret store (p.ej. Vault).

Recibe una referencia opaca y devuelve el secreto, o lanza
`core.errors.SecretNotFound`.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SecretStore(Protocol):
    def get_secret(self, reference: str) -> str:
        ...
