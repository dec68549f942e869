"""Interfaces/abstracciones del Core.

- Define contratos (Protocol) que implementan adaptadores concretos
  (transporte HTTP, secret store).
- El Core depende de abstracciones, nunca de httpx directamente.
"""

from core.interfaces.secret_store import SecretStore
from core.interfaces.transport import Transport

__all__ = ["SecretStore", "Transport"]
