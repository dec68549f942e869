"""Secret stores para resolver `api_key_id`.

- `EnvSecretStore`: lee el secreto de una variable de entorno derivada de la
  referencia (`GRAVATAR_FDW_SECRET_<REF>`), útil fuera de Postgres/Vault.
- `MappingSecretStore`: secretos en memoria (tests, embebidos).
"""

from __future__ import annotations

import os
import re
from typing import Mapping

from core.errors import SecretNotFound

_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z]+")


class EnvSecretStore:
    def __init__(self, prefix: str = "GRAVATAR_FDW_SECRET_", environ: Mapping[str, str] | None = None) -> None:
        self._prefix = prefix
        self._environ = os.environ if environ is None else environ

    def variable_name(self, reference: str) -> str:
        # Los UUID de Vault tienen guiones; las variables de entorno no.
        return self._prefix + _NON_ALNUM_RE.sub("_", reference.strip()).strip("_").upper()

    def get_secret(self, reference: str) -> str:
        value = self._environ.get(self.variable_name(reference))
        if value is None:
            raise SecretNotFound(reference)
        return value


class MappingSecretStore:
    def __init__(self, secrets: Mapping[str, str] | None = None) -> None:
        self._secrets = dict(secrets or {})

    def get_secret(self, reference: str) -> str:
        try:
            return self._secrets[reference]
        except KeyError:
            raise SecretNotFound(reference) from None
