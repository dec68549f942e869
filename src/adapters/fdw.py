"""Foreign data wrapper expuesto al motor anfitrión.

Responsabilidad:
- Resolver la configuración una vez por servidor (`init`) y cablear
  `RequestBuilder` + transporte + `RetryPolicy`.
- Traducir el protocolo del anfitrión (begin/iter/re/end scan) a un
  `ProfileScan` por consulta.
- Rechazar cualquier operación de escritura: la tabla es de solo lectura.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Mapping, Sequence

from adapters.http_client import HttpxTransport
from adapters.secret_store import EnvSecretStore
from core.config import AppSettings, ServerConfig, build_server_config
from core.domain.models import Column, ProfileRow, Qual, coerce_columns
from core.errors import ModifyNotSupported, ScanStateError, UnsupportedTable
from core.interfaces.secret_store import SecretStore
from core.interfaces.transport import Transport
from core.services.request_builder import CredentialMode, RequestBuilder
from core.services.retry_policy import RetryPolicy
from core.services.scan import ProfileScan

logger = logging.getLogger(__name__)

HOST_VERSION_REQUIREMENT = "^0.1.0"


def _coerce_qual(value: Qual | Mapping[str, Any]) -> Qual:
    if isinstance(value, Qual):
        return value
    return Qual.model_validate(dict(value))


class GravatarFdw:
    PROFILES_OBJECT = "profiles"

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        settings: AppSettings | None = None,
        secret_store: SecretStore | None = None,
        transport: Transport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config: ServerConfig = build_server_config(options, settings)
        self.builder = RequestBuilder(self.config, secret_store or EnvSecretStore())
        self.policy = RetryPolicy(
            max_attempts=self.config.max_attempts,
            base_delay=self.config.backoff_base_seconds,
        )
        self._sleep = sleep
        self._clock = clock
        self._scan: ProfileScan | None = None
        self._columns: list[Column] = []

        # Falla aquí si el secreto no existe, antes de cualquier scan.
        self.builder.resolve_credential()
        mode = self.builder.credential_mode
        if mode is CredentialMode.DIRECT:
            logger.info("Gravatar FDW initialized with direct API key")
        elif mode is CredentialMode.SECRET:
            logger.info("Gravatar FDW initialized with API key from secret store")
        else:
            logger.info("Gravatar FDW initialized without API key (public access only)")

        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport.from_config(self.config)
        logger.info("Gravatar FDW initialized with base URL: %s", self.config.api_url)

    @staticmethod
    def host_version_requirement() -> str:
        return HOST_VERSION_REQUIREMENT

    # --- scan ---

    def begin_scan(
        self,
        quals: Iterable[Qual | Mapping[str, Any]],
        columns: Sequence[Column | str] | None = None,
        table_options: Mapping[str, Any] | None = None,
    ) -> None:
        table = str((table_options or {}).get("table") or self.PROFILES_OBJECT)
        if table != self.PROFILES_OBJECT:
            raise UnsupportedTable(table)

        if self._scan is not None:
            self._scan.end()
        self._columns = coerce_columns(columns)
        self._scan = ProfileScan(
            self.builder,
            self.transport,
            self.policy,
            sleep=self._sleep,
            clock=self._clock,
        )
        self._scan.begin([_coerce_qual(q) for q in quals], self._columns)

    def iter_scan(self) -> dict[str, Any] | None:
        """Siguiente fila proyectada sobre las columnas pedidas, o None."""

        if self._scan is None:
            raise ScanStateError("iter_scan() called without begin_scan()")
        row = self._scan.next()
        if row is None:
            return None
        return row.project(self._columns)

    def re_scan(self) -> None:
        if self._scan is None:
            raise ScanStateError("re_scan() called without begin_scan()")
        self._scan.restart()

    def end_scan(self) -> None:
        if self._scan is not None:
            self._scan.end()
        self._scan = None
        self._columns = []

    def lookup(self, email: str, columns: Sequence[Column | str] | None = None) -> ProfileRow | None:
        """Atajo: un scan completo para un email."""

        scan = ProfileScan(self.builder, self.transport, self.policy, sleep=self._sleep, clock=self._clock)
        try:
            scan.begin([Qual(field="email", operator="=", value=email)], columns)
            return scan.next()
        finally:
            scan.end()

    # --- modify (no soportado) ---

    def begin_modify(self) -> None:
        raise ModifyNotSupported()

    def insert(self, row: Mapping[str, Any]) -> None:
        raise ModifyNotSupported()

    def update(self, rowid: Any, row: Mapping[str, Any]) -> None:
        raise ModifyNotSupported()

    def delete(self, rowid: Any) -> None:
        raise ModifyNotSupported()

    def end_modify(self) -> None:
        raise ModifyNotSupported()

    # --- recursos ---

    def close(self) -> None:
        self.end_scan()
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            self.transport.close()

    def __enter__(self) -> "GravatarFdw":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
