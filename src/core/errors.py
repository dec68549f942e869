"""Jerarquía de errores del FDW.

Cada error lleva contexto estructurado (`details`, `suggestion`) para que el
anfitrión pueda mostrar un mensaje descriptivo y los logs puedan serializarlo.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "FdwError",
    "ConfigurationError",
    "CredentialResolutionError",
    "SecretNotFound",
    "UnsupportedTable",
    "ModifyNotSupported",
    "MissingKeyFilter",
    "UnsupportedPredicate",
    "TransportFailure",
    "FetchError",
    "TransientError",
    "RateLimited",
    "AuthError",
    "ParseError",
    "UpstreamError",
    "ScanStateError",
]


class FdwError(Exception):
    """Base de todos los errores del wrapper."""

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]
        if self.details:
            parts.append("Details:")
            parts.extend(f"  {k}: {v}" for k, v in self.details.items())
        if suggestion:
            parts.append(f"Suggestion: {suggestion}")
        super().__init__("\n".join(parts))

    def to_dict(self) -> dict[str, Any]:
        """Representación para logging estructurado."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(FdwError):
    """Opciones de servidor/tabla inválidas."""


class CredentialResolutionError(ConfigurationError):
    """No se pudo resolver la API key configurada.

    Nunca se degrada a acceso anónimo.
    """


class SecretNotFound(FdwError):
    """El secret store no tiene la referencia pedida."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__("Secret not found", details={"reference": reference})


class UnsupportedTable(ConfigurationError):
    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(
            f"Unsupported table '{table}'. Only 'profiles' is supported.",
            details={"table": table},
        )


class ModifyNotSupported(FdwError):
    def __init__(self) -> None:
        super().__init__("modify on foreign table is not supported")


class MissingKeyFilter(FdwError):
    """No hay filtro por email: se recupera localmente como resultado vacío."""

    def __init__(self, column: str = "email") -> None:
        self.column = column
        super().__init__(
            f"No {column} filter provided",
            suggestion=f"Add {column} = 'someone@example.com' to the WHERE clause",
        )


class UnsupportedPredicate(FdwError):
    """El filtro sobre la columna clave no es una única igualdad."""


class TransportFailure(FdwError):
    """Fallo de transporte (timeout, conexión). Se trata como transitorio."""

    def __init__(self, message: str, *, timeout: bool = False) -> None:
        self.timeout = timeout
        super().__init__(message, details={"timeout": timeout})


class FetchError(FdwError):
    """Base de los errores producidos al consultar el servicio."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.status_code = status_code
        merged = dict(details or {})
        if status_code is not None:
            merged.setdefault("status_code", status_code)
        super().__init__(message, details=merged, suggestion=suggestion)


class TransientError(FetchError):
    """Reintentos agotados ante timeouts/5xx."""

    def __init__(self, message: str, *, attempts: int, status_code: int | None = None) -> None:
        self.attempts = attempts
        super().__init__(message, status_code=status_code, details={"attempts": attempts})


class RateLimited(FetchError):
    """429: se reporta sin reintentar."""

    def __init__(
        self,
        message: str,
        *,
        retry_after: int | None,
        suggestion: str | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(
            message,
            status_code=429,
            details={"retry_after": retry_after},
            suggestion=suggestion,
        )


class AuthError(FetchError):
    """401/403."""


class ParseError(FetchError):
    """Respuesta 2xx con cuerpo no parseable."""


class UpstreamError(FetchError):
    """Cualquier otro estado HTTP no esperado."""


class ScanStateError(FdwError):
    """Llamada del anfitrión fuera de orden (p.ej. `next` tras `end`)."""
