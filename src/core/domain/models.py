"""Modelos del dominio (Pydantic v2).

Nota:
- Estos modelos describen *qué* intercambian el anfitrión, el core y el
  transporte, no *cómo* se obtiene la información.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Sequence

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class ColumnType(str, Enum):
    """Tipos de columna que el mapper sabe producir."""

    TEXT = "text"
    BOOL = "bool"
    INT = "int"
    BIGINT = "bigint"
    TIMESTAMP = "timestamptz"
    JSON = "jsonb"


class Column(BaseModel):
    """Columna pedida por el anfitrión."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: ColumnType = ColumnType.TEXT

    @classmethod
    def coerce(cls, value: "Column | str") -> "Column":
        if isinstance(value, Column):
            return value
        return cls(name=value, type=FIXED_COLUMNS.get(value, ColumnType.TEXT))


class Qual(BaseModel):
    """Condición de filtro empujada por el anfitrión.

    `value` es una lista cuando el anfitrión agrupa varias igualdades
    (`IN (...)`, `= ANY(...)`); en ese caso `use_or` suele estar activo.
    """

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., min_length=1)
    operator: str = Field(..., min_length=1)
    value: Any = None
    use_or: bool = False


class ProfileRequest(BaseModel):
    """Request saliente totalmente construido."""

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def authenticated(self) -> bool:
        return any(k.lower() == "authorization" for k in self.headers)


class HttpResponse(BaseModel):
    """Respuesta del transporte: estado + cabeceras + cuerpo crudo."""

    model_config = ConfigDict(frozen=True)

    status_code: int = Field(..., ge=100)
    headers: dict[str, str] = Field(default_factory=dict)
    body: str = ""

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


# Esquema fijo de la tabla `profiles` (el orden es el de la tabla).
FIXED_COLUMNS: dict[str, ColumnType] = {
    "hash": ColumnType.TEXT,
    "email": ColumnType.TEXT,
    "display_name": ColumnType.TEXT,
    "profile_url": ColumnType.TEXT,
    "avatar_url": ColumnType.TEXT,
    "avatar_alt_text": ColumnType.TEXT,
    "location": ColumnType.TEXT,
    "description": ColumnType.TEXT,
    "job_title": ColumnType.TEXT,
    "company": ColumnType.TEXT,
    "verified_accounts": ColumnType.JSON,
    "pronunciation": ColumnType.TEXT,
    "pronouns": ColumnType.TEXT,
    "timezone": ColumnType.TEXT,
    "languages": ColumnType.JSON,
    "first_name": ColumnType.TEXT,
    "last_name": ColumnType.TEXT,
    "is_organization": ColumnType.BOOL,
    "links": ColumnType.JSON,
    "interests": ColumnType.JSON,
    "payments": ColumnType.JSON,
    "contact_info": ColumnType.JSON,
    "number_verified_accounts": ColumnType.BIGINT,
    "last_profile_edit": ColumnType.TIMESTAMP,
    "registration_date": ColumnType.TIMESTAMP,
    "json": ColumnType.JSON,
}


class ProfileRow(BaseModel):
    """Fila de salida.

    `hash` y `email` se derivan localmente (nunca del documento remoto).
    Las columnas JSON guardan texto JSON; `json` es el documento completo.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hash: str = Field(..., min_length=64, max_length=64)
    email: str = Field(..., min_length=1)
    display_name: str | None = None
    profile_url: str | None = None
    avatar_url: str | None = None
    avatar_alt_text: str | None = None
    location: str | None = None
    description: str | None = None
    job_title: str | None = None
    company: str | None = None
    verified_accounts: str | None = None
    pronunciation: str | None = None
    pronouns: str | None = None
    timezone: str | None = None
    languages: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_organization: bool | None = None
    links: str | None = None
    interests: str | None = None
    payments: str | None = None
    contact_info: str | None = None
    number_verified_accounts: int | None = None
    last_profile_edit: datetime | None = None
    registration_date: datetime | None = None
    json_document: str = Field(..., alias="json")
    extras: dict[str, Any] = Field(default_factory=dict)
    extra_types: dict[str, ColumnType] = Field(default_factory=dict)

    def column_type(self, column: str) -> ColumnType | None:
        """Tipo declarado de la columna (fija o extra); None si no se conoce."""
        return FIXED_COLUMNS.get(column) or self.extra_types.get(column)

    def value(self, column: str) -> Any:
        if column == "json":
            return self.json_document
        if column in FIXED_COLUMNS:
            return getattr(self, column)
        return self.extras.get(column)

    def as_dict(self) -> dict[str, Any]:
        """Todas las columnas fijas (más las extra) en orden de tabla."""
        out = {name: self.value(name) for name in FIXED_COLUMNS}
        out.update(self.extras)
        return out

    def project(self, columns: Iterable[Column | str]) -> dict[str, Any]:
        """Proyecta la fila sobre las columnas pedidas, en el orden pedido."""
        out: dict[str, Any] = {}
        for col in columns:
            name = col.name if isinstance(col, Column) else col
            out[name] = self.value(name)
        return out


def coerce_columns(columns: Sequence[Column | str] | None) -> list[Column]:
    if not columns:
        return [Column(name=name, type=kind) for name, kind in FIXED_COLUMNS.items()]
    return [Column.coerce(c) for c in columns]
