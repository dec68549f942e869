"""Configuración del Core.

Responsabilidad:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Valida las opciones de servidor que entrega el motor anfitrión (`FdwOptions`)
  y las combina con la configuración de sesión.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ConfigurationError

DEFAULT_API_URL = "https://api.gravatar.com/v3/profiles"
PACKAGE_NAME = "gravatar-fdw"
PACKAGE_VERSION = "0.1.0"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / PACKAGE_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / PACKAGE_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / PACKAGE_NAME
    return Path.home() / ".config" / PACKAGE_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: Mapping[str, str | None], env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# gravatar-fdw user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración de sesión.

    Las opciones de servidor (`FdwOptions`) tienen prioridad sobre estos valores.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAVATAR_FDW_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_url: str = Field(
        default=DEFAULT_API_URL,
        min_length=8,
        description="Base URL del endpoint de perfiles.",
    )
    api_key: str | None = Field(
        default=None,
        description="API key directa (no recomendado en producción).",
    )
    api_key_id: str | None = Field(
        default=None,
        description="Referencia a la API key en el secret store.",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default=f"{PACKAGE_NAME}/{PACKAGE_VERSION}",
        min_length=1,
        description="User-Agent enviado al servicio.",
    )
    max_attempts: int = Field(
        default=4,
        ge=1,
        le=10,
        description="Intentos totales ante fallos transitorios (1 inicial + reintentos).",
    )
    backoff_base_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Espera base del backoff exponencial (se duplica por intento).",
    )
    log_level: str = Field(
        default="INFO",
        description="Nivel de logging de la CLI.",
    )


class FdwOptions(BaseModel):
    """Opciones de servidor tal y como llegan del anfitrión (`OPTIONS (...)`)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    api_url: str | None = None
    api_key: str | None = None
    api_key_id: str | None = None

    @field_validator("api_url", "api_key", "api_key_id", mode="before")
    @classmethod
    def _blank_as_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("api_url")
    @classmethod
    def _check_url(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith(("http://", "https://")):
            raise ValueError("api_url must be an http(s) URL")
        return value


class ServerConfig(BaseModel):
    """Configuración resuelta una vez por servidor/sesión.

    Se pasa explícitamente al `RequestBuilder`; el estado de cada scan no la muta.
    """

    model_config = ConfigDict(frozen=True)

    api_url: str = DEFAULT_API_URL
    api_key: str | None = None
    api_key_id: str | None = None
    user_agent: str = f"{PACKAGE_NAME}/{PACKAGE_VERSION}"
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    max_attempts: int = Field(default=4, ge=1)
    backoff_base_seconds: float = Field(default=0.5, ge=0)


def build_server_config(
    options: Mapping[str, Any] | None = None,
    settings: AppSettings | None = None,
) -> ServerConfig:
    """Combina opciones de servidor con `AppSettings`.

    Raises:
        ConfigurationError: si alguna opción no es válida.
    """

    settings = settings or AppSettings()
    try:
        parsed = FdwOptions.model_validate(dict(options or {}))
    except ValidationError as exc:
        raise ConfigurationError(
            "Invalid server options",
            details={"errors": exc.errors(include_url=False)},
        ) from exc

    return ServerConfig(
        api_url=(parsed.api_url or settings.api_url).rstrip("/"),
        api_key=parsed.api_key or settings.api_key,
        api_key_id=parsed.api_key_id or settings.api_key_id,
        user_agent=settings.user_agent,
        http_timeout_seconds=settings.http_timeout_seconds,
        max_attempts=settings.max_attempts,
        backoff_base_seconds=settings.backoff_base_seconds,
    )
