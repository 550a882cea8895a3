"""Configuración de la aplicación.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Los servicios del Core NO leen `AppSettings`: reciben URL, tokens y
  tamaños por constructor. Solo la CLI resuelve settings y los inyecta.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.policy import DuplicatePolicy

DEFAULT_CLOUD_LOGIN_URL = "https://frappecloud.com/api/method/press.api.site.login"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "frappe-doctypes"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "frappe-doctypes"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "frappe-doctypes"
    return Path.home() / ".config" / "frappe-doctypes"


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


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario.

    Las claves con valor `None` se ignoran (no borran lo existente).
    """

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# frappe-doctypes user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="FRAPPE_DOCTYPES_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    site_url: str | None = Field(
        default=None,
        description="URL base del sitio Frappe (p.ej. https://erp.example.com).",
    )
    api_token: str | None = Field(
        default=None,
        description="Token de usuario `api_key:api_secret` para el sitio.",
    )
    cloud_token: str | None = Field(
        default=None,
        description="Token de Frappe Cloud para obtener sesiones por sitio.",
    )
    cloud_login_url: str = Field(
        default=DEFAULT_CLOUD_LOGIN_URL,
        min_length=8,
        description="Endpoint de la autoridad que emite sesiones por sitio.",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="frappe-doctypes/0.1",
        min_length=1,
        description="User-Agent para las peticiones HTTP.",
    )

    batch_size: int = Field(
        default=1000,
        ge=1,
        le=100_000,
        description="Registros por página en `/api/resource`.",
    )
    max_concurrency: int = Field(
        default=8,
        ge=1,
        le=100,
        description="Peticiones de página simultáneas como máximo.",
    )
    token_validity_hours: int = Field(
        # La sesión real dura 3 días; una hora menos como margen.
        default=3 * 24 - 1,
        ge=1,
        description="Validez local asumida para una sesión de sitio (horas).",
    )
    duplicate_info_policy: DuplicatePolicy = Field(
        default=DuplicatePolicy.LAST,
        description="Resolución de `DocTypeInfo` con nombre repetido.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging (DEBUG, INFO, WARNING, ERROR).",
    )
    log_json: bool = Field(
        default=False,
        description="Emitir logs en JSON en lugar de formato consola.",
    )
