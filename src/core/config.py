"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI ni la web.
- Permite que adaptadores (HTTP/plantillas) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "logo-test"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "logo-test"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "logo-test"
    return Path.home() / ".config" / "logo-test"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI, web y adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOGO_TEST_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for the outbound page fetch (seconds).",
    )
    max_redirects: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Maximum redirects followed when fetching a wiki page.",
    )
    max_response_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Hard cap on the fetched page body size (bytes).",
    )
    user_agent: str = Field(
        default="logo-test/0.1 (https://logo-test.toolforge.org/)",
        min_length=1,
        description="User-Agent sent to wikis and Commons.",
    )

    wiki_scheme: str = Field(
        default="https",
        pattern=r"^https?$",
        description="Scheme used to reach the wiki (http only for local fixture servers).",
    )
    allowed_wiki_suffixes: list[str] = Field(
        default_factory=list,
        description="If set, the wiki host must end with one of these suffixes.",
    )
    allowed_logo_schemes: list[str] = Field(
        default_factory=lambda: ["https", "http"],
        min_length=1,
        description="URL schemes accepted for candidate logos.",
    )
    allowed_logo_extensions: list[str] = Field(
        default_factory=lambda: ["svg", "png", "jpg", "jpeg", "gif", "webp"],
        min_length=1,
        description="File extensions accepted for File: logo references.",
    )
    commons_upload_base: str = Field(
        default="https://upload.wikimedia.org/wikipedia/commons",
        min_length=8,
        description="Base URL of the Commons upload store used to expand File: names.",
    )
    logo_width: int = Field(
        default=135,
        ge=16,
        le=1024,
        description="Thumbnail width (px) for File: logos; 1.5x and 2x derive from it.",
    )

    verify_logo: bool = Field(
        default=True,
        description="Check that the logo URL serves an image/* resource before previewing.",
    )
    inject_base_href: bool = Field(
        default=True,
        description="Insert <base href> so relative URLs keep pointing at the wiki.",
    )

    host: str = Field(default="127.0.0.1", description="Bind address for `serve`.")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port for `serve`.")
    log_level: str = Field(default="INFO", description="Root log level.")
