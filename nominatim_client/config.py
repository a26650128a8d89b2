"""
Configuración del cliente Nominatim.

Los valores se pueden pasar directamente o leer del entorno:

    NOMINATIM_URL           URL base del servicio
    NOMINATIM_TIMEOUT       Timeout en segundos
    NOMINATIM_USER_AGENT    User-Agent enviado (obligatorio en el servidor público)
    NOMINATIM_EMAIL         Email de contacto opcional
    NOMINATIM_MAX_RETRIES   Reintentos en errores transitorios
    NOMINATIM_LOG_LEVEL     Nivel de logging (DEBUG, INFO, ...)
"""

import logging
import os

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

DEFAULT_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "nominatim-client/1.0"

ENV_PREFIX = "NOMINATIM_"


class NominatimSettings(BaseModel):
    """Parámetros validados para construir un cliente."""

    url: str = Field(DEFAULT_URL, description="URL base del servicio Nominatim")
    timeout: float = Field(10, gt=0, description="Timeout en segundos")
    user_agent: str = Field(DEFAULT_USER_AGENT, description="User-Agent de las peticiones")
    email: str | None = Field(None, description="Email de contacto")
    max_retries: int = Field(3, ge=0, le=10, description="Reintentos en errores transitorios")
    log_level: str = Field("WARNING", description="Nivel de logging")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("La URL debe empezar por http:// o https://")
        return v.rstrip("/")

    @field_validator("user_agent")
    @classmethod
    def validate_user_agent(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("El User-Agent no puede estar vacío")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Nivel de logging desconocido: {v}")
        return level

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def load(cls, **values) -> "NominatimSettings":
        """Crea la configuración convirtiendo errores de validación en ConfigurationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(
                "Configuración de Nominatim inválida",
                details={"errors": "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())},
            ) from e

    @classmethod
    def from_env(cls, environ=None) -> "NominatimSettings":
        """Lee la configuración de las variables NOMINATIM_*.

        Args:
            environ: Mapa de variables (default: os.environ)

        Raises:
            ConfigurationError: Si algún valor no es válido
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field_name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + field_name.upper())
            if raw is not None and raw != "":
                values[field_name] = raw
        return cls.load(**values)
