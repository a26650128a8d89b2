"""
Cliente síncrono para servidores Nominatim

Copyright (C) 2019-2025 Institut Cartogràfic i Geològic de Catalunya (ICGC)
Copyright (C) 2025 Goalnefesh

This file is part of nominatim-client, derived from the Pelias client of
geocoder-mcp, a fork of the Open ICGC QGIS Plugin.
Original project: https://github.com/OpenICGC/QgisPlugin

This program is free software; you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation; either version 2 of the License, or
(at your option) any later version.

Envía las peticiones construidas con Search, Reverse o Lookup, negocia el
formato de respuesta y decodifica el cuerpo recibido.
"""

import json
import time
from urllib.parse import urlencode
from xml.etree import ElementTree

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from requests.exceptions import ConnectionError, HTTPError, RequestException, RetryError, Timeout
from urllib3.util.retry import Retry

from .config import DEFAULT_URL, DEFAULT_USER_AGENT, NominatimSettings
from .exceptions import (
    ConfigurationError,
    InvalidParameterError,
    ResponseFormatError,
    ServiceConnectionError,
    ServiceError,
    ServiceHTTPError,
    ServiceTimeoutError,
)
from .lookup import Lookup
from .models import Place, PlaceResponse
from .query import JSON_FORMATS
from .reverse import Reverse
from .search import Search
from .utils.logging import get_logger

# Respuestas que se reintentan (429: límite de peticiones del servidor)
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def decode_body(response_format: str, text: str, url: str | None = None):
    """Decodifica el cuerpo de la respuesta según el formato negociado.

    Returns:
        dict | list para json/jsonv2, ElementTree.Element para xml y el texto
        tal cual para cualquier otro formato (html).

    Raises:
        ResponseFormatError: Si el cuerpo no es válido para el formato
    """
    try:
        if response_format in JSON_FORMATS:
            return json.loads(text)
        if response_format == "xml":
            return ElementTree.fromstring(text)
    except (ValueError, ElementTree.ParseError) as e:
        raise ResponseFormatError(
            f"Error decodificando respuesta {response_format}: {e}",
            details={"format": response_format, "url": url},
        ) from e
    return text


def places_from_payload(payload) -> list[Place]:
    """Convierte una respuesta JSON decodificada en una lista de Place.

    /reverse devuelve un único objeto (o {"error": ...} si no hay resultado);
    /search y /lookup devuelven listas.
    """
    if isinstance(payload, dict):
        if "error" in payload:
            return []
        payload = [payload]
    try:
        return [Place.model_validate(item) for item in payload]
    except ValidationError as e:
        raise ResponseFormatError(
            "La respuesta no contiene lugares válidos",
            details={"errors": e.error_count()},
        ) from e


class BaseClient:
    """Configuración y preparación de peticiones comunes a los clientes síncrono y asíncrono."""

    def __init__(
        self,
        url=DEFAULT_URL,
        timeout=10,
        user_agent=DEFAULT_USER_AGENT,
        headers=None,
        default_format="json",
        email=None,
        logger=None,
    ):
        """Valida la URL y guarda la configuración.

        Args:
            url: URL base del servidor Nominatim
            timeout: Timeout en segundos para las peticiones
            user_agent: User-Agent enviado en cada petición
            headers: Cabeceras HTTP adicionales
            default_format: Formato usado si la petición no pide ninguno
            email: Email de contacto añadido a las peticiones que no lo llevan
            logger: Logger opcional (default: logger "nominatim_client")

        Raises:
            ConfigurationError: Si la URL está vacía o no es http(s)
        """
        if not url or not url.strip():
            raise ConfigurationError(
                "La URL del servidor Nominatim no puede estar vacía",
                details={"url": url},
            )
        url = url.strip()
        if not url.startswith(("http://", "https://")):
            raise ConfigurationError(
                "La URL del servidor Nominatim debe empezar por http:// o https://",
                details={"url": url},
            )

        self.url = url + ("" if url.endswith("/") else "/")
        self.timeout = timeout
        self.default_format = default_format
        self.email = email
        self.headers = {"User-Agent": user_agent, "Accept-Charset": "utf-8"}
        self.headers.update(headers or {})
        self.last_request = None
        self.log = get_logger(logger)

    @classmethod
    def from_settings(cls, settings: NominatimSettings | None = None, **kwargs):
        """Crea un cliente a partir de NominatimSettings (o del entorno si no se pasa)."""
        settings = settings or NominatimSettings.from_env()
        client = cls(
            url=settings.url,
            timeout=settings.timeout,
            user_agent=settings.user_agent,
            email=settings.email,
            max_retries=settings.max_retries,
            **kwargs,
        )
        client.log.setLevel(settings.log_level_value)
        return client

    # -- Factorías -------------------------------------------------------------

    def new_search(self) -> Search:
        return Search()

    def new_reverse(self) -> Reverse:
        return Reverse()

    def new_lookup(self) -> Lookup:
        return Lookup()

    # -- Preparación -----------------------------------------------------------

    def negotiate_format(self, request) -> str:
        """Formato con el que se enviará la petición.

        Raises:
            InvalidParameterError: Si la petición no acepta el formato por defecto
        """
        if request.response_format:
            return request.response_format
        if self.default_format not in request.accepted_formats:
            raise InvalidParameterError(
                "Format is not supported",
                details={"format": self.default_format, "path": request.path},
            )
        return self.default_format

    def prepare(self, request) -> tuple[str, dict[str, str]]:
        """Parámetros finales de la petición sin modificar el builder."""
        response_format = self.negotiate_format(request)
        params = request.params
        params["format"] = response_format
        if self.email and "email" not in params:
            params["email"] = self.email

        if isinstance(request, Search) and request.mixes_query_modes():
            self.log.warning(
                "Search combina texto libre (q) con campos estructurados: %s", params
            )
        return response_format, params

    def build_url(self, request) -> str:
        """URL completa (con query string) que se enviaría para la petición."""
        _, params = self.prepare(request)
        return self.url + request.path + "?" + urlencode(params)

    def last_sent(self):
        """Última URL pedida, con parámetros (útil para debug)."""
        return self.last_request

    def _check_places_format(self, request) -> None:
        if self.negotiate_format(request) not in JSON_FORMATS:
            raise InvalidParameterError(
                "Los lugares solo se pueden obtener en formato json o jsonv2",
                details={"format": request.response_format},
            )


class NominatimClient(BaseClient):
    """Cliente síncrono basado en requests con reintentos automáticos.

    Example:
        with NominatimClient(user_agent="my-app/1.0") as client:
            search = client.new_search().query("Paris").limit(5)
            places = client.find_places(search)
    """

    def __init__(
        self,
        url=DEFAULT_URL,
        timeout=10,
        user_agent=DEFAULT_USER_AGENT,
        headers=None,
        default_format="json",
        email=None,
        max_retries=3,
        verify_ssl=True,
        session: requests.Session | None = None,
        logger=None,
    ):
        """Configura la conexión al servidor.

        Args:
            max_retries: Número máximo de reintentos (default: 3)
            verify_ssl: Verificar certificados SSL
            session: Sesión de requests externa; no se cierra con close()

        Ver BaseClient para el resto de argumentos.
        """
        super().__init__(url, timeout, user_agent, headers, default_format, email, logger)
        self.verify_ssl = verify_ssl

        if session is not None:
            self.session = session
            self._owns_session = False
        else:
            self.session = requests.Session()
            self._owns_session = True
            retry_strategy = Retry(
                total=max_retries,
                backoff_factor=0.3,  # 0.3s, 0.6s, 1.2s entre reintentos
                status_forcelist=RETRY_STATUS_CODES,
                allowed_methods=["GET"],
                # La última respuesta llega a raise_for_status() como ServiceHTTPError
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)

    def find(self, request, headers=None):
        """Envía la petición y devuelve la respuesta decodificada.

        Args:
            request: Search, Reverse o Lookup
            headers: Cabeceras adicionales para esta petición

        Returns:
            dict | list | ElementTree.Element | str según el formato negociado

        Raises:
            InvalidParameterError: Si el formato no se puede negociar
            ServiceTimeoutError: Si la petición excede el timeout
            ServiceConnectionError: Si hay error de conexión
            ServiceHTTPError: Si el servidor responde con error HTTP
            ResponseFormatError: Si el cuerpo no se puede decodificar
        """
        return self._send(request, headers)[1]

    def find_places(self, request, headers=None) -> list[Place]:
        """Como find() pero devuelve objetos Place (solo formatos JSON)."""
        self._check_places_format(request)
        return places_from_payload(self.find(request, headers))

    def find_response(self, request, headers=None) -> PlaceResponse:
        """Devuelve un PlaceResponse con los lugares y el tiempo empleado."""
        self._check_places_format(request)
        start_time = time.time()
        params, payload = self._send(request, headers)
        places = places_from_payload(payload)
        elapsed_ms = (time.time() - start_time) * 1000
        return PlaceResponse(
            path=request.path,
            params=params,
            results=places,
            count=len(places),
            time_ms=elapsed_ms,
        )

    def _send(self, request, headers=None):
        """Envía la petición y devuelve (parámetros enviados, respuesta decodificada)."""
        response_format, params = self.prepare(request)
        url = self.url + request.path

        start_time = time.time()
        text = self._get(url, params, headers)
        elapsed = (time.time() - start_time) * 1000
        self.log.info("[NETWORK_REQ] %s | Format: %s | Time: %.2fms", request.path, response_format, elapsed)

        return params, decode_body(response_format, text, url)

    def _get(self, url, params, headers=None) -> str:
        request_headers = dict(self.headers)
        request_headers.update(headers or {})
        self.last_request = url
        self.log.debug("GET %s %s", url, params)

        try:
            response = self.session.get(
                url,
                params=params,
                headers=request_headers,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )

            # URL completa con parámetros para debug
            self.last_request = response.url

            response.raise_for_status()
            return response.text

        except Timeout as e:
            raise ServiceTimeoutError(
                f"Timeout después de {self.timeout}s",
                url=url,
                details={"timeout": self.timeout},
            ) from e
        except ConnectionError as e:
            raise ServiceConnectionError(f"Error de conexión con el servidor: {url}", url=url) from e
        except HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            raise ServiceHTTPError(
                f"Error HTTP {status_code}",
                url=url,
                status_code=status_code,
                response_text=e.response.text if e.response is not None else None,
            ) from e
        except RetryError as e:
            raise ServiceError(f"Reintentos agotados: {e}", url=url) from e
        except RequestException as e:
            raise ServiceError(f"Error en la petición Nominatim: {e}", url=url) from e

    def close(self):
        """Cierra la sesión de requests si la creó el propio cliente."""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
