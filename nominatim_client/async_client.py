"""
Cliente asíncrono para servidores Nominatim basado en httpx

Copyright (C) 2019-2025 Institut Cartogràfic i Geològic de Catalunya (ICGC)
Copyright (C) 2025 Goalnefesh

This file is part of nominatim-client, derived from the Pelias client of
geocoder-mcp, a fork of the Open ICGC QGIS Plugin.
Original project: https://github.com/OpenICGC/QgisPlugin

This program is free software; you can redistribute it and/or modify
it under the terms of the GNU General Public License as published by
the Free Software Foundation; either version 2 of the License, or
(at your option) any later version.

Reintenta los errores transitorios (timeouts, errores de conexión, 429 y
500/502/503/504) con backoff exponencial, igual que el cliente síncrono.
El resto de errores HTTP no se reintentan.
"""

import asyncio
import random
import time

import httpx

from .client import RETRY_STATUS_CODES, BaseClient, decode_body, places_from_payload
from .config import DEFAULT_URL, DEFAULT_USER_AGENT
from .exceptions import ServiceConnectionError, ServiceError, ServiceHTTPError, ServiceTimeoutError
from .models import Place, PlaceResponse


class AsyncNominatimClient(BaseClient):
    """Cliente asíncrono con reintentos y soporte para cliente httpx externo.

    Example:
        async with AsyncNominatimClient(user_agent="my-app/1.0") as client:
            search = client.new_search().query("Paris")
            places = await client.find_places(search)

    Attributes:
        client: httpx.AsyncClient usado para las peticiones
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
        retry_base_delay=0.5,
        retry_max_delay=10.0,
        retry_on_5xx=True,
        verify_ssl=True,
        http_client: httpx.AsyncClient | None = None,
        logger=None,
    ):
        """Configura el cliente.

        Args:
            max_retries: Reintentos tras el primer intento (default: 3)
            retry_base_delay: Delay inicial del backoff exponencial (segundos)
            retry_max_delay: Delay máximo entre reintentos (segundos)
            retry_on_5xx: Reintentar automáticamente en errores 5xx (429 se reintenta siempre)
            verify_ssl: Verificar certificados SSL (ignorado con http_client)
            http_client: httpx.AsyncClient externo. No se cierra con close();
                         el usuario es responsable de cerrarlo.

        Ver BaseClient para el resto de argumentos.
        """
        super().__init__(url, timeout, user_agent, headers, default_format, email, logger)
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._retry_on_5xx = retry_on_5xx

        if http_client is not None:
            self.client = http_client
            self._owns_client = False
            if not verify_ssl:
                self.log.warning("verify_ssl=False ignorado: se usa el http_client externo")
        else:
            self.client = httpx.AsyncClient(timeout=timeout, verify=verify_ssl)
            self._owns_client = True

    def _calculate_backoff_delay(self, attempt: int) -> float:
        """Delay antes del reintento ``attempt`` (0-based) con un 10% de jitter."""
        delay = self._retry_base_delay * (2 ** attempt)
        delay *= random.uniform(0.9, 1.1)
        return min(delay, self._retry_max_delay)

    async def find(self, request, headers=None):
        """Envía la petición y devuelve la respuesta decodificada.

        Ver NominatimClient.find().
        """
        return (await self._send(request, headers))[1]

    async def find_places(self, request, headers=None) -> list[Place]:
        self._check_places_format(request)
        return places_from_payload(await self.find(request, headers))

    async def find_response(self, request, headers=None) -> PlaceResponse:
        self._check_places_format(request)
        start_time = time.time()
        params, payload = await self._send(request, headers)
        places = places_from_payload(payload)
        elapsed_ms = (time.time() - start_time) * 1000
        return PlaceResponse(
            path=request.path,
            params=params,
            results=places,
            count=len(places),
            time_ms=elapsed_ms,
        )

    async def _send(self, request, headers=None):
        response_format, params = self.prepare(request)
        url = self.url + request.path

        start_time = time.time()
        text = await self._get(url, params, headers)
        elapsed = (time.time() - start_time) * 1000
        self.log.info("[NETWORK_REQ] %s | Format: %s | Time: %.2fms", request.path, response_format, elapsed)

        return params, decode_body(response_format, text, url)

    def _is_retryable_status(self, status_code: int) -> bool:
        if status_code not in RETRY_STATUS_CODES:
            return False
        return status_code < 500 or self._retry_on_5xx

    async def _get(self, url, params, headers=None) -> str:
        request_headers = dict(self.headers)
        request_headers.update(headers or {})
        self.last_request = url
        attempts = self._max_retries + 1
        last_error = None

        for attempt in range(attempts):
            try:
                response = await self.client.get(
                    url, params=params, headers=request_headers, timeout=self.timeout
                )
                self.last_request = str(response.url)
                response.raise_for_status()
                return response.text

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if not self._is_retryable_status(status_code):
                    raise ServiceHTTPError(
                        f"Error HTTP {status_code}",
                        url=url,
                        status_code=status_code,
                        response_text=e.response.text,
                    ) from e
                last_error = e
            except httpx.TransportError as e:
                # Incluye TimeoutException y ConnectError
                last_error = e
            except httpx.RequestError as e:
                # DecodingError, TooManyRedirects: no son transitorios
                raise ServiceError(f"Error en la petición Nominatim: {e}", url=url) from e

            if attempt < attempts - 1:
                delay = self._calculate_backoff_delay(attempt)
                self.log.warning(
                    "Reintento %d/%d para %s en %.2fs: %s",
                    attempt + 1, self._max_retries, url, delay, last_error,
                )
                await asyncio.sleep(delay)

        if isinstance(last_error, httpx.TimeoutException):
            raise ServiceTimeoutError(
                f"Timeout después de {self.timeout}s ({attempts} intentos)",
                url=url,
                details={"timeout": self.timeout, "attempts": attempts},
            ) from last_error
        if isinstance(last_error, httpx.HTTPStatusError):
            raise ServiceHTTPError(
                f"Error HTTP {last_error.response.status_code} tras {attempts} intentos",
                url=url,
                details={"attempts": attempts},
                status_code=last_error.response.status_code,
                response_text=last_error.response.text,
            ) from last_error
        raise ServiceConnectionError(
            f"Error de conexión tras {attempts} intentos",
            url=url,
            details={"attempts": attempts},
        ) from last_error

    async def close(self):
        """Cierra el cliente httpx si lo creó el propio cliente (idempotente)."""
        if self._owns_client and not self.client.is_closed:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
