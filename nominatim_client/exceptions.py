"""
Jerarquía de excepciones del cliente Nominatim.

Todas las excepciones heredan de NominatimError, de modo que un único
``except NominatimError`` captura cualquier fallo de la librería.
"""

from typing import Optional, Dict, Any

__all__ = [
    "NominatimError",
    "InvalidParameterError",
    "ConfigurationError",
    "ResponseFormatError",
    "ServiceError",
    "ServiceConnectionError",
    "ServiceTimeoutError",
    "ServiceHTTPError",
]


class NominatimError(Exception):
    """Clase base para todas las excepciones del cliente.

    Attributes:
        message: Mensaje de error principal
        details: Diccionario con contexto adicional del error
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        if self.details:
            return f"{class_name}(message={self.message!r}, details={self.details!r})"
        return f"{class_name}(message={self.message!r})"

    def to_dict(self) -> Dict[str, Any]:
        """Convierte la excepción a diccionario serializable en JSON.

        Returns:
            dict: type, message, details y los atributos propios de la subclase
        """
        result = {
            "type": self.__class__.__name__,
            "message": self.message,
            "details": self.details.copy(),
        }

        if getattr(self, "url", None):
            result["url"] = self.url
        if getattr(self, "status_code", None) is not None:
            result["status_code"] = self.status_code
        if getattr(self, "response_text", None):
            result["response_text"] = self.response_text[:200]

        return result


class InvalidParameterError(NominatimError):
    """Parámetro de consulta rechazado antes de enviar la petición.

    Se lanza de forma inmediata en la llamada del builder que lo recibe:
    - Código de país que no es ISO 3166-1 alpha-2
    - Lista de place ids a excluir vacía
    - Formato de respuesta o tipo de polígono no soportado
    - Tipo/identificador OSM o zoom inválidos

    Example:
        raise InvalidParameterError(
            'Invalid country code: "esp"',
            details={"parameter": "countrycodes", "value": "esp"}
        )
    """
    pass


class ConfigurationError(NominatimError):
    """Configuración del cliente inválida (URL vacía, timeout negativo, etc.)."""
    pass


class ResponseFormatError(NominatimError):
    """El cuerpo de la respuesta no se puede decodificar en el formato pedido."""
    pass


class ServiceError(NominatimError):
    """Clase base para errores de comunicación con el servicio Nominatim.

    Attributes:
        url: URL que causó el error (si está disponible)
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, url: Optional[str] = None):
        super().__init__(message, details)
        self.url = url
        if url:
            self.details["url"] = url


class ServiceConnectionError(ServiceError):
    """No se pudo establecer conexión con el servidor (red caída, DNS, etc.)."""
    pass


class ServiceTimeoutError(ServiceError):
    """La petición excedió el tiempo máximo de espera."""
    pass


class ServiceHTTPError(ServiceError):
    """El servidor respondió con un código de error HTTP.

    Attributes:
        status_code: Código de estado HTTP
        response_text: Texto de la respuesta del servidor

    Example:
        raise ServiceHTTPError(
            "Error HTTP 400 en search",
            url="https://nominatim.openstreetmap.org/search",
            status_code=400,
            response_text="Bad Request"
        )
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
        response_text: Optional[str] = None,
    ):
        super().__init__(message, details, url)
        self.status_code = status_code
        self.response_text = response_text

        if status_code is not None:
            self.details["status_code"] = status_code
        if response_text:
            self.details["response_text"] = response_text[:200]
