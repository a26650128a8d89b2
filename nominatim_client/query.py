"""
Estado común de las peticiones a Nominatim.

Cada builder (Search, Reverse, Lookup) posee su propio QueryParams: el mapa
de parámetros, la ruta del endpoint y la lista de formatos aceptados no se
comparten nunca entre instancias.
"""

from urllib.parse import urlencode

from .exceptions import InvalidParameterError

BASE_FORMATS = ("xml", "json")
JSON_FORMATS = ("json", "jsonv2")
POLYGON_TYPES = ("geojson", "kml", "svg", "text")


class QueryParams:
    """Mapa de parámetros de una petición junto con su ruta y formatos.

    Attributes:
        path: Ruta relativa del endpoint (ej: "search")
        accepted_formats: Formatos de respuesta aceptados, en orden de alta
    """

    def __init__(self, path: str = "", accepted_formats=None):
        self.path = path
        self.accepted_formats: list[str] = list(BASE_FORMATS)
        self.accepted_formats.extend(accepted_formats or [])
        self._values: dict[str, str] = {}

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def append(self, key: str, value: str, separator: str = ",") -> None:
        """Añade un valor a una lista separada por comas."""
        current = self._values.get(key)
        self._values[key] = value if not current else current + separator + value

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def to_dict(self) -> dict[str, str]:
        return dict(self._values)

    def to_query_string(self) -> str:
        return urlencode(self._values)


class BaseRequest:
    """Opciones comunes a todas las peticiones de Nominatim.

    Las subclases fijan la ruta y los formatos extra en ``__init__`` y añaden
    sus propios setters. Todos los setters devuelven la propia instancia para
    permitir encadenar llamadas:

        Search().query("Paris").language("fr").address_details()
    """

    path = ""
    extra_formats: tuple[str, ...] = ()

    def __init__(self):
        self._params = QueryParams(self.path, self.extra_formats)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(path={self.path!r}, params={self.params!r})"

    # -- Lectura ---------------------------------------------------------------

    @property
    def params(self) -> dict[str, str]:
        """Copia del mapa de parámetros acumulados."""
        return self._params.to_dict()

    @property
    def accepted_formats(self) -> list[str]:
        return list(self._params.accepted_formats)

    @property
    def response_format(self) -> str | None:
        """Formato pedido explícitamente, o None si se deja al cliente."""
        return self._params.get("format")

    def query_string(self) -> str:
        """Parámetros codificados para la URL."""
        return self._params.to_query_string()

    # -- Opciones comunes ------------------------------------------------------

    def format(self, fmt: str):
        """Formato de la respuesta (xml, json, ...).

        Raises:
            InvalidParameterError: Si el formato no está entre los aceptados
        """
        if fmt not in self._params.accepted_formats:
            raise InvalidParameterError(
                "Format is not supported",
                details={"format": fmt, "accepted": ",".join(self._params.accepted_formats)},
            )
        self._params.set("format", fmt)
        return self

    def language(self, language: str):
        """Idioma preferido de los resultados (cabecera Accept-Language)."""
        self._params.set("accept-language", language)
        return self

    def polygon(self, polygon: str):
        """Incluye la geometría del resultado en el formato indicado.

        Raises:
            InvalidParameterError: Si el tipo de polígono no es geojson, kml, svg o text
        """
        if polygon not in POLYGON_TYPES:
            raise InvalidParameterError(
                "This polygon format is not supported",
                details={"polygon": polygon},
            )
        self._params.set("polygon_" + polygon, "1")
        return self

    def address_details(self, details: bool = True):
        self._params.set("addressdetails", "1" if details else "0")
        return self

    def extra_tags(self, tags: bool = True):
        self._params.set("extratags", "1" if tags else "0")
        return self

    def name_details(self, details: bool = True):
        self._params.set("namedetails", "1" if details else "0")
        return self

    def email(self, email: str):
        """Dirección de contacto enviada al servicio en peticiones masivas."""
        self._params.set("email", email)
        return self
