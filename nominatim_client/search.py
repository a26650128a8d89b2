"""
Builder de búsquedas (geocodificación directa) contra el endpoint /search.

Ver https://nominatim.org/release-docs/latest/api/Search/
"""

import re

from .exceptions import InvalidParameterError
from .query import BaseRequest

COUNTRY_CODE_RE = re.compile(r"[a-zA-Z]{2}")


class Search(BaseRequest):
    """Busca lugares en un servicio Nominatim.

    Admite dos modos que no deben combinarse: texto libre con ``query()`` o
    dirección estructurada con ``street()``, ``city()``, ``county()``,
    ``state()``, ``country()`` y ``postal_code()``. La combinación no se
    valida aquí; el servicio decide cómo interpretarla.

    Example:
        search = Search().query("Paris").country_code("fr").limit(10)
        search.params  # {"q": "Paris", "countrycodes": "fr", "limit": "10"}
    """

    path = "search"
    extra_formats = ("html", "jsonv2")

    STRUCTURED_FIELDS = ("street", "city", "county", "state", "country", "postalcode")

    def query(self, query: str) -> "Search":
        """Texto libre a buscar."""
        self._params.set("q", query)
        return self

    def street(self, street: str) -> "Search":
        """Calle (número y nombre). No combinar con query()."""
        self._params.set("street", street)
        return self

    def city(self, city: str) -> "Search":
        self._params.set("city", city)
        return self

    def county(self, county: str) -> "Search":
        self._params.set("county", county)
        return self

    def state(self, state: str) -> "Search":
        self._params.set("state", state)
        return self

    def country(self, country: str) -> "Search":
        self._params.set("country", country)
        return self

    def postal_code(self, postal_code: str) -> "Search":
        self._params.set("postalcode", postal_code)
        return self

    def country_code(self, country_code: str) -> "Search":
        """Limita los resultados a un país; se acumula en llamadas sucesivas.

        Args:
            country_code: Código ISO 3166-1 alpha2 (ej: "gb", "de")

        Raises:
            InvalidParameterError: Si el código no son exactamente dos letras
        """
        if not isinstance(country_code, str) or not COUNTRY_CODE_RE.fullmatch(country_code):
            raise InvalidParameterError(
                f'Invalid country code: "{country_code}"',
                details={"parameter": "countrycodes"},
            )
        self._params.append("countrycodes", country_code)
        return self

    def viewbox(self, left: str, top: str, right: str, bottom: str) -> "Search":
        """Área preferente para los resultados."""
        self._params.set("viewbox", f"{left},{top},{right},{bottom}")
        return self

    def exclude_place_ids(self, *place_ids) -> "Search":
        """Excluye de los resultados los place_id indicados.

        Raises:
            InvalidParameterError: Si no se pasa ningún identificador
        """
        if not place_ids:
            raise InvalidParameterError(
                "No place id in parameter",
                details={"parameter": "exclude_place_ids"},
            )
        self._params.set("exclude_place_ids", ", ".join(str(place_id) for place_id in place_ids))
        return self

    def limit(self, limit: int) -> "Search":
        """Número máximo de resultados devueltos."""
        self._params.set("limit", str(limit))
        return self

    def is_structured(self) -> bool:
        """True si se ha rellenado algún campo de dirección estructurada."""
        return any(field in self._params for field in self.STRUCTURED_FIELDS)

    def mixes_query_modes(self) -> bool:
        """True si se combinan texto libre y campos estructurados."""
        return "q" in self._params and self.is_structured()
