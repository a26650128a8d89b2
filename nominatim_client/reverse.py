"""
Builder de geocodificación inversa contra el endpoint /reverse.
"""

from .exceptions import InvalidParameterError
from .query import BaseRequest

OSM_TYPES = ("N", "W", "R")
MAX_ZOOM = 18


class Reverse(BaseRequest):
    """Obtiene la dirección de unas coordenadas o de un objeto OSM.

    Example:
        Reverse().lat_lon("48.8583", "2.2945").zoom(18)
        Reverse().osm_type("W").osm_id(5013364)
    """

    path = "reverse"
    extra_formats = ("jsonv2",)

    def lat_lon(self, lat, lon) -> "Reverse":
        """Coordenadas WGS84 a consultar."""
        self._params.set("lat", str(lat))
        self._params.set("lon", str(lon))
        return self

    def osm_type(self, osm_type: str) -> "Reverse":
        """Tipo de objeto OSM: N (nodo), W (vía) o R (relación).

        Raises:
            InvalidParameterError: Si el tipo no es N, W o R
        """
        normalized = osm_type.upper() if isinstance(osm_type, str) else osm_type
        if normalized not in OSM_TYPES:
            raise InvalidParameterError(
                "Osm type is not supported",
                details={"osm_type": osm_type},
            )
        self._params.set("osm_type", normalized)
        return self

    def osm_id(self, osm_id) -> "Reverse":
        self._params.set("osm_id", str(osm_id))
        return self

    def zoom(self, zoom: int) -> "Reverse":
        """Nivel de detalle de la dirección (0 = país, 18 = edificio).

        Raises:
            InvalidParameterError: Si el zoom está fuera de [0, 18]
        """
        if not 0 <= zoom <= MAX_ZOOM:
            raise InvalidParameterError(
                "Zoom must be between 0 and 18",
                details={"zoom": zoom},
            )
        self._params.set("zoom", str(zoom))
        return self
