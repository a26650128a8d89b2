"""
Builder de consulta de direcciones por identificador OSM (endpoint /lookup).
"""

import re

from .exceptions import InvalidParameterError
from .query import BaseRequest

OSM_ID_RE = re.compile(r"[NWRnwr]\d+")


class Lookup(BaseRequest):
    """Consulta la dirección de uno o varios objetos OSM.

    Example:
        Lookup().osm_ids("R146656", "W104393803", "N240109189")
    """

    path = "lookup"

    def osm_ids(self, *osm_ids: str) -> "Lookup":
        """Identificadores OSM prefijados por su tipo (N, W o R).

        Raises:
            InvalidParameterError: Si no hay identificadores o alguno es inválido
        """
        if not osm_ids:
            raise InvalidParameterError(
                "No osm id in parameter",
                details={"parameter": "osm_ids"},
            )
        for osm_id in osm_ids:
            if not isinstance(osm_id, str) or not OSM_ID_RE.fullmatch(osm_id):
                raise InvalidParameterError(
                    f'Invalid osm id: "{osm_id}"',
                    details={"parameter": "osm_ids"},
                )
        self._params.set("osm_ids", ",".join(osm_id.upper() for osm_id in osm_ids))
        return self
