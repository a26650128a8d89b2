"""
nominatim-client - Cliente para el servicio de geocodificación Nominatim
=========================================================================

Builders fluidos para las peticiones /search, /reverse y /lookup de
Nominatim (OpenStreetMap) y clientes HTTP para enviarlas.

Construcción de peticiones:
    from nominatim_client import Search

    search = Search().query("Paris").country_code("fr").limit(10)
    search.params  # {"q": "Paris", "countrycodes": "fr", "limit": "10"}

API Sync:
    from nominatim_client import NominatimClient

    with NominatimClient(user_agent="my-app/1.0") as client:
        places = client.find_places(client.new_search().query("Paris"))

API Async:
    from nominatim_client import AsyncNominatimClient

    async with AsyncNominatimClient(user_agent="my-app/1.0") as client:
        places = await client.find_places(client.new_search().query("Paris"))
"""

from .async_client import AsyncNominatimClient
from .client import NominatimClient
from .config import NominatimSettings
from .exceptions import (
    NominatimError,
    InvalidParameterError,
    ConfigurationError,
    ResponseFormatError,
    ServiceError,
    ServiceConnectionError,
    ServiceTimeoutError,
    ServiceHTTPError,
)
from .lookup import Lookup
from .models import Place, PlaceResponse
from .reverse import Reverse
from .search import Search

__version__ = "1.0.0"
__all__ = [
    "Search",
    "Reverse",
    "Lookup",
    "NominatimClient",
    "AsyncNominatimClient",
    "NominatimSettings",
    "Place",
    "PlaceResponse",
    "NominatimError",
    "InvalidParameterError",
    "ConfigurationError",
    "ResponseFormatError",
    "ServiceError",
    "ServiceConnectionError",
    "ServiceTimeoutError",
    "ServiceHTTPError",
]
