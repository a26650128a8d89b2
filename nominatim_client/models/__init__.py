"""
Modelos de datos para las respuestas JSON de Nominatim.
"""

from .place import Place
from .response import PlaceResponse

__all__ = ["Place", "PlaceResponse"]
