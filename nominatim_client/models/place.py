from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Place(BaseModel):
    """Un resultado de Nominatim en formato json o jsonv2.

    Nominatim devuelve las coordenadas como strings; aquí se convierten a
    float. Los campos no declarados (licence, icon, ...) se conservan como
    extras del modelo.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    place_id: int | None = Field(None, description="Identificador interno de Nominatim")
    osm_type: str | None = Field(None, description="node, way o relation")
    osm_id: int | None = Field(None, description="Identificador del objeto OSM")
    lat: float = Field(..., description="Latitud WGS84")
    lon: float = Field(..., description="Longitud WGS84")
    display_name: str = Field("", description="Dirección completa formateada")

    # json usa "class", jsonv2 usa "category"
    category: str | None = Field(None, validation_alias=AliasChoices("category", "class"))
    type: str | None = None
    place_rank: int | None = None
    importance: float | None = None
    addresstype: str | None = None
    name: str | None = None

    # [south, north, west, east]
    boundingbox: list[float] | None = None

    address: dict[str, str] | None = None
    extratags: dict[str, Any] | None = None
    namedetails: dict[str, str] | None = None

    @field_validator("display_name", mode="before")
    @classmethod
    def validate_display_name(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v)

    @property
    def osm_ref(self) -> str | None:
        """Identificador OSM en el formato de /lookup (ej: "R146656")."""
        if not self.osm_type or self.osm_id is None:
            return None
        return self.osm_type[0].upper() + str(self.osm_id)

    def get_bbox(self) -> tuple[float, float, float, float] | None:
        """Rectángulo envolvente como (west, north, east, south)."""
        if not self.boundingbox or len(self.boundingbox) != 4:
            return None
        south, north, west, east = self.boundingbox
        return west, north, east, south
