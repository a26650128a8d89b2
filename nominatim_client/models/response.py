from typing import Any, Optional

from pydantic import BaseModel

from .place import Place


class PlaceResponse(BaseModel):
    """Respuesta completa de una consulta: parámetros enviados y resultados."""
    path: str
    params: dict[str, str]
    results: list[Place]
    count: int
    time_ms: Optional[float] = None

    @classmethod
    def from_results(cls, path: str, params: dict[str, str], results: list[dict[str, Any]], time_ms: float | None = None) -> "PlaceResponse":
        return cls(
            path=path,
            params=params,
            results=[Place.model_validate(r) for r in results],
            count=len(results),
            time_ms=time_ms,
        )

    def __iter__(self):
        """Permite iterar sobre los resultados: for place in response: ..."""
        return iter(self.results)

    def __len__(self) -> int:
        return self.count
