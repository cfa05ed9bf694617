"""
Contrato de repositorio, independiente del almacén.
Es la única interfaz que usa la capa HTTP.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.entity import Entity

T = TypeVar("T", bound=Entity)
R = TypeVar("R")

DEFAULT_PAGE_SIZE = 10

# Cursor opaco para pedir la página siguiente
PaginationCursor = Dict[str, Any]


class SortOrder(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class SearchOptions(BaseModel):
    where: Dict[str, Any] = Field(default_factory=dict)
    order: Dict[str, SortOrder] = Field(default_factory=dict)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1)
    skip: int = Field(0, ge=0)
    cursor: Optional[PaginationCursor] = None

    @field_validator("order", mode="before")
    @classmethod
    def validate_order(cls, v):
        if isinstance(v, Mapping):
            return {k: d.upper() if isinstance(d, str) else d for k, d in v.items()}
        return v


class PaginationResult(BaseModel, Generic[R]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    page: int
    page_size: int
    total: int
    results: List[R]
    cursor: Optional[PaginationCursor] = None

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "results": [r.to_json() for r in self.results],
        }
        if self.cursor is not None:
            out["cursor"] = self.cursor
        return out


SearchArg = Union[SearchOptions, Mapping[str, Any], None]


class Repository(ABC, Generic[T]):

    @abstractmethod
    async def find_one(self, options: SearchArg = None) -> Optional[T]:
        """Primera entidad que cumple `options.where` (respetando `options.order`), o None."""

    @abstractmethod
    async def find(self, options: SearchArg = None) -> "PaginationResult[T]":
        """Página de resultados según where/order/limit/skip (o cursor)."""

    @abstractmethod
    async def find_by_key(self, key: Union[str, int]) -> Optional[T]:
        """Entidad por identificador. Una clave mal formada devuelve None, no lanza."""

    @abstractmethod
    async def create(self, entity: T) -> T:
        """Persiste una entidad nueva y la devuelve con el id asignado por el almacén."""

    @abstractmethod
    async def update(self, entity: T) -> T:
        """Persiste los cambios de una entidad dirty; si no está dirty la devuelve tal cual."""

    @abstractmethod
    async def delete(self, where: Mapping[str, Any], force: bool = False) -> int:
        """Borra todo lo que cumple `where`. Sin filtro exige `force`. Devuelve el número borrado."""
