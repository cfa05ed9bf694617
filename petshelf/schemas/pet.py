from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Union

Number = Union[int, float]


def _as_list(v):
    # image_url era un string; el resto de listas también aceptan un valor suelto
    return [v] if isinstance(v, str) else v


class PetDocument(BaseModel):
    """Esquema de la colección `pets`. Se valida antes de cada escritura."""
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=60)
    owner_name: str = Field(..., min_length=1, max_length=60)
    species: str = Field(..., min_length=1, max_length=40)
    age: Optional[Number] = None
    poddy_trained: Optional[bool] = None
    diet: List[str] = []
    image_url: List[str] = Field(..., min_length=1)
    images: Optional[List[str]] = None
    likes: List[str] = []
    dislikes: List[str] = []
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @field_validator("diet", "image_url", "images", "likes", "dislikes", mode="before")
    @classmethod
    def validate_lists(cls, v):
        return _as_list(v)

    @field_validator("age")
    @classmethod
    def validate_age(cls, v):
        if v is not None and v < 0:
            raise ValueError("La edad no puede ser negativa")
        return v


# Cuerpos de la API: solo tipos, las restricciones viven en PetDocument

class PetCreate(BaseModel):
    name: str
    owner_name: str
    species: str
    age: Optional[Number] = None
    poddy_trained: Optional[bool] = None
    diet: List[str] = []
    image_url: Union[str, List[str], None] = None
    images: Optional[List[str]] = None
    likes: List[str] = []
    dislikes: List[str] = []


class PetUpdate(BaseModel):
    name: Optional[str] = None
    owner_name: Optional[str] = None
    species: Optional[str] = None
    age: Optional[Number] = None
    poddy_trained: Optional[bool] = None
    diet: Optional[List[str]] = None
    image_url: Union[str, List[str], None] = None
    images: Optional[List[str]] = None
    likes: Optional[List[str]] = None
    dislikes: Optional[List[str]] = None
