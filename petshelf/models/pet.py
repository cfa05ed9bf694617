from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .entity import EntityTracker, FieldKind, FieldSpec, LifecycleAction


# ---------- Imágenes ----------
# Antes cada mascota tenía una sola URL en `image_url` (string); ahora es una
# lista de imágenes codificadas. Se aceptan las dos formas en la entrada.

@dataclass(frozen=True)
class SingleImage:
    value: str


@dataclass(frozen=True)
class ImageList:
    values: Tuple[str, ...]


ImageInput = Union[SingleImage, ImageList]


def parse_image_input(raw: Any) -> ImageInput:
    if raw is None:
        return ImageList(())
    if isinstance(raw, (list, tuple)):
        return ImageList(tuple(raw))
    return SingleImage(str(raw))


def normalize_images(raw: Any) -> List[str]:
    image_input = parse_image_input(raw)
    if isinstance(image_input, SingleImage):
        return [image_input.value] if image_input.value else []
    return list(image_input.values)


def _text(value: Any) -> Any:
    return "" if value is None else value


PET_FIELDS = (
    FieldSpec("name", default=str, coerce=_text),
    FieldSpec("owner_name", default=str, coerce=_text),
    FieldSpec("species", default=str, coerce=_text),
    FieldSpec("age"),
    FieldSpec("poddy_trained"),
    FieldSpec("diet", FieldKind.LIST, default=list),
    FieldSpec("images", FieldKind.LIST, default=list, coerce=normalize_images, aliases=("image_url",)),
    FieldSpec("likes", FieldKind.LIST, default=list),
    FieldSpec("dislikes", FieldKind.LIST, default=list),
)


def _tracked(name: str) -> property:
    return property(lambda self: self._tracker.get(name))


class Pet:
    """
    Mascota. Se construye desde un payload o un documento de la colección
    y solo se modifica con `update()`, para que el diff y el flag dirty
    estén siempre al día.
    """

    entity_name = "Pet"
    fields = PET_FIELDS

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._tracker = EntityTracker(PET_FIELDS, data)

    name = _tracked("name")
    owner_name = _tracked("owner_name")
    species = _tracked("species")
    age = _tracked("age")
    poddy_trained = _tracked("poddy_trained")
    diet = _tracked("diet")
    images = _tracked("images")
    image_url = _tracked("images")
    likes = _tracked("likes")
    dislikes = _tracked("dislikes")

    @property
    def id(self) -> str:
        return self._tracker.state.id

    @property
    def created_at(self) -> Optional[datetime]:
        return self._tracker.state.created_at

    @property
    def updated_at(self) -> Optional[datetime]:
        return self._tracker.state.updated_at

    @property
    def last_action(self) -> LifecycleAction:
        return self._tracker.state.last_action

    def is_dirty(self) -> bool:
        return self._tracker.state.dirty

    def mark_as_created(self) -> None:
        self._tracker.mark(LifecycleAction.CREATED)

    def mark_as_deleted(self) -> None:
        self._tracker.mark(LifecycleAction.DELETED)

    def update(self, partial: Mapping[str, Any]) -> None:
        self._tracker.update(partial)

    async def commit(self) -> None:
        self._tracker.commit()

    def rollback(self) -> None:
        self._tracker.rollback()

    def changes(self) -> Dict[str, Any]:
        return self._tracker.changes()

    def to_json(self) -> Dict[str, Any]:
        return self._tracker.public_state()

    def __repr__(self) -> str:
        return f"Pet(id={self.id!r}, name={self.name!r}, species={self.species!r})"
