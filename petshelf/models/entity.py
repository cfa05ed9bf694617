"""
Modelo base de las entidades del dominio.

Cada entidad concreta declara sus campos con una lista de `FieldSpec` y
compone un `EntityTracker`, que es quien guarda el estado interno (id,
timestamps, flag dirty, snapshot y última acción) y sabe:

- construir los valores a partir de un dict crudo (payload o documento),
- hacer el diff campo a campo en `update()`,
- confirmar (`commit`) o deshacer (`rollback`) contra el último snapshot,
- serializar el estado público (`to_json`).

Las entidades exponen ese comportamiento por delegación y cumplen los
protocolos `Serializable` y `DirtyTrackable`.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from ..utils import parse_datetime, to_iso, utcnow


class LifecycleAction(str, Enum):
    BUILT = "BUILT"
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


class FieldKind(str, Enum):
    SCALAR = "scalar"
    LIST = "list"
    DATE = "date"


class _Unset:
    """Marca un valor ausente (distinto de None, que sí es un valor)."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind = FieldKind.SCALAR
    default: Optional[Callable[[], Any]] = None
    coerce: Optional[Callable[[Any], Any]] = None
    # nombres alternativos: se leen en la entrada y se emiten también en to_json
    aliases: Tuple[str, ...] = ()

    @property
    def keys(self) -> Tuple[str, ...]:
        return (self.name, *self.aliases)

    def initial(self) -> Any:
        return self.default() if self.default is not None else None

    def normalize(self, value: Any) -> Any:
        if self.coerce is not None:
            value = self.coerce(value)
        if self.kind is FieldKind.LIST:
            if value is None:
                return []
            if isinstance(value, (list, tuple)):
                return list(value)
            return [value]
        if self.kind is FieldKind.DATE:
            return parse_datetime(value)
        return value

    def read(self, data: Mapping[str, Any]) -> Any:
        """
        Valor del campo en `data` (mirando también los alias), ya normalizado.
        Gana el primer valor no vacío; si todas las claves presentes están
        vacías se devuelve el primero. UNSET si no aparece ninguna clave.
        """
        found = UNSET
        for key in self.keys:
            if key not in data or data[key] is UNSET:
                continue
            value = self.normalize(data[key])
            if not _is_empty(value):
                return value
            if found is UNSET:
                found = value
        return found

    def differs(self, old: Any, new: Any) -> bool:
        if self.kind is FieldKind.LIST:
            if not isinstance(old, list) or not isinstance(new, list):
                return True
            return len(old) != len(new) or any(a != b for a, b in zip(old, new))
        if self.kind is FieldKind.DATE:
            if isinstance(old, datetime) and isinstance(new, datetime):
                return old != new
            return old is not new
        # True == 1 en Python, pero un booleano no es un número
        if isinstance(old, bool) != isinstance(new, bool):
            return True
        return old != new

    def serialize(self, value: Any) -> Any:
        if self.kind is FieldKind.DATE:
            return to_iso(value) if isinstance(value, datetime) else None
        if self.kind is FieldKind.LIST:
            return list(value or [])
        return value


@dataclass
class EntityState:
    id: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    use_timestamps: bool = True
    dirty: bool = False
    last_action: LifecycleAction = LifecycleAction.BUILT
    snapshot: Dict[str, Any] = field(default_factory=dict)

    def touch(self) -> None:
        now = utcnow()
        # updatedAt nunca retrocede ni se repite dentro del mismo milisegundo
        if self.updated_at is not None and now <= self.updated_at:
            now = self.updated_at + timedelta(milliseconds=1)
        self.updated_at = now


class EntityTracker:
    def __init__(
        self,
        fields: Sequence[FieldSpec],
        data: Optional[Mapping[str, Any]] = None,
        use_timestamps: bool = True,
    ):
        data = data or {}
        self.fields: Tuple[FieldSpec, ...] = tuple(fields)

        raw_id = data.get("id") or data.get("_id")
        self.state = EntityState(id=str(raw_id) if raw_id else "", use_timestamps=use_timestamps)
        if use_timestamps:
            now = utcnow()
            self.state.created_at = parse_datetime(data.get("createdAt")) or now
            self.state.updated_at = parse_datetime(data.get("updatedAt")) or now

        # Solo se leen los campos declarados: __v y demás claves del almacén se ignoran
        self.values: Dict[str, Any] = {}
        for spec in self.fields:
            value = spec.read(data)
            self.values[spec.name] = spec.initial() if value is UNSET else value

        self.state.snapshot = self.public_state()

    def get(self, name: str) -> Any:
        value = self.values[name]
        return list(value) if isinstance(value, list) else value

    def mark(self, action: LifecycleAction) -> None:
        self.state.last_action = action
        self.state.dirty = True

    def update(self, partial: Mapping[str, Any]) -> bool:
        changed = False
        for spec in self.fields:
            value = spec.read(partial)
            if value is UNSET:
                continue
            if spec.differs(self.values[spec.name], value):
                self.values[spec.name] = value
                changed = True

        if changed:
            self.state.dirty = True
            if self.state.use_timestamps:
                self.state.touch()

        self.state.last_action = LifecycleAction.UPDATED
        return changed

    def commit(self) -> None:
        if not self.state.dirty:
            return
        self.state.dirty = False
        self.state.snapshot = self.public_state()

    def rollback(self) -> None:
        snapshot = self.state.snapshot
        for spec in self.fields:
            self.values[spec.name] = spec.normalize(snapshot.get(spec.name))
        if self.state.use_timestamps:
            self.state.updated_at = parse_datetime(snapshot.get("updatedAt")) or self.state.updated_at
        self.state.dirty = False

    def changes(self) -> Dict[str, Any]:
        snapshot = self.state.snapshot
        return {
            key: value
            for key, value in self.public_state().items()
            if key not in snapshot or snapshot[key] != value
        }

    def public_state(self) -> Dict[str, Any]:
        state: Dict[str, Any] = {"id": self.state.id}
        if self.state.use_timestamps:
            state["createdAt"] = to_iso(self.state.created_at)
            state["updatedAt"] = to_iso(self.state.updated_at)
        for spec in self.fields:
            value = spec.serialize(self.values[spec.name])
            for key in spec.keys:
                state[key] = list(value) if isinstance(value, list) else value
        return state


# ---------- Capacidades ----------

@runtime_checkable
class Serializable(Protocol):
    def to_json(self) -> Dict[str, Any]: ...


@runtime_checkable
class DirtyTrackable(Protocol):
    def is_dirty(self) -> bool: ...

    def mark_as_created(self) -> None: ...

    def mark_as_deleted(self) -> None: ...

    def update(self, partial: Mapping[str, Any]) -> None: ...

    async def commit(self) -> None: ...


@runtime_checkable
class Entity(Serializable, DirtyTrackable, Protocol):
    """Lo que un repositorio necesita de una entidad."""

    entity_name: str

    @property
    def id(self) -> str: ...

    def changes(self) -> Dict[str, Any]: ...
