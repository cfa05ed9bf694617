# petshelf/utils.py
from typing import Any, Optional
from bson import ObjectId
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Fecha actual en UTC, truncada a milisegundos.
    MongoDB guarda las fechas con precisión de milisegundo; truncando aquí
    lo que tenemos en memoria coincide con lo que se relee de la base.
    """
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Acepta datetime o string ISO-8601 y devuelve un datetime aware en UTC.
    Las fechas naive (como las que devuelve pymongo sin tz_aware) se asumen UTC.
    Devuelve None si el valor no se puede interpretar.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds")


# ==================== Utilidades de Base de Datos ====================

def is_object_id(value: Any) -> bool:
    if isinstance(value, ObjectId):
        return True
    return isinstance(value, str) and ObjectId.is_valid(value)


def to_object_id(value: Any) -> Any:
    """
    Convierte un string a ObjectId si es válido.
    Si no lo es, devuelve el valor tal cual: una consulta por _id con un
    string que no es ObjectId simplemente no encuentra nada.
    """
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return value
