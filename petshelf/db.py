from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from .config import Settings
from .exceptions import StorageError


def create_client(settings: Settings) -> AsyncIOMotorClient:
    # tz_aware: las fechas vuelven de la base como datetime en UTC
    return AsyncIOMotorClient(settings.mongodb_uri, tz_aware=True)


async def init_db(client: AsyncIOMotorClient, settings: Settings) -> AsyncIOMotorDatabase:
    db = client[settings.db_name]
    # Índices para el listado (más recientes primero) y búsquedas por dueño
    pets = db[settings.pets_collection]
    await pets.create_index([("createdAt", DESCENDING)])
    await pets.create_index([("owner_name", ASCENDING)])
    return db


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """La conexión se abre en el lifespan de la app y vive en app.state."""
    db = getattr(request.app.state, "db", None)
    if db is None:
        raise StorageError("La base de datos no está inicializada")
    return db
