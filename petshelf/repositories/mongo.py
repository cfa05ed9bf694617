import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, ValidationError
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from ..exceptions import RecordNotFoundError, StorageError, UnsafeDeleteError
from ..utils import is_object_id, to_object_id
from .base import PaginationResult, Repository, SearchArg, SearchOptions, SortOrder, T

logger = logging.getLogger(__name__)

_DIRECTIONS = {SortOrder.ASC: ASCENDING, SortOrder.DESC: DESCENDING}


class MongoRepository(Repository[T]):
    """
    Repositorio genérico sobre una colección de MongoDB (motor).

    Traduce entre la forma pública de la entidad (`to_json()`, con `id`) y el
    documento guardado (con `_id`). Con `custom_id=False` el documento guarda
    el `id` tal cual y no hay traducción.
    Antes de cada escritura el documento se valida con `schema` (pydantic),
    que es donde se declaran los campos obligatorios y las longitudes.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        entity_type: Type[T],
        schema: Type[BaseModel],
        collection_name: str,
        custom_id: bool = True,
    ):
        if not collection_name:
            raise StorageError(
                f"{type(self).__name__} tiene el nombre de colección vacío: {collection_name!r}"
            )
        self.entity_type = entity_type
        self.schema = schema
        self.collection_name = collection_name
        self.custom_id = custom_id
        self.collection = db[collection_name]

    # ---------- Lectura ----------

    async def find_one(self, options: SearchArg = None) -> Optional[T]:
        opts = self._options(options)
        query = self.transform_where(opts.where)
        sort = self.transform_order(opts.order)
        with self._store_errors("find_one"):
            record = await self.collection.find_one(query, sort=sort or None)
        return self.map_to_entity(record) if record else None

    async def find(self, options: SearchArg = None) -> PaginationResult:
        opts = self._options(options)
        query = self.transform_where(opts.where)
        sort = self.transform_order(opts.order)

        page_size = opts.limit
        skip = opts.skip
        if opts.cursor and "skip" in opts.cursor:
            skip = max(0, int(opts.cursor["skip"]))

        with self._store_errors("find"):
            total = await self.collection.count_documents(query)
            cursor = self.collection.find(query, sort=sort or None, skip=skip, limit=page_size)
            records = await cursor.to_list(length=page_size)

        next_skip = skip + page_size
        return PaginationResult(
            page=skip // page_size + 1,
            page_size=page_size,
            total=total,
            results=[self.map_to_entity(r) for r in records],
            cursor={"skip": next_skip} if next_skip < total else None,
        )

    async def find_by_key(self, key: Union[str, int]) -> Optional[T]:
        if key is None or key == "":
            return None
        if self.custom_id:
            # Una clave que no es ObjectId no puede existir: no hace falta ir a la base
            if isinstance(key, str) and not is_object_id(key):
                return None
            query = {"_id": to_object_id(key)}
        else:
            query = {"id": key}
        with self._store_errors("find_by_key"):
            record = await self.collection.find_one(query)
        return self.map_to_entity(record) if record else None

    # ---------- Escritura ----------

    async def create(self, entity: T) -> T:
        doc = self.map_to_persistence(entity)
        doc["__v"] = 0
        with self._store_errors("create"):
            res = await self.collection.insert_one(doc)
            record = await self.collection.find_one({"_id": res.inserted_id})

        entity.mark_as_created()
        await entity.commit()
        return self.map_to_entity(record)

    async def update(self, entity: T) -> T:
        if not entity.is_dirty():
            return entity

        # Se escribe el documento completo: así los documentos con formas
        # antiguas (image_url como string) quedan normalizados
        doc = self.map_to_persistence(entity)
        doc.pop("_id", None)
        logger.debug(
            f"[update] {self.collection_name} {entity.id}: cambios en {sorted(entity.changes())}"
        )

        key = self._key_filter(entity.id)
        with self._store_errors("update"):
            result = await self.collection.update_one(key, {"$set": doc, "$inc": {"__v": 1}})
        if not result.modified_count:
            raise RecordNotFoundError(f"[update] Entidad no encontrada para la clave {entity.id}")

        await entity.commit()

        # Se relee: lo guardado pasa por el esquema y puede no ser idéntico a lo enviado
        with self._store_errors("update"):
            record = await self.collection.find_one(key)
        if record is None:
            raise RecordNotFoundError(f"[update] Entidad no encontrada para la clave {entity.id}")
        return self.map_to_entity(record)

    async def delete(self, where: Mapping[str, Any], force: bool = False) -> int:
        query = self.transform_where(where)
        if not query and not force:
            raise UnsafeDeleteError(
                "Borrado invocado sin ningún filtro. Revisa la petición o llama con force=True"
            )

        with self._store_errors("delete"):
            records = await self.collection.find(query).to_list(length=None)
        entities = [self.map_to_entity(r) for r in records]

        # Registro de la baja en cada entidad; no bloquea ni condiciona el borrado
        pending = []
        for entity in entities:
            entity.mark_as_deleted()
            pending.append(asyncio.ensure_future(entity.commit()))

        try:
            with self._store_errors("delete"):
                result = await self.collection.delete_many(query)
        finally:
            outcomes = await asyncio.gather(*pending, return_exceptions=True)
            for entity, outcome in zip(entities, outcomes):
                if isinstance(outcome, BaseException):
                    logger.warning(
                        f"[delete] commit de {entity.entity_name} {entity.id} falló: {outcome!r}"
                    )

        return result.deleted_count

    # ---------- Mapeos ----------

    def map_to_persistence(self, entity: T) -> Dict[str, Any]:
        data = entity.to_json()
        key = data.pop("id", "")
        try:
            doc = self.schema.model_validate(data).model_dump()
        except ValidationError as e:
            logger.warning(f"Documento inválido para '{self.collection_name}': {e}")
            raise StorageError(
                f"Validación fallida en '{self.collection_name}': {e.error_count()} error(es)",
                payload=e.errors(include_url=False),
            ) from e

        if not self.custom_id:
            doc["id"] = key
        elif key and is_object_id(key):
            doc["_id"] = ObjectId(key)
        # sin _id válido lo genera MongoDB
        return doc

    def map_to_entity(self, record: Mapping[str, Any]) -> T:
        data = dict(record)
        if self.custom_id:
            raw_id = data.pop("_id", None)
            data["id"] = str(raw_id) if raw_id else ""
        return self.entity_type(data)

    def transform_where(self, where: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        query = dict(where or {})
        if self.custom_id and "id" in query:
            query["_id"] = to_object_id(query.pop("id"))
        return query

    def transform_order(self, order: Optional[Mapping[str, Any]]) -> List[Tuple[str, int]]:
        sort = []
        for field_name, direction in (order or {}).items():
            if not direction:
                continue
            if self.custom_id and field_name == "id":
                field_name = "_id"
            sort.append((field_name, _DIRECTIONS[SortOrder(direction.upper())]))
        return sort

    # ---------- Internos ----------

    def _key_filter(self, key: str) -> Dict[str, Any]:
        if self.custom_id:
            return {"_id": to_object_id(key)}
        return {"id": key}

    @staticmethod
    def _options(options: SearchArg) -> SearchOptions:
        if options is None:
            return SearchOptions()
        if isinstance(options, SearchOptions):
            return options
        return SearchOptions.model_validate(options)

    @contextmanager
    def _store_errors(self, operation: str):
        try:
            yield
        except PyMongoError as e:
            logger.error(f"[{operation}] Error en '{self.collection_name}': {e}", exc_info=True)
            raise StorageError(f"[{operation}] Error: {e}", payload=e) from e
