from fastapi import APIRouter, Depends, HTTPException, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
import logging

from ..config import get_settings
from ..db import get_db
from ..models.pet import Pet
from ..repositories.base import SearchOptions, SortOrder
from ..repositories.pets import MongoPetRepository
from ..schemas.pet import PetCreate, PetUpdate

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()


def get_pet_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> MongoPetRepository:
    # Un repositorio por petición; la conexión es la compartida de la app
    return MongoPetRepository(db, settings.pets_collection)


def _not_found():
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Mascota no encontrada")


@router.get("")
async def list_pets(
    limit: int = Query(settings.default_page_size, ge=1, le=100),
    skip: int = Query(0, ge=0),
    repo: MongoPetRepository = Depends(get_pet_repository),
):
    page = await repo.find(SearchOptions(limit=limit, skip=skip, order={"createdAt": SortOrder.DESC}))
    body = page.to_json()
    return {"success": True, "data": body.pop("results"), "pagination": body}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_pet(
    payload: PetCreate,
    repo: MongoPetRepository = Depends(get_pet_repository),
):
    created = await repo.create(Pet(payload.model_dump(exclude_unset=True)))
    logger.info(f"Mascota creada: {created.id}")
    return {"success": True, "data": created.to_json()}


@router.get("/{pet_id}")
async def get_pet(
    pet_id: str,
    repo: MongoPetRepository = Depends(get_pet_repository),
):
    pet = await repo.find_by_key(pet_id)
    if pet is None:
        raise _not_found()
    return {"success": True, "data": pet.to_json()}


@router.put("/{pet_id}")
async def update_pet(
    pet_id: str,
    payload: PetUpdate,
    repo: MongoPetRepository = Depends(get_pet_repository),
):
    pet = await repo.find_by_key(pet_id)
    if pet is None:
        raise _not_found()
    pet.update(payload.model_dump(exclude_unset=True))
    updated = await repo.update(pet)
    return {"success": True, "data": updated.to_json()}


@router.delete("/{pet_id}")
async def delete_pet(
    pet_id: str,
    repo: MongoPetRepository = Depends(get_pet_repository),
):
    # un id que no es ObjectId no casa con nada: 0 borrados -> 404
    deleted = await repo.delete({"id": pet_id})
    if not deleted:
        raise _not_found()
    logger.info(f"Mascota borrada: {pet_id}")
    return {"success": True, "data": {}}
