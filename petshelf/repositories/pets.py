from motor.motor_asyncio import AsyncIOMotorDatabase

from ..models.pet import Pet
from ..schemas.pet import PetDocument
from .mongo import MongoRepository

PETS_COLLECTION = "pets"


class MongoPetRepository(MongoRepository[Pet]):
    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = PETS_COLLECTION):
        super().__init__(db, Pet, PetDocument, collection_name)
