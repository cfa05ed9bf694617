"""
Configuración de pytest para tests
"""
import pytest
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from petshelf.db import get_db
from petshelf.repositories.pets import MongoPetRepository

TEST_DB_NAME = "petshelf_test"


@pytest.fixture
def test_db():
    """Base de datos en memoria compatible con motor (una nueva por test)"""
    client = AsyncMongoMockClient()
    return client[TEST_DB_NAME]


@pytest.fixture
def pet_repository(test_db):
    return MongoPetRepository(test_db)


@pytest.fixture
async def client(test_db):
    """Cliente HTTP contra la app, con la base en memoria inyectada"""
    from petshelf.main import app
    app.dependency_overrides[get_db] = lambda: test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def pet_data():
    """Datos de mascota de prueba"""
    return {
        "name": "Rex",
        "owner_name": "Ana",
        "species": "Dog",
        "age": 3,
        "poddy_trained": True,
        "diet": ["pienso"],
        "image_url": ["data:image/png;base64,AAAA"],
        "likes": ["pelota", "paseos"],
        "dislikes": ["baños"],
    }
