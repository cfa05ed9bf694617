"""
Tests para endpoints de mascotas
"""
import pytest
from bson import ObjectId
from fastapi import status


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_pet(client, pet_data):
    """Test de creación exitosa"""
    r = await client.post("/pets", json=pet_data)
    assert r.status_code == status.HTTP_201_CREATED
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert ObjectId.is_valid(data["id"])
    assert data["name"] == "Rex"
    assert data["images"] == pet_data["image_url"]
    assert "__v" not in data


@pytest.mark.asyncio
async def test_create_pet_with_legacy_image_url(client, pet_data):
    r = await client.post("/pets", json={**pet_data, "image_url": "https://example.com/rex.jpg"})
    assert r.status_code == status.HTTP_201_CREATED
    assert r.json()["data"]["image_url"] == ["https://example.com/rex.jpg"]


@pytest.mark.asyncio
async def test_create_pet_without_image(client, pet_data):
    """Test de creación sin imagen: la rechaza el esquema de la colección"""
    payload = {k: v for k, v in pet_data.items() if k != "image_url"}
    r = await client.post("/pets", json=payload)
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_create_pet_name_too_long(client, pet_data):
    r = await client.post("/pets", json={**pet_data, "name": "x" * 61})
    assert r.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.asyncio
async def test_create_pet_missing_required_field(client, pet_data):
    payload = {k: v for k, v in pet_data.items() if k != "species"}
    r = await client.post("/pets", json=payload)
    assert r.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_get_pet(client, pet_data):
    pet_id = (await client.post("/pets", json=pet_data)).json()["data"]["id"]
    r = await client.get(f"/pets/{pet_id}")
    assert r.status_code == 200
    assert r.json()["data"]["id"] == pet_id


@pytest.mark.asyncio
@pytest.mark.parametrize("pet_id", ["no-es-un-id", "507f1f77bcf86cd799439011"])
async def test_get_pet_not_found(client, pet_id):
    r = await client.get(f"/pets/{pet_id}")
    assert r.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_list_pets(client, pet_data):
    for name in ["Luna", "Toby", "Nala"]:
        await client.post("/pets", json={**pet_data, "name": name})

    r = await client.get("/pets", params={"limit": 2})
    assert r.status_code == 200
    body = r.json()
    assert len(body["data"]) == 2
    assert body["pagination"]["total"] == 3
    assert body["pagination"]["pageSize"] == 2
    assert body["pagination"]["cursor"] == {"skip": 2}

    r = await client.get("/pets", params={"limit": 2, "skip": 2})
    assert len(r.json()["data"]) == 1
    assert r.json()["pagination"]["page"] == 2


@pytest.mark.asyncio
async def test_update_pet(client, pet_data):
    pet = (await client.post("/pets", json=pet_data)).json()["data"]
    r = await client.put(f"/pets/{pet['id']}", json={"name": "Rex2", "likes": ["sofá"]})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["name"] == "Rex2"
    assert data["likes"] == ["sofá"]
    assert data["images"] == pet["images"]
    assert data["species"] == pet["species"]
    assert data["updatedAt"] > pet["updatedAt"]


@pytest.mark.asyncio
async def test_update_pet_without_changes(client, pet_data):
    pet = (await client.post("/pets", json=pet_data)).json()["data"]
    r = await client.put(f"/pets/{pet['id']}", json={"name": pet["name"]})
    assert r.status_code == 200
    assert r.json()["data"]["updatedAt"] == pet["updatedAt"]


@pytest.mark.asyncio
async def test_update_pet_invalid(client, pet_data):
    pet = (await client.post("/pets", json=pet_data)).json()["data"]
    r = await client.put(f"/pets/{pet['id']}", json={"owner_name": "x" * 61})
    assert r.status_code == status.HTTP_400_BAD_REQUEST
    r = await client.get(f"/pets/{pet['id']}")
    assert r.json()["data"]["owner_name"] == "Ana"


@pytest.mark.asyncio
async def test_update_pet_not_found(client):
    r = await client.put("/pets/507f1f77bcf86cd799439011", json={"name": "Nadie"})
    assert r.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_delete_pet(client, pet_data):
    pet_id = (await client.post("/pets", json=pet_data)).json()["data"]["id"]
    r = await client.delete(f"/pets/{pet_id}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "data": {}}

    r = await client.get(f"/pets/{pet_id}")
    assert r.status_code == status.HTTP_404_NOT_FOUND
    r = await client.delete(f"/pets/{pet_id}")
    assert r.status_code == status.HTTP_404_NOT_FOUND
