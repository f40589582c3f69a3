import mongomock
import pytest
from fastapi.testclient import TestClient

import database
import main
import schemas
import seed

ADMIN_EMAIL = "admin@9tierras.com"
ADMIN_PASSWORD = "1234"


@pytest.fixture
def mongo(monkeypatch):
    db = mongomock.MongoClient()["9tierras_test"]
    seed.ensure_collections(db)
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def client(mongo):
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    seed.seed_admin(ADMIN_EMAIL, ADMIN_PASSWORD)
    resp = client.post("/api/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture
def customer_client(client):
    resp = client.post("/api/register", json={"nombre": "Ana", "correo": "ana@correo.cl", "password": "secreta"})
    assert resp.json() == {"ok": True}
    resp = client.post("/api/login", json={"email": "ana@correo.cl", "password": "secreta"})
    assert resp.status_code == 200
    return client


@pytest.fixture
def beers(mongo):
    database.create_document(schemas.BEERS, {"nombre": "IPA", "estilo": "Cítrico", "precio": 14012, "img": ""})
    database.create_document(schemas.BEERS, {"nombre": "Stout", "estilo": "Ahumado", "precio": 13000, "img": "stout.png"})
    return {b["nombre"]: str(b["_id"]) for b in mongo[schemas.BEERS].find()}
