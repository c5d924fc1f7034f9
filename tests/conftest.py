"""Shared fixtures: an app wired to an in-memory mongomock client."""

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app
from settings import Settings

DB_NAME = "Website"


@pytest.fixture
def settings():
    return Settings(database_name=DB_NAME, cors_origins=["https://shop.example.com"])


@pytest.fixture
def mongo_client():
    return mongomock.MongoClient()


@pytest.fixture
def db(mongo_client):
    return mongo_client[DB_NAME]


@pytest.fixture
def app(settings, mongo_client):
    return create_app(settings, client=mongo_client)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def store(app, client):
    return app.state.store


@pytest.fixture
def products(db):
    """Three catalog products."""
    db["Products"].insert_many([
        {
            "title": "Widget",
            "description": "A small mechanical part",
            "location": "London",
            "availableInventory": 5,
            "price": 10,
        },
        {
            "title": "Gadget",
            "description": "Handy electronic tool",
            "location": "Paris",
            "availableInventory": 8,
            "price": 25,
        },
        {
            "title": "Sprocket",
            "description": "Toothed wheel",
            "location": "Berlin",
            "availableInventory": 2,
            "price": 4,
        },
    ])
    return db["Products"]
