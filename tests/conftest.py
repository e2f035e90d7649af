import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fastapi_idm import InMemoryIdentityStore


@pytest.fixture
def app() -> FastAPI:
    return FastAPI()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()
