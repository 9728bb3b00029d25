# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from catalog.config import Settings
from catalog.database import DocumentStore
from catalog.main import create_app
from catalog.media import MediaSink
from catalog.service import CatalogService


@pytest.fixture
def settings(tmp_path):
    return Settings(db_file=tmp_path / "data" / "db.json", uploads_dir=tmp_path / "uploads")


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c


async def open_service(tmp_path) -> CatalogService:
    store = DocumentStore(tmp_path / "db.json")
    media = MediaSink(tmp_path / "uploads")
    media.ensure_directory()
    await store.open()
    return CatalogService(store, media)
