from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from devcamper.config import Settings, get_settings
from devcamper.core.geocoder import GeocodeResult, Geocoder, get_geocoder
from devcamper.db.bootcamps import BootcampRepository, get_repository
from devcamper.main import app
from devcamper.models.bootcamp import BootcampInDB

BOOTCAMP_ID = "5d713995b721c3bb38c1f5d0"


def bootcamp_data(**overrides):
    data = {
        "id": BOOTCAMP_ID,
        "name": "Devworks Bootcamp",
        "slug": "devworks-bootcamp",
        "description": "Devworks is a full stack JavaScript Bootcamp located in the heart of Boston",
        "website": "https://devworks.com",
        "phone": "(111) 111-1111",
        "email": "enroll@devworks.com",
        "address": "233 Bay State Rd Boston MA 02215",
        "careers": ["Web Development", "UI/UX", "Business"],
        "housing": True,
        "job_assistance": True,
        "photo": "no-photo.jpg",
        "created_at": "2024-01-15T10:00:00+00:00",
        "location": {
            "type": "Point",
            "coordinates": {"latitude": 42.350846, "longitude": -71.10383},
            "city": "Boston",
            "zipcode": "02215",
        },
    }
    data.update(overrides)
    return data


@pytest.fixture
def anyio_backend():
    """Restrict anyio to asyncio (trio not installed)."""
    return "asyncio"


@pytest.fixture
def make_bootcamp():
    def factory(**overrides) -> BootcampInDB:
        return BootcampInDB.model_validate(bootcamp_data(**overrides))
    return factory


@pytest.fixture
def repo():
    return MagicMock(spec=BootcampRepository)


@pytest.fixture
def geocoder():
    geocoder = MagicMock(spec=Geocoder)
    geocoder.geocode = AsyncMock(
        return_value=[GeocodeResult(latitude=34.0, longitude=-118.2, city="Los Angeles", zipcode="90012")]
    )
    return geocoder


@pytest.fixture
def settings(tmp_path):
    return Settings(file_upload_path=str(tmp_path / "uploads"), file_max_upload_limit=1000000)


@pytest.fixture
def client(repo, geocoder, settings):
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()
