# tests/test_health.py
from fastapi.testclient import TestClient

from campusnav.api.deps import get_session_manager
from campusnav.main import app, create_app
from campusnav.services.location_resolver import LocationResolver
from campusnav.services.map_session import MapSessionManager

from conftest import TEST_LOCATIONS, FakeGateway


client = TestClient(app)


def test_health_check():
    response = client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "app" in data
    assert "version" in data
    assert "environment" in data
    assert data["locations"] > 0


def test_health_counts_open_sessions(test_settings):
    manager = MapSessionManager(LocationResolver(TEST_LOCATIONS), FakeGateway(), test_settings)
    custom = create_app()
    custom.dependency_overrides[get_session_manager] = lambda: manager

    with TestClient(custom) as local:
        assert local.get("/health/").json()["sessions"] == 0
        local.post("/sessions/", params={"track_position": False})
        local.post("/sessions/", params={"track_position": False})

        data = local.get("/health/").json()
        assert data["sessions"] == 2
        assert data["locations"] == len(TEST_LOCATIONS)
