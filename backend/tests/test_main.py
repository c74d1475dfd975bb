# tests/test_main.py
import logging
from logging.handlers import RotatingFileHandler

from chronicle.config import Settings, settings as default_settings
from chronicle.main import create_app
from chronicle.utils.logging import api_logger, configure_logging
from fastapi.testclient import TestClient

def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Chronicle Archive API is running", "busy": False}

def test_app_closes_store_on_shutdown(store):
    with TestClient(create_app(store=store)) as client:
        assert client.get("/").status_code == 200
    assert not store.is_open

def test_app_configures_logging_from_its_settings(store, tmp_path):
    app_settings = Settings(STORAGE_PATH=tmp_path / "other", LOG_LEVEL="DEBUG", LOG_TO_FILE=True)
    try:
        with TestClient(create_app(store=store, settings=app_settings)) as client:
            assert client.get("/").status_code == 200
            assert api_logger.logger.level == logging.DEBUG
            assert (tmp_path / "other" / "logs" / "chronicle.api.log").is_file()
    finally:
        configure_logging(default_settings)
    assert not any(isinstance(h, RotatingFileHandler) for h in api_logger.logger.handlers)
