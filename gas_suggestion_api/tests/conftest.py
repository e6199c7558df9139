import pytest
from starlette.testclient import TestClient

from gas_suggestion_api.config import Config
from gas_suggestion_api.rest_api.create_app import create_app
from gas_suggestion_api.tests.fixtures import *  # noqa: F401, F403


@pytest.fixture()
def config() -> Config:
    return Config()


@pytest.fixture()
def api_client(config) -> TestClient:
    app = create_app(config=config)
    return TestClient(app)
