from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from visionfund import create_app
from visionfund.config import Settings


@pytest.fixture()
def app():
    return create_app(Settings(log_level="WARNING"))


@pytest.fixture()
def client(app) -> FlaskClient:
    with app.test_client() as test_client:
        yield test_client
