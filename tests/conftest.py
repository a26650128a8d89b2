"""
Pytest configuration and fixtures for nominatim_client tests.
"""

from unittest.mock import MagicMock

import pytest
import requests

from nominatim_client import NominatimClient, Search

TEST_URL = "https://nominatim.test"


@pytest.fixture
def search():
    """Search vacío."""
    return Search()


@pytest.fixture
def make_response():
    """Construye un requests.Response real con el cuerpo indicado."""

    def _make(status_code=200, text="", url=TEST_URL + "/search"):
        response = requests.Response()
        response.status_code = status_code
        response._content = text.encode("utf-8")
        response.encoding = "utf-8"
        response.url = url
        return response

    return _make


@pytest.fixture
def client():
    """NominatimClient con una sesión falsa (sin red)."""
    session = MagicMock(spec=requests.Session)
    return NominatimClient(TEST_URL, user_agent="tests/1.0", session=session)


def pytest_addoption(parser):
    """Add --integration command line option."""
    parser.addoption(
        "--integration", action="store_true", default=False, help="run tests against the live service"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests marked with 'integration' unless --integration is provided."""
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --integration option to run")
    for item in items:
        if item.get_closest_marker("integration"):
            item.add_marker(skip_integration)
