"""Shared fixtures for aiq tests."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from aiq.cli.platform.client import RestClient
from aiq.cli.platform.services import Services
from aiq.cli.utils import Printer

BASE_URL = "http://server.name/api/org/some_id"


def make_response(status=200, body=None, headers=None, content=None, reason="OK"):
    """Build a real requests.Response with a preloaded body."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    if content is None:
        content = json.dumps(body).encode() if body is not None else b""
    response._content = content
    response._content_consumed = True
    response.headers.update(headers or {})
    return response


@pytest.fixture
def config_path(tmp_path):
    """Session file of an authorized client."""
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"baseURL": BASE_URL, "accessToken": "valid_one", "userId": 42})
    )
    return path


@pytest.fixture
def guest_config_path(tmp_path):
    """Session file of a client that never logged in."""
    path = tmp_path / "guest.json"
    path.write_text("{}")
    return path


@pytest.fixture
def app_dir(tmp_path):
    """Application folder with a manifest, sources and mock data."""
    app = tmp_path / "myapp"
    (app / "js").mkdir(parents=True)
    (app / "mock-data").mkdir()
    (app / "index.html").write_text("<html></html>")
    (app / "js" / "app.js").write_text("console.log('hi');")
    (app / "mock-data" / "items.json").write_text("[]")
    (app / "icon.png").write_bytes(b"\x89PNG")
    # Not in the format the client writes
    (app / "manifest.json").write_text('{"name": "My App",  "minJsApiLevel": 3}\n')
    return app


@pytest.fixture
def client():
    """REST client double with the real multipart helper."""
    mock = MagicMock(spec=RestClient)
    mock.file_part.side_effect = RestClient.file_part
    return mock


@pytest.fixture
def prompt():
    """Scripted user input for interactive prompts."""
    return MagicMock(return_value="1")


@pytest.fixture
def make_services(client, prompt, tmp_path):
    """Build Services wired to the client double."""

    def _make(config, app_path=None):
        return Services(
            config,
            app_path or tmp_path,
            client=client,
            printer=Printer(color=False),
            prompt=prompt,
            sleep=MagicMock(),
        )

    return _make


@pytest.fixture
def services(make_services, config_path, app_dir):
    """Authorized Services instance working in ``app_dir``."""
    return make_services(config_path, app_dir)
