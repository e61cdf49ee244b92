"""Tests for aiq.cli.platform storage, packaging and REST client."""

import json
import tempfile
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest
import requests
from conftest import make_response

from aiq.cli.platform.client import RestClient
from aiq.cli.platform.errors import RemoteError, SizeLimitError, StorageError
from aiq.cli.platform.packaging import pack_folder
from aiq.cli.platform.store import (
    ManifestStore,
    clear_session,
    load_session,
    read_json,
    save_session,
    write_json,
)
from aiq.cli.platform.types import Application, Manifest, SessionConfig


class TestSessionConfig:
    """Tests for SessionConfig model."""

    def test_empty_config_is_unauthorized(self):
        """An empty config means logged out."""
        assert not SessionConfig().is_authorized
        assert SessionConfig().to_json_dict() == {}

    def test_camel_case_round_trip(self):
        """Config is read and written with the on-disk key names."""
        config = SessionConfig.model_validate(
            {"baseURL": "http://x", "accessToken": "t", "userId": 9}
        )
        assert config.is_authorized
        assert config.user_id == 9
        assert config.to_json_dict() == {
            "baseURL": "http://x",
            "accessToken": "t",
            "userId": 9,
        }

    def test_unknown_keys_are_kept(self):
        """Keys written by other tools survive a round trip."""
        config = SessionConfig.model_validate({"accessToken": "t", "theme": "dark"})
        assert config.to_json_dict()["theme"] == "dark"


class TestManifest:
    """Tests for Manifest model."""

    def test_aliases(self):
        manifest = Manifest.model_validate(
            {"name": "app", "minJsApiLevel": 2, "iconPath": "icon.png", "mock": True}
        )
        assert manifest.min_js_api_level == 2
        assert manifest.icon_path == "icon.png"
        assert manifest.to_json_dict() == {
            "name": "app",
            "minJsApiLevel": 2,
            "mock": True,
            "iconPath": "icon.png",
        }

    def test_application_solution_defaults_to_empty(self):
        app = Application.model_validate({"_id": "a1", "name": "App"})
        assert app.id == "a1"
        assert app.solution == {}
        assert app.solution_id is None


class TestJsonStore:
    """Tests for read_json / write_json."""

    def test_missing_file_yields_defaults(self, tmp_path):
        assert read_json(tmp_path / "nope.json", {"a": 1}) == {"a": 1}

    def test_stored_values_win(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"a": 2, "b": 3}')
        assert read_json(path, {"a": 1, "c": 4}) == {"a": 2, "b": 3, "c": 4}

    def test_corrupt_file_yields_defaults(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json")
        assert read_json(path, {"a": 1}) == {"a": 1}

    def test_corrupt_file_can_terminate(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{not json")
        with pytest.raises(SystemExit):
            read_json(path, {}, exit_on_error=True)

    def test_write_json_is_indented(self, tmp_path):
        path = tmp_path / "data.json"
        assert write_json(path, {"a": 1}) == {"a": 1}
        assert path.read_text() == '{\n  "a": 1\n}'

    def test_write_json_reports_os_errors(self, tmp_path):
        with pytest.raises(StorageError):
            write_json(tmp_path / "missing" / "data.json", {"a": 1})


class TestSessionStore:
    """Tests for session persistence."""

    def test_save_and_load(self, tmp_path):
        path = tmp_path / ".aiq" / "config.json"
        save_session(path, SessionConfig(access_token="tok", user_id=1))

        loaded = load_session(path)
        assert loaded.access_token == "tok"
        assert loaded.user_id == 1

    def test_file_permissions(self, tmp_path):
        """Session file has restricted permissions."""
        path = tmp_path / "config.json"
        save_session(path, SessionConfig(access_token="tok"))
        assert path.stat().st_mode & 0o777 == 0o600

    def test_clear_session_writes_empty_object(self, tmp_path):
        path = tmp_path / "config.json"
        save_session(path, SessionConfig(access_token="tok"))
        clear_session(path)
        assert json.loads(path.read_text()) == {}
        assert not load_session(path).is_authorized

    def test_invalid_session_is_logged_out(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text('{"accessToken": ["not", "a", "string"]}')
        assert not load_session(path).is_authorized


class TestManifestStore:
    """Tests for ManifestStore."""

    def test_default_api_level(self, tmp_path):
        store = ManifestStore(tmp_path)
        assert store.exists()
        assert store.load().min_js_api_level == 1

    def test_missing_folder(self, tmp_path):
        assert not ManifestStore(tmp_path / "nope").exists()

    def test_snapshot_restore_is_byte_exact(self, app_dir):
        store = ManifestStore(app_dir)
        before = store.path.read_bytes()
        snapshot = store.snapshot()

        store.save(Manifest(name="changed", min_js_api_level=9))
        assert store.path.read_bytes() != before

        store.restore(snapshot)
        assert store.path.read_bytes() == before

    def test_restore_removes_new_manifest(self, tmp_path):
        store = ManifestStore(tmp_path)
        snapshot = store.snapshot()
        assert snapshot is None

        store.save(Manifest(name="new"))
        store.restore(snapshot)
        assert not store.path.exists()


class TestPackaging:
    """Tests for application packaging."""

    def test_pack_excludes_mock_data(self, app_dir):
        archive = pack_folder(app_dir, skip_mocks=True)
        try:
            assert archive.size > 0
            with zipfile.ZipFile(archive.path) as zf:
                names = zf.namelist()
            assert "index.html" in names
            assert "js/app.js" in names
            assert "manifest.json" in names
            assert not any(n.startswith("mock-data/") for n in names)
        finally:
            Path(archive.path).unlink(missing_ok=True)

    def test_pack_includes_mock_data_on_request(self, app_dir):
        archive = pack_folder(app_dir, skip_mocks=False)
        try:
            with zipfile.ZipFile(archive.path) as zf:
                assert "mock-data/items.json" in zf.namelist()
        finally:
            Path(archive.path).unlink(missing_ok=True)

    def test_mock_named_files_elsewhere_are_kept(self, app_dir):
        """Only the top-level mock-data folder is skipped."""
        (app_dir / "js" / "mock-data").mkdir()
        (app_dir / "js" / "mock-data" / "keep.js").write_text("")
        archive = pack_folder(app_dir, skip_mocks=True)
        try:
            with zipfile.ZipFile(archive.path) as zf:
                assert "js/mock-data/keep.js" in zf.namelist()
        finally:
            Path(archive.path).unlink(missing_ok=True)

    def test_archive_is_created_outside_folder(self, app_dir):
        archive = pack_folder(app_dir, skip_mocks=True)
        try:
            assert app_dir not in Path(archive.path).parents
            assert not list(app_dir.glob("*.zip"))
        finally:
            Path(archive.path).unlink(missing_ok=True)

    def test_size_limit_removes_archive(self, app_dir, tmp_path):
        """Oversized archives are deleted before the error is raised."""
        created = []
        real_mkstemp = tempfile.mkstemp

        def tracking_mkstemp(*args, **kwargs):
            fd, name = real_mkstemp(*args, dir=tmp_path, **kwargs)
            created.append(name)
            return fd, name

        with patch("aiq.cli.platform.packaging.tempfile.mkstemp", tracking_mkstemp):
            with pytest.raises(SizeLimitError):
                pack_folder(app_dir, skip_mocks=True, max_size=10)

        assert len(created) == 1
        assert not Path(created[0]).exists()

    def test_archiver_error_removes_partial_file(self, app_dir, tmp_path):
        created = []
        real_mkstemp = tempfile.mkstemp

        def tracking_mkstemp(*args, **kwargs):
            fd, name = real_mkstemp(*args, dir=tmp_path, **kwargs)
            created.append(name)
            return fd, name

        with (
            patch("aiq.cli.platform.packaging.tempfile.mkstemp", tracking_mkstemp),
            patch.object(zipfile.ZipFile, "write", side_effect=OSError("disk full")),
        ):
            with pytest.raises(StorageError, match="disk full"):
                pack_folder(app_dir, skip_mocks=True)

        assert not Path(created[0]).exists()


class TestRestClient:
    """Tests for RestClient outcome normalization."""

    @pytest.fixture
    def rest(self):
        return RestClient(timeout=5)

    def test_success_returns_parsed_body(self, rest):
        with patch.object(
            rest._session, "request", return_value=make_response(200, {"a": 1})
        ) as mock_request:
            assert rest.get("http://x/items", query={"q": "1"}, access_token="tok") == {
                "a": 1
            }

        _, kwargs = mock_request.call_args
        assert kwargs["params"] == {"q": "1"}
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    def test_empty_body_returns_none(self, rest):
        with patch.object(rest._session, "request", return_value=make_response(204)):
            assert rest.delete("http://x/items/1") is None

    def test_error_code_from_body(self, rest):
        response = make_response(404, {"error": "not_found"}, reason="Not Found")
        with patch.object(rest._session, "request", return_value=response):
            with pytest.raises(RemoteError) as exc_info:
                rest.get("http://x/items/1")

        assert exc_info.value.code == "not_found"
        assert exc_info.value.message == "not_found"
        assert exc_info.value.status_code == 404

    def test_error_description_is_the_message(self, rest):
        response = make_response(
            401, {"error": "invalid_token", "error_description": "Token expired"}
        )
        with patch.object(rest._session, "request", return_value=response):
            with pytest.raises(RemoteError) as exc_info:
                rest.post("http://x/admin/logout")

        assert exc_info.value.code == "invalid_token"
        assert exc_info.value.message == "Token expired"

    def test_error_without_body_uses_reason(self, rest):
        response = make_response(500, content=b"<html>oops</html>", reason="Server Error")
        with patch.object(rest._session, "request", return_value=response):
            with pytest.raises(RemoteError) as exc_info:
                rest.get("http://x")

        assert exc_info.value.code is None
        assert exc_info.value.message == "Server Error"

    def test_connection_error(self, rest):
        with patch.object(
            rest._session, "request", side_effect=requests.ConnectionError("refused")
        ):
            with pytest.raises(RemoteError) as exc_info:
                rest.get("http://x")

        assert exc_info.value.code is None
        assert "Cannot connect" in exc_info.value.message

    def test_aborted_response(self, rest):
        with patch.object(
            rest._session,
            "request",
            side_effect=requests.exceptions.ChunkedEncodingError("cut"),
        ):
            with pytest.raises(RemoteError) as exc_info:
                rest.get("http://x")

        assert exc_info.value.code == "aborted"
        assert exc_info.value.message == "Operation aborted"

    def test_post_json_sends_json_body(self, rest):
        with patch.object(
            rest._session, "request", return_value=make_response(200, {})
        ) as mock_request:
            rest.post_json("http://x/admin/logout", {}, access_token="tok")

        args, kwargs = mock_request.call_args
        assert args == ("POST", "http://x/admin/logout")
        assert kwargs["json"] == {}

    def test_json_requires_json_body(self, rest):
        response = make_response(200, content=b"plain text")
        with patch.object(rest._session, "request", return_value=response):
            with pytest.raises(RemoteError):
                rest.json("http://x")

    def test_head_returns_headers(self, rest):
        response = make_response(200, headers={"Accept-Ranges": "bytes"})
        with patch.object(rest._session, "request", return_value=response):
            assert rest.head("http://x")["Accept-Ranges"] == "bytes"

    def test_fetch_keeps_error_statuses(self, rest):
        with patch.object(rest._session, "request", return_value=make_response(416)):
            assert rest.fetch("http://x/logs").status_code == 416

    def test_download_streams_to_file(self, rest, tmp_path):
        response = make_response(200, content=b"zipbytes")
        target = tmp_path / "out.bin"
        with patch.object(rest._session, "request", return_value=response):
            with open(target, "wb") as f:
                assert rest.download("http://x/bundle.zip", f) == 8

        assert target.read_bytes() == b"zipbytes"
