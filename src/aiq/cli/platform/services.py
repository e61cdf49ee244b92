"""High-level operations against the AIQ platform.

Each public method is a short sequential pipeline: validate input, talk to
the platform, write back the session config or the application manifest.
The first failing step raises an :class:`~aiq.cli.platform.errors.AIQError`
subclass whose ``message`` is ready to be shown to the user.
"""

from __future__ import annotations

import json
import logging
import shutil
import tempfile
import time
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any
from urllib.parse import quote

import click
from pydantic import ValidationError

from ..utils import Printer, sanitize_terminal_output
from .client import RestClient
from .config import (
    API_PREFIXES,
    CONFIG_FILE,
    JS_API_URL,
    LOG_POLL_INTERVAL,
    LOG_PORT,
    MAX_API_LEVEL,
    MIN_API_LEVEL,
    PLATFORM_SERVER_URL,
    SKELETON_DIR,
)
from .errors import (
    API_LEVEL_RANGE,
    SESSION_EXPIRED,
    AIQError,
    AuthorizationError,
    InputValidationError,
    RemoteError,
    StorageError,
)
from .packaging import pack_folder
from .store import ManifestStore, clear_session, load_session, save_session
from .types import Application, LogRange, Manifest, SessionConfig, Solution

logger = logging.getLogger(__name__)

CONNECT_FAILED = "Could not connect to AIQ platform."
ORG_NOT_FOUND = "Organization not found."

Prompt = Callable[[str, int], str]


def _click_prompt(text: str, default: int) -> str:
    return click.prompt(text, default=default, show_default=False)


def parse_api_level(value: Any) -> int:
    """Parse a minimum JS API level.

    Raises:
        InputValidationError: Unless ``value`` is an integer in 1-65535.
    """
    if isinstance(value, bool):
        raise InputValidationError(API_LEVEL_RANGE)
    try:
        level = int(str(value).strip())
    except ValueError:
        raise InputValidationError(API_LEVEL_RANGE) from None
    if not MIN_API_LEVEL <= level <= MAX_API_LEVEL:
        raise InputValidationError(API_LEVEL_RANGE)
    return level


def parse_mock_flag(value: str) -> bool:
    """Parse the literal ``"true"``/``"false"`` mock argument."""
    flag = str(value).strip().lower()
    if flag == "true":
        return True
    if flag == "false":
        return False
    raise InputValidationError('Mock argument should be "true" or "false".')


def _session_error(error: RemoteError) -> RemoteError:
    if error.code == "invalid_token":
        return RemoteError(error.code, SESSION_EXPIRED, error.status_code)
    return error


def _app_error(error: RemoteError, app_id: str) -> RemoteError:
    if error.code == "not_found":
        return RemoteError(
            error.code, f"Application with ID: {app_id} was not found.", error.status_code
        )
    return _session_error(error)


class Services:
    """Orchestrates session, manifest, packaging and REST calls.

    Args:
        config_path: Session config file.
        app_path: Default application folder / workspace (usually the cwd).
        client: REST client, a fresh :class:`RestClient` by default.
        printer: Console output used while interacting with the user.
        prompt: Reads one line of user input; receives the prompt text and
            the default value. Raises ``click.Abort`` when interrupted.
        sleep: Delay function used between log polls.
    """

    def __init__(
        self,
        config_path: str | Path = CONFIG_FILE,
        app_path: str | Path = ".",
        client: RestClient | None = None,
        printer: Printer | None = None,
        prompt: Prompt | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config_path = Path(config_path)
        self._cwd_path = Path(app_path)
        self.client = client or RestClient()
        self.printer = printer or Printer()
        self._prompt = prompt or _click_prompt
        self._sleep = sleep
        self.config = load_session(self._config_path)

    def _get_url(self, kind: str, *parts: Any) -> str:
        suffix = "/".join(str(p) for p in parts)
        url = f"{self.config.base_url}{API_PREFIXES[kind]}"
        return f"{url}/{suffix}" if suffix else url

    def _require_token(self) -> str:
        if not self.config.access_token:
            raise AuthorizationError()
        return self.config.access_token

    # ==================== SESSION ====================

    def request_token(
        self, org_name: str, username: str, password: str, server_url: str
    ) -> SessionConfig:
        """Discover the organization's token endpoint and exchange credentials.

        Returns:
            The new session config (not yet persisted).
        """
        try:
            org_info = self.client.get(server_url, query={"orgName": org_name})
        except RemoteError as e:
            if e.code == "not_found":
                raise RemoteError(e.code, ORG_NOT_FOUND, e.status_code) from e
            raise RemoteError(e.code, CONNECT_FAILED, e.status_code) from e

        links = org_info.get("links") if isinstance(org_info, dict) else None
        token_url = links.get("token") if isinstance(links, dict) else None
        if not token_url or not isinstance(token_url, str):
            raise RemoteError(None, CONNECT_FAILED)
        base_url = token_url[: token_url.rfind("/")]

        try:
            data = self.client.post(
                f"{base_url}/token",
                data={
                    "username": username,
                    "password": password,
                    "grant_type": "password",
                    "scope": "admin",
                },
            )
        except RemoteError as e:
            if e.code == "not_found":
                raise RemoteError(e.code, ORG_NOT_FOUND, e.status_code) from e
            raise

        if not isinstance(data, dict) or not data.get("access_token"):
            raise RemoteError(None, "Unexpected response from server.")
        user = data.get("user") or {}
        if not isinstance(user, dict):
            raise RemoteError(None, "Unexpected response from server.")
        try:
            return SessionConfig(
                server_url=server_url,
                org_name=org_name,
                base_url=base_url,
                access_token=data["access_token"],
                user_id=user.get("_id"),
                username=user.get("username"),
                expires_in=data.get("expires_in"),
            )
        except ValidationError as e:
            raise RemoteError(None, "Unexpected response from server.") from e

    def login(
        self,
        org_name: str | None,
        username: str | None,
        password: str | None,
        server_url: str | None = None,
    ) -> dict[str, Any]:
        """Authenticate and store the access token.

        Returns:
            The persisted session config.
        """
        if not org_name:
            raise InputValidationError("Organization Name is required.")
        if not username:
            raise InputValidationError("Username is required.")
        if not password:
            raise InputValidationError("Password is required.")

        server_url = server_url or self.config.server_url or PLATFORM_SERVER_URL
        session = self.request_token(org_name, username, password, server_url)
        data = save_session(self._config_path, session)
        self.config = session
        logger.debug("Logged in to %s as user %s", session.base_url, session.user_id)
        return data

    def logout(self) -> dict[str, Any]:
        """Destroy the current access token.

        The local session is cleared whatever the platform answers.
        """
        token = self._require_token()
        try:
            self.client.post_json(self._get_url("logout"), {}, access_token=token)
        except RemoteError as e:
            raise _session_error(e) from e
        finally:
            self.config = SessionConfig()
            clear_session(self._config_path)
        return {}

    def get_info(self) -> SessionConfig | None:
        """Current session, or None when not logged in."""
        return self.config if self.config.is_authorized else None

    # ==================== SCAFFOLDING ====================

    def _get_latest_aiq(self, dest: Path) -> int:
        """Download the latest JS API bundle into ``dest``.

        Returns:
            The API level declared by the bundle.
        """
        try:
            with tempfile.TemporaryFile() as tmp:
                self.client.download(JS_API_URL, tmp)
                tmp.seek(0)
                with zipfile.ZipFile(tmp) as zf:
                    zf.extractall(dest)
            info = json.loads((dest / "package.json").read_text())
            return int(info["level"])
        except (AIQError, OSError, ValueError, KeyError, TypeError, zipfile.BadZipFile) as e:
            logger.debug("JS API download failed: %s", e)
            raise StorageError("Error during retrieving the latest AIQ JS API.") from e

    def generate_app(
        self, name: str | None, path: str | Path | None = None, api_level: Any = None
    ) -> dict[str, Any]:
        """Generate an HTML5 application skeleton.

        Args:
            name: Application name, also the folder name.
            path: Workspace the folder is created in, the cwd by default.
            api_level: Minimum JS API level; taken from the downloaded bundle
                when omitted.

        Returns:
            ``{"name", "apiLevel"}`` of the new application.
        """
        name = (name or "").strip()
        if not name:
            raise InputValidationError("Application name is required.")

        level = None
        if api_level not in (None, ""):
            level = parse_api_level(api_level)

        workspace = Path(path or self._cwd_path)
        if not workspace.is_dir():
            raise StorageError("Workspace Path is not writable or doesn't exist.")
        app_path = workspace / name
        if app_path.exists():
            raise StorageError(f"Folder [{app_path}] already exists.")
        try:
            shutil.copytree(SKELETON_DIR, app_path)
        except FileExistsError as e:
            raise StorageError(f"Folder [{app_path}] already exists.") from e
        except OSError as e:
            raise StorageError("Workspace Path is not writable or doesn't exist.") from e

        try:
            bundle_level = self._get_latest_aiq(app_path / "aiq")
        except StorageError:
            shutil.rmtree(app_path, ignore_errors=True)
            raise
        if level is None:
            level = bundle_level

        ManifestStore(app_path).save(Manifest(name=name, min_js_api_level=level))
        return {"name": name, "apiLevel": level}

    # ==================== APPLICATIONS ====================

    def _get_solutions_list(self) -> list[Solution]:
        data = self.client.get(
            self._get_url("solutions"), access_token=self.config.access_token
        )
        try:
            return [Solution.model_validate(s) for s in data or []]
        except ValidationError as e:
            raise RemoteError(None, "Unexpected response from server.") from e

    def _select_solution(self) -> str:
        """Pick the solution to publish to, asking the user when needed."""
        solutions = self._get_solutions_list()
        if not solutions:
            raise AuthorizationError(
                "Current organization doesn't have solutions to which you have access."
            )
        if len(solutions) == 1:
            self.printer.info(
                "Solution [%s] was chosen automatically as only one available.",
                sanitize_terminal_output(solutions[0].name),
            )
            return solutions[0].id

        solutions = sorted(solutions, key=lambda s: s.name.casefold())
        self.printer.info("Multiple solutions are available:")
        self.printer.raw()
        for i, solution in enumerate(solutions, start=1):
            self.printer.raw("\t[%d] %s", i, sanitize_terminal_output(solution.name))
        self.printer.raw()

        while True:
            try:
                answer = self._prompt(
                    "<<<     Please, specify the number of a solution which you want to use",
                    1,
                )
            except (click.Abort, EOFError, KeyboardInterrupt) as e:
                self.printer.raw()
                raise InputValidationError("Was interrupted.") from e
            try:
                n = int(str(answer).strip())
            except ValueError:
                continue
            if 1 <= n <= len(solutions):
                return solutions[n - 1].id

    def _process_icon(self, store: ManifestStore, manifest: Manifest) -> None:
        if not manifest.icon_path:
            return
        icon = (store.app_path / manifest.icon_path).resolve()
        if not icon.is_relative_to(store.app_path.resolve()):
            raise InputValidationError(
                '"iconPath" should be relative to the application folder.'
            )
        if not icon.is_file():
            raise InputValidationError('Wrong "iconPath" was given.')

    def _send_app(
        self,
        path: str | Path | None = None,
        name: str | None = None,
        api_level: Any = None,
        mock: str | None = None,
        solution_id: str | None = None,
        global_app: bool = False,
        app_id: str | None = None,
        update: bool = False,
    ) -> dict[str, Any]:
        """Validate, package and upload an application.

        A failed send puts the manifest back exactly as it was.
        """
        store = ManifestStore(path or self._cwd_path)
        if not store.exists():
            raise InputValidationError("Invalid path.")
        manifest = store.load()
        snapshot = store.snapshot()

        token = self._require_token()

        manifest.name = name or manifest.name
        if not (manifest.name or "").strip():
            raise InputValidationError("Application name is required.")

        if api_level not in (None, ""):
            manifest.min_js_api_level = api_level
        manifest.min_js_api_level = parse_api_level(manifest.min_js_api_level)

        if mock:
            manifest.mock = parse_mock_flag(mock)

        if update:
            app_id = app_id or manifest.id
            if not app_id:
                raise InputValidationError("Application ID is required.")

        try:
            self._process_icon(store, manifest)

            data: dict[str, Any] = {}
            if not update:
                data["solutionId"] = solution_id or self._select_solution()
            if not global_app and self.config.user_id is not None:
                data["userId"] = str(self.config.user_id)

            store.save(manifest)
            archive = pack_folder(store.app_path, skip_mocks=not manifest.mock)
            try:
                with open(archive.path, "rb") as f:
                    files = {"file": self.client.file_part("app.zip", f)}
                    if update:
                        result = self.client.put(
                            self._get_url("app", quote(app_id, safe="")),
                            access_token=token,
                            data=data,
                            files=files,
                        )
                    else:
                        result = self.client.post(
                            self._get_url("app"),
                            access_token=token,
                            data=data,
                            files=files,
                        )
            finally:
                Path(archive.path).unlink(missing_ok=True)
        except RemoteError as e:
            store.restore(snapshot)
            raise (_app_error(e, app_id) if update else _session_error(e)) from e
        except BaseException:
            # Ctrl+C mid-upload included
            store.restore(snapshot)
            raise

        new_id = (result or {}).get("_id") if isinstance(result, dict) else None
        app_id = new_id or app_id
        if app_id and manifest.id != app_id:
            manifest.id = app_id
            store.save(manifest)
        return {"id": app_id, "name": manifest.name}

    def register_app(
        self,
        path: str | Path | None = None,
        name: str | None = None,
        api_level: Any = None,
        mock: str | None = None,
        solution_id: str | None = None,
        global_app: bool = False,
    ) -> dict[str, Any]:
        """Register and deploy a new HTML5 application.

        Values not given are taken from the application's manifest.
        """
        return self._send_app(
            path=path,
            name=name,
            api_level=api_level,
            mock=mock,
            solution_id=solution_id,
            global_app=global_app,
        )

    def update_app(
        self,
        app_id: str | None = None,
        path: str | Path | None = None,
        name: str | None = None,
        api_level: Any = None,
        mock: str | None = None,
        global_app: bool = False,
    ) -> dict[str, Any]:
        """Upload a new version of an existing application.

        ``app_id`` defaults to the id stored in the manifest.
        """
        return self._send_app(
            path=path,
            name=name,
            api_level=api_level,
            mock=mock,
            global_app=global_app,
            app_id=app_id,
            update=True,
        )

    def delete_app(self, app_id: str, path: str | Path | None = None) -> dict[str, Any]:
        """Unregister an application.

        When the manifest under ``path`` (the cwd by default) refers to the
        deleted application, its id is dropped.
        """
        token = self._require_token()
        try:
            self.client.delete(
                self._get_url("app", quote(app_id, safe="")), access_token=token
            )
        except RemoteError as e:
            raise _app_error(e, app_id) from e

        store = ManifestStore(path or self._cwd_path)
        if store.path.is_file():
            try:
                manifest = store.load()
                if manifest.id == app_id:
                    manifest.id = None
                    store.save(manifest)
            except StorageError as e:
                logger.debug("Could not update %s after delete: %s", store.path, e)
        return {"id": app_id}

    def get_apps_list(self) -> list[Application]:
        """List registered applications with their owning solution."""
        token = self._require_token()
        try:
            data = self.client.get(self._get_url("app"), access_token=token)
            solutions = {s.id: s for s in self._get_solutions_list()}
        except RemoteError as e:
            raise _session_error(e) from e

        try:
            apps = [Application.model_validate(a) for a in data or []]
        except ValidationError as e:
            raise RemoteError(None, "Unexpected response from server.") from e
        for app in apps:
            solution = solutions.get(app.solution_id) if app.solution_id else None
            app.solution = solution.model_dump(by_alias=True) if solution else {}
        return apps

    # ==================== DEVICE LOGS ====================

    def _advance_log(self, ip: str, response: Any, log_range: LogRange) -> LogRange:
        """Print what a poll returned and compute the next position."""
        status = response.status_code
        if status == 416:
            logger.debug("Log on %s was rotated, starting over", ip)
            return LogRange()
        if status == 304:
            return log_range
        if status not in (200, 206):
            raise RemoteError(None, f"Unexpected response from device {ip}: {status}.", status)

        body = response.content
        if status == 206:
            offset = log_range.offset + len(body)
        else:
            if 0 < log_range.offset <= len(body):
                body = body[log_range.offset :]
            offset = len(response.content)
        if body:
            self.printer.stream(body)
        return LogRange(
            offset=offset,
            last_modified=response.headers.get("Date") or log_range.last_modified,
        )

    def show_logs(
        self, ip: str, follow: bool = False, prev_range: LogRange | None = None
    ) -> LogRange:
        """Print the device log, optionally polling for new output.

        Args:
            ip: Device address.
            follow: Keep polling every ``LOG_POLL_INTERVAL`` seconds.
            prev_range: Position reached by an earlier call.

        Returns:
            The position after the last poll (only reached without ``follow``).
        """
        url = f"http://{ip}:{LOG_PORT}/logs"
        log_range = prev_range or LogRange()
        connected = prev_range is not None

        while True:
            headers = {"Accept": "*/*", "Range": f"bytes={log_range.offset}-"}
            if log_range.last_modified:
                headers["If-Modified-Since"] = log_range.last_modified
            try:
                response = self.client.fetch(url, headers=headers)
            except RemoteError as e:
                if connected:
                    raise RemoteError(e.code, f"Connection to device {ip} was lost.") from e
                raise RemoteError(e.code, f"Could not connect to device {ip}.") from e
            connected = True

            log_range = self._advance_log(ip, response, log_range)
            if not follow:
                return log_range
            self._sleep(LOG_POLL_INTERVAL)
