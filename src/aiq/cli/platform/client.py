"""HTTP client for the AIQ platform REST API."""

from __future__ import annotations

import json
import logging
from typing import Any, BinaryIO

import requests

from .config import DEFAULT_TIMEOUT, USER_AGENT
from .errors import RemoteError

logger = logging.getLogger(__name__)


class RestClient:
    """Thin wrapper around ``requests`` with a single failure type.

    Every call either returns the parsed response body or raises
    :class:`RemoteError`.
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT) -> None:
        """Initialize the client.

        Args:
            timeout: Request timeout in seconds.
        """
        self.timeout = timeout
        self._session = requests.Session()

    def _get_headers(
        self, access_token: str | None, headers: dict[str, str] | None
    ) -> dict[str, str]:
        result = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        if access_token:
            result["Authorization"] = f"Bearer {access_token}"
        if headers:
            result.update(headers)
        return result

    def _send(
        self,
        method: str,
        url: str,
        query: dict | None = None,
        access_token: str | None = None,
        data: dict | None = None,
        files: dict | None = None,
        json_data: Any = None,
        headers: dict[str, str] | None = None,
        stream: bool = False,
    ) -> requests.Response:
        """Send a request, converting transport failures only."""
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                headers=self._get_headers(access_token, headers),
                params=query,
                data=data,
                files=files,
                json=json_data,
                stream=stream,
                timeout=self.timeout,
            )
        except requests.exceptions.ChunkedEncodingError as e:
            raise RemoteError("aborted", "Operation aborted") from e
        except requests.exceptions.ConnectionError as e:
            raise RemoteError(None, f"Cannot connect to {url}") from e
        except requests.exceptions.Timeout as e:
            raise RemoteError(None, "Request timed out") from e
        except requests.exceptions.RequestException as e:
            raise RemoteError(None, str(e) or "Network request failed") from e

        logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    def _request(self, method: str, url: str, **options: Any) -> requests.Response:
        """Make request and turn every failure into :class:`RemoteError`.

        Args:
            method: HTTP method.
            url: Absolute URL.
            **options: ``query`` (URL parameters), ``access_token`` (sent as a
                bearer token), ``data`` (form fields, multipart when ``files``
                is set), ``files``, ``json_data`` and ``headers``.

        Returns:
            Response object with a status below 400.

        Raises:
            RemoteError: On API errors or connection issues.
        """
        response = self._send(method, url, **options)
        if response.status_code >= 400:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            if not isinstance(error_data, dict):
                error_data = {}
            code = error_data.get("error")
            if code is not None and not isinstance(code, str):
                code = json.dumps(code)
            raise RemoteError(
                code,
                error_data.get("error_description") or code or response.reason,
                response.status_code,
            )
        return response

    @staticmethod
    def _body(response: requests.Response) -> Any:
        """Parsed JSON body, the raw text when it is not JSON, None when empty."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def get(self, url: str, **options: Any) -> Any:
        return self._body(self._request("GET", url, **options))

    def post(self, url: str, **options: Any) -> Any:
        return self._body(self._request("POST", url, **options))

    def put(self, url: str, **options: Any) -> Any:
        return self._body(self._request("PUT", url, **options))

    def delete(self, url: str, **options: Any) -> Any:
        return self._body(self._request("DELETE", url, **options))

    def head(self, url: str, **options: Any) -> dict[str, str]:
        """Send a HEAD request and return the response headers."""
        return dict(self._request("HEAD", url, **options).headers)

    def json(self, url: str, **options: Any) -> Any:
        """GET a resource that must answer with JSON."""
        response = self._request("GET", url, **options)
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                None, "Unexpected response from server.", response.status_code
            ) from e

    def post_json(self, url: str, payload: Any, **options: Any) -> Any:
        """POST ``payload`` as a JSON body."""
        return self._body(self._request("POST", url, json_data=payload, **options))

    def fetch(self, url: str, headers: dict[str, str] | None = None) -> requests.Response:
        """GET ``url`` and hand back the response whatever its status."""
        return self._send("GET", url, headers=headers)

    def download(self, url: str, target: BinaryIO) -> int:
        """Stream ``url`` into an open binary file.

        Returns:
            Number of bytes written.
        """
        response = self._request("GET", url, headers={"Accept": "*/*"}, stream=True)
        written = 0
        try:
            for chunk in response.iter_content(chunk_size=8192):
                target.write(chunk)
                written += len(chunk)
        except requests.exceptions.RequestException as e:
            raise RemoteError("aborted", "Operation aborted") from e
        finally:
            response.close()
        return written

    @staticmethod
    def file_part(filename: str, handle: BinaryIO) -> tuple[str, BinaryIO, str]:
        """Build a multipart entry for an open zip archive."""
        return (filename, handle, "application/zip")
