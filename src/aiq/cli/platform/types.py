"""Data types for AIQ platform contracts."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SessionConfig(BaseModel):
    """Stored session state. An empty config means unauthenticated."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    base_url: str | None = Field(None, alias="baseURL")
    access_token: str | None = Field(None, alias="accessToken")
    user_id: int | str | None = Field(None, alias="userId")
    server_url: str | None = Field(None, alias="serverUrl")
    org_name: str | None = Field(None, alias="orgName")
    username: str | None = None
    expires_in: int | None = Field(None, alias="expiresIn")

    @property
    def is_authorized(self) -> bool:
        return bool(self.access_token)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Manifest(BaseModel):
    """Per-application descriptor stored as ``manifest.json``.

    Keys unknown to the client are kept so a hand-edited manifest survives
    a round trip.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str | None = None
    min_js_api_level: int | str | None = Field(None, alias="minJsApiLevel")
    mock: bool | None = None
    icon_path: str | None = Field(None, alias="iconPath")
    id: str | None = None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Solution(BaseModel):
    """Remote grouping entity applications are published under."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    name: str = ""


class Application(BaseModel):
    """Remote application as returned by the platform."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(alias="_id")
    name: str = ""
    solution_id: str | None = Field(None, alias="solutionId")
    solution: dict[str, Any] = Field(default_factory=dict)


class PackagedArchive(BaseModel):
    """Temporary zip produced for a single upload."""

    path: str
    size: int


class LogRange(BaseModel):
    """Position in the device log carried between polls."""

    offset: int = 0
    last_modified: str | None = None
