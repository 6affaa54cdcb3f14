"""Typed models for MOVEit API payloads.

Every payload the client consumes is decoded here. Decoders raise
MoveitInvalidResponseError naming the missing field instead of letting a
KeyError escape from deep inside the sync engine.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .exceptions import MoveitInvalidResponseError


def _require(data: Any, key: str, payload: str) -> Any:
    """Fetch a required field from a decoded JSON object."""
    if not isinstance(data, dict):
        raise MoveitInvalidResponseError(
            f"Expected a JSON object for {payload}, got {type(data).__name__}"
        )
    value = data.get(key)
    if value is None or value == "":
        raise MoveitInvalidResponseError(
            f"The {key} field is missing in the {payload} response"
        )
    return value


@dataclass
class AccessToken:
    """Bearer token returned by the token endpoint."""

    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> "AccessToken":
        return cls(
            access_token=str(_require(data, "access_token", "token")),
            token_type=str(data.get("token_type") or "bearer"),
            expires_in=data.get("expires_in"),
        )


@dataclass
class FileEntry:
    """A file stored on the MOVEit server."""

    id: str
    """Opaque file identifier assigned by the server"""

    name: str
    """Base filename"""

    size: int = 0
    """File size in bytes"""

    folder_id: Optional[str] = None
    """Identifier of the containing folder"""

    path: Optional[str] = None
    """Full server-side path"""

    upload_stamp: Optional[str] = None
    """ISO timestamp of the upload"""

    @classmethod
    def from_dict(cls, data: Any) -> "FileEntry":
        """Decode a single item of a file listing.

        Args:
            data: JSON object from the ``items`` array

        Returns:
            FileEntry instance

        Raises:
            MoveitInvalidResponseError: If ``id`` or ``name`` is missing
        """
        entry_id = _require(data, "id", "file entry")
        name = _require(data, "name", "file entry")
        folder_id = data.get("folderID")
        try:
            size = int(data.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        return cls(
            id=str(entry_id),
            name=str(name),
            size=size,
            folder_id=str(folder_id) if folder_id is not None else None,
            path=data.get("path"),
            upload_stamp=data.get("uploadStamp"),
        )


@dataclass
class FileEntriesResult:
    """One page of a file listing."""

    entries: list[FileEntry] = field(default_factory=list)
    page: int = 1
    per_page: int = 0
    total_items: int = 0
    total_pages: int = 1

    @classmethod
    def from_api_response(cls, data: Any) -> "FileEntriesResult":
        """Decode a ``GET /files`` response.

        Args:
            data: Decoded JSON response

        Returns:
            FileEntriesResult with the decoded entries and paging info

        Raises:
            MoveitInvalidResponseError: If ``items`` is missing or malformed
        """
        if not isinstance(data, dict) or "items" not in data:
            raise MoveitInvalidResponseError(
                "The items field is missing in the file listing response"
            )
        items = data["items"]
        if not isinstance(items, list):
            raise MoveitInvalidResponseError(
                "The items field in the file listing response is not a list"
            )

        paging = data.get("paging") or {}
        if not isinstance(paging, dict):
            paging = {}

        entries = [FileEntry.from_dict(item) for item in items]
        return cls(
            entries=entries,
            page=int(paging.get("page") or 1),
            per_page=int(paging.get("perPage") or len(entries)),
            total_items=int(paging.get("totalItems") or len(entries)),
            total_pages=int(paging.get("totalPages") or 1),
        )


@dataclass
class UserProfile:
    """The account profile returned by ``GET /users/self``."""

    home_folder_id: str
    id: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "UserProfile":
        """Decode the profile.

        Raises:
            MoveitInvalidResponseError: If ``homeFolderID`` is absent, since
                uploads have no safe default target.
        """
        home_folder_id = _require(data, "homeFolderID", "user profile")
        user_id = data.get("id")
        return cls(
            home_folder_id=str(home_folder_id),
            id=str(user_id) if user_id is not None else None,
            username=data.get("username"),
            full_name=data.get("fullName"),
        )
