"""API client for MOVEit Transfer."""

from __future__ import annotations

import random
import time
from pathlib import Path
from typing import Any

import httpx

from .config import config
from .exceptions import (
    MoveitAPIError,
    MoveitAuthenticationError,
    MoveitDownloadError,
    MoveitFileNotFoundError,
    MoveitInvalidResponseError,
    MoveitNetworkError,
    MoveitNotFoundError,
    MoveitPermissionError,
    MoveitRateLimitError,
    MoveitUploadError,
)
from .models import AccessToken, FileEntriesResult, FileEntry, UserProfile


class MoveitClient:
    """Client for the MOVEit Transfer REST API.

    The client holds no credentials. Every call that touches the file store
    takes a bearer token obtained from :meth:`get_token`.
    """

    def __init__(
        self,
        api_url: str | None = None,
        max_retries: int = 0,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
    ):
        """Initialize MOVEit API client.

        Args:
            api_url: Optional API URL (uses config if not provided)
            max_retries: Maximum number of transport retry attempts (default: 0)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._client: httpx.Client | None = None

    def __enter__(self) -> MoveitClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _url(self, endpoint: str) -> str:
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    @staticmethod
    def _auth_headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Map an HTTP status error to a MOVEit exception.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code

        if status_code == 401:
            raise MoveitAuthenticationError(
                "Invalid or expired access token"
            ) from e
        elif status_code == 403:
            raise MoveitPermissionError(
                "Access forbidden - check your permissions"
            ) from e
        elif status_code == 404:
            raise MoveitNotFoundError("Resource not found") from e
        elif status_code == 429:
            error = MoveitRateLimitError("Rate limit exceeded - please try again later")
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = (
                        error_data.get("detail")
                        or error_data.get("error_description")
                        or error_data.get("message")
                        or error_data.get("error")
                    )
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            # Body is not JSON, keep the status-based message
            pass

        error = MoveitAPIError(error_msg)
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _request(
        self,
        method: str,
        endpoint: str,
        token: str | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            token: Bearer token; omitted for the token endpoint itself
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data ({} for empty bodies)

        Raises:
            MoveitAPIError: If the request fails after all retries
        """
        url = self._url(endpoint)
        if token is not None:
            headers = dict(kwargs.pop("headers", None) or {})
            headers.update(self._auth_headers(token))
            kwargs["headers"] = headers

        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                if not response.content:
                    return {}

                content_type = response.headers.get("Content-Type", "")
                if "json" not in content_type:
                    raise MoveitInvalidResponseError(
                        f"Unexpected response type: {content_type or 'unknown'}"
                    )
                try:
                    return response.json()
                except ValueError as e:
                    raise MoveitInvalidResponseError(
                        "Invalid JSON response from server"
                    ) from e

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    retry_after = e.response.headers.get("Retry-After")
                    if (
                        isinstance(error, MoveitRateLimitError)
                        and retry_after
                        and retry_after.isdigit()
                    ):
                        delay = float(retry_after)
                    else:
                        delay = self._calculate_retry_delay(attempt)
                    time.sleep(delay)
                    continue
                raise error from e
            except MoveitAPIError:
                raise
            except httpx.RequestError as e:
                error = MoveitNetworkError(f"Network error: {e}")
                last_exception = error
                if attempt < self.max_retries:
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise MoveitAPIError("Request failed after all retry attempts")

    # =========================
    # Authentication
    # =========================

    def get_token(self, username: str, password: str) -> str:
        """Exchange credentials for a bearer token.

        Args:
            username: Account name
            password: Account password

        Returns:
            Access token string

        Raises:
            MoveitAuthenticationError: On rejected credentials, an unreachable
                endpoint or a malformed token response
        """
        data = {
            "grant_type": "password",
            "username": username,
            "password": password,
        }
        try:
            response = self._request("POST", "/token", data=data)
            return AccessToken.from_dict(response).access_token
        except MoveitAuthenticationError:
            raise
        except MoveitAPIError as e:
            raise MoveitAuthenticationError(
                f"Failed to retrieve access token: {e}"
            ) from e

    def get_user_profile(self, token: str) -> UserProfile:
        """Get the profile of the authenticated account.

        Args:
            token: Bearer token

        Returns:
            Decoded UserProfile
        """
        return UserProfile.from_dict(self._request("GET", "/users/self", token=token))

    def get_home_folder_id(self, token: str) -> str:
        """Resolve the home folder of the authenticated account.

        Args:
            token: Bearer token

        Returns:
            Home folder identifier

        Raises:
            MoveitInvalidResponseError: If the profile has no homeFolderID
        """
        return self.get_user_profile(token).home_folder_id

    # =========================
    # File Operations
    # =========================

    def get_file_entries(
        self, token: str, page: int = 1, per_page: int = 100
    ) -> FileEntriesResult:
        """Get one page of the files visible to the account.

        Args:
            token: Bearer token
            page: Page number (1-based)
            per_page: Entries per page

        Returns:
            Decoded page of file entries
        """
        params = {"page": page, "perPage": per_page}
        response = self._request("GET", "/files", token=token, params=params)
        return FileEntriesResult.from_api_response(response)

    def list_files(self, token: str, per_page: int = 100) -> list[FileEntry]:
        """List all files visible to the account, following pagination.

        Args:
            token: Bearer token
            per_page: Entries requested per page

        Returns:
            All file entries
        """
        entries: list[FileEntry] = []
        page = 1
        while True:
            result = self.get_file_entries(token, page=page, per_page=per_page)
            entries.extend(result.entries)
            if page >= result.total_pages or not result.entries:
                return entries
            page += 1

    def upload_file(self, token: str, folder_id: str, file_path: Path) -> Any:
        """Upload a local file into a folder.

        Args:
            token: Bearer token
            folder_id: Target folder identifier (assumed to exist)
            file_path: Local path of the file

        Returns:
            Upload response data

        Raises:
            MoveitFileNotFoundError: If the local file does not exist
            MoveitUploadError: If the server rejects the upload
        """
        if not file_path.is_file():
            raise MoveitFileNotFoundError(str(file_path))

        try:
            content = file_path.read_bytes()
        except FileNotFoundError as e:
            raise MoveitFileNotFoundError(str(file_path)) from e
        except OSError as e:
            raise MoveitUploadError(f"Failed to read {file_path}: {e}") from e

        # Bytes rather than a file handle so a retried request resends the body
        files = {"file": (file_path.name, content, "application/octet-stream")}
        try:
            return self._request(
                "POST", f"/folders/{folder_id}/files", token=token, files=files
            )
        except (MoveitAuthenticationError, MoveitNetworkError):
            raise
        except MoveitAPIError as e:
            raise MoveitUploadError(f"Upload of {file_path.name} failed: {e}") from e

    def download_file(self, token: str, file_id: str, timeout: int = 60) -> bytes:
        """Download the content of a file.

        Args:
            token: Bearer token
            file_id: Identifier of the file
            timeout: Request timeout in seconds (default: 60)

        Returns:
            File content as bytes

        Raises:
            MoveitNotFoundError: If the file no longer exists
            MoveitDownloadError: If the download fails
        """
        url = self._url(f"/files/{file_id}/download")
        client = self._get_client()

        try:
            with client.stream(
                "GET", url, headers=self._auth_headers(token), timeout=timeout
            ) as response:
                if response.status_code == 404:
                    raise MoveitNotFoundError(f"File {file_id} not found")
                if response.status_code == 401:
                    raise MoveitAuthenticationError("Invalid or expired access token")
                response.raise_for_status()
                return response.read()
        except httpx.HTTPStatusError as e:
            raise MoveitDownloadError(f"Download failed: {e}") from e
        except httpx.RequestError as e:
            raise MoveitNetworkError(f"Network error during download: {e}") from e

    def delete_file(self, token: str, file_id: str) -> None:
        """Delete a file.

        Args:
            token: Bearer token
            file_id: Identifier of the file

        Raises:
            MoveitNotFoundError: If the file no longer exists
        """
        self._request("DELETE", f"/files/{file_id}", token=token)
