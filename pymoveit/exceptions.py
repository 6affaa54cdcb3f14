"""Exceptions raised by the MOVEit client and sync engine."""


class MoveitAPIError(Exception):
    """Base exception for all MOVEit API errors."""


class MoveitConfigError(MoveitAPIError):
    """Configuration is missing or invalid."""


class MoveitAuthenticationError(MoveitAPIError):
    """Credentials were rejected or the token exchange failed."""


class MoveitPermissionError(MoveitAPIError):
    """Access to the resource is forbidden."""


class MoveitNotFoundError(MoveitAPIError):
    """The requested remote resource does not exist."""


class MoveitRateLimitError(MoveitAPIError):
    """Too many requests were sent to the server."""


class MoveitNetworkError(MoveitAPIError):
    """The server could not be reached."""


class MoveitInvalidResponseError(MoveitAPIError):
    """The server returned a payload that could not be decoded."""


class MoveitUploadError(MoveitAPIError):
    """Uploading a file failed."""


class MoveitDownloadError(MoveitAPIError):
    """Downloading a file failed."""


class MoveitFileNotFoundError(MoveitAPIError):
    """A local file that should be transferred does not exist."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"Local file not found: {file_path}")
