"""pymoveit - keep a local folder in sync with a MOVEit Transfer account."""

from .api import MoveitClient
from .exceptions import (
    MoveitAPIError,
    MoveitAuthenticationError,
    MoveitConfigError,
    MoveitDownloadError,
    MoveitFileNotFoundError,
    MoveitInvalidResponseError,
    MoveitNetworkError,
    MoveitNotFoundError,
    MoveitPermissionError,
    MoveitRateLimitError,
    MoveitUploadError,
)

__version__ = "0.1.0"

__all__ = [
    "MoveitClient",
    "MoveitAPIError",
    "MoveitAuthenticationError",
    "MoveitConfigError",
    "MoveitDownloadError",
    "MoveitFileNotFoundError",
    "MoveitInvalidResponseError",
    "MoveitNetworkError",
    "MoveitNotFoundError",
    "MoveitPermissionError",
    "MoveitRateLimitError",
    "MoveitUploadError",
]
