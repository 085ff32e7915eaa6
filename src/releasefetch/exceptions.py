"""
Custom exceptions for releasefetch.

Every failure the download pipeline can surface to its caller is one of the
classes below, so callers can catch ReleaseFetchError to handle them all.
"""


class ReleaseFetchError(Exception):
    """
    Base exception for all releasefetch errors.

    All custom exceptions in releasefetch inherit from this class
    to allow for easy catching of all application-specific errors.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(ReleaseFetchError):
    """
    Exception raised when the selection criteria or settings are unusable.

    This includes:
    - No tag, no release ID and `latest` not requested
    - An empty tag or ID for a by-tag or by-ID lookup
    - Malformed repository paths or configuration files
    """

    pass


# =============================================================================
# Release Resolution Errors
# =============================================================================


class NotFoundError(ReleaseFetchError):
    """
    Exception raised when the API reports no such release, tag or ID.

    Attributes:
        status_code: The HTTP status code the API answered with.
        endpoint: The API endpoint that was accessed.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.endpoint = endpoint


class SelectionError(ReleaseFetchError):
    """Exception raised when no listed release satisfies the active filters."""

    pass


class AssetError(ReleaseFetchError):
    """
    Exception raised when the requested assets cannot be resolved.

    This includes:
    - A file pattern was given but the release has no assets
    - A file pattern was given but no asset name matches it
    - An asset name that is not a safe file name
    """

    pass


# =============================================================================
# Retrieval Errors
# =============================================================================


class FetchError(ReleaseFetchError):
    """
    Exception raised when a release artifact cannot be fetched.

    Attributes:
        status_code: The HTTP status code returned by the server, if any.
        url: The URL that was being fetched.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url


class StorageError(ReleaseFetchError):
    """
    Exception raised for local file system failures.

    This includes creating the output directory, writing a downloaded file,
    and extracting a downloaded archive.

    Attributes:
        path: The file path that caused the error.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
