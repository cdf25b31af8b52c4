# File: app/core/errors.py

"""
Exception types raised by the Roomify services.

Most I/O helpers catch these at their boundary and degrade to None / [].
The 3D generation client is the one component that lets GenerationError
reach its caller.
"""


class RoomifyError(Exception):
    """Base class for all Roomify errors."""


class ImageFetchError(RoomifyError):
    """Network failure or non-2xx response while fetching an image."""

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class MalformedDataUrlError(RoomifyError):
    """Inline data URL without a header/payload separator or valid base64."""


class UnsupportedImageTypeError(RoomifyError):
    """Upload content type outside the accepted JPEG/PNG set."""


class GenerationError(RoomifyError):
    """Every configured image generation model failed."""

    def __init__(self, attempted: int, last_error: Exception | None):
        detail = str(last_error) if last_error is not None else "unknown error"
        super().__init__(
            f"Failed to generate 3D view (tried {attempted} model(s)): {detail}"
        )
        self.attempted = attempted
        self.last_error = last_error


class HostingError(RoomifyError):
    """Hosting backend refused an operation."""


class SiteNotFoundError(HostingError):
    """The requested hosted subdomain does not resolve."""

    def __init__(self, subdomain: str):
        super().__init__(f"Hosted site not found: {subdomain}")
        self.subdomain = subdomain
