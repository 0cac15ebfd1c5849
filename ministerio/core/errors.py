from __future__ import annotations


class MinisterioError(Exception):
    """Base exception for this project."""


class ConfigError(MinisterioError):
    """Raised when configuration is invalid or incomplete."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(f"{path}: {message}" if path else message)
        self.path = path


class BackendError(MinisterioError):
    """Auth or data request to the hosted backend failed."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthRequiredError(MinisterioError):
    """A protected command ran without a stored session."""


class AIServiceError(MinisterioError):
    """The generative-AI API failed or returned an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AudioDeviceError(MinisterioError):
    """Microphone or speaker could not be opened (missing device or permission)."""


class GeolocationError(MinisterioError):
    """No coordinates are available for a territory search."""
