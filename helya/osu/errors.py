"""Errors raised by the osu! API client."""

from helya.errors import HelyaError


class OsuAPIError(HelyaError):
    """The osu! API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OsuNotFoundError(OsuAPIError):
    """The requested user or resource does not exist."""
