"""Error taxonomy for the poll cycle."""

from __future__ import annotations


class DetikError(Exception):
    """Base class for all poll cycle failures."""


class FetchError(DetikError):
    """The feed could not be reached or returned a non-success status."""

    def __init__(self, message: str, page: int | None = None) -> None:
        super().__init__(message)
        self.page = page


class ParseError(DetikError):
    """The feed response body is not in the expected structured format."""

    def __init__(self, message: str, page: int | None = None) -> None:
        super().__init__(message)
        self.page = page


class DispatchError(DetikError):
    """The sink rejected or failed to accept a normalized report."""

    def __init__(self, message: str, contribution_id: int | None = None) -> None:
        super().__init__(message)
        self.contribution_id = contribution_id


class PageLimitError(DetikError):
    """The batch reached the page limit before any stop condition."""

    def __init__(self, message: str, page: int | None = None) -> None:
        super().__init__(message)
        self.page = page


class WatermarkError(DetikError):
    """The watermark store could not be read or written."""
