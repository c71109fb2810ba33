"""Exceptions raised by industry_map."""

from typing import Optional


class IndustryMapError(Exception):
    """Base class for industry_map errors."""


class ClusteringServiceError(IndustryMapError):
    """The external clustering service could not be reached or returned an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
