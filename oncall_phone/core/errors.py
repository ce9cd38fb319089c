# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Lookup failure types.

``NotFoundError`` is a normal outcome ("no number available");
``UpstreamError`` means a collaborator failed. Both carry the pipeline stage
that produced them. They subclass ``KeyError`` / ``RuntimeError`` so the
controllers map them the same way as the rest of the platform.
"""

from typing import Optional


class LookupFailure(Exception):
    """Base for every typed failure raised by the resolution pipeline."""

    def __init__(self, message: str, stage: str) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        return self.message


class NotFoundError(LookupFailure, KeyError):
    """No rotation, participant, directory record or phone for a lookup."""


class UpstreamError(LookupFailure, RuntimeError):
    """Transport failure, non-2xx response, malformed payload or auth rejection."""

    def __init__(
        self, message: str, stage: str, status_code: Optional[int] = None
    ) -> None:
        super().__init__(message, stage)
        self.status_code = status_code


class ConfigurationError(UpstreamError):
    """Required settings are missing; raised before any network call."""
