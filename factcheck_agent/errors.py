"""Exception taxonomy shared across the pipeline."""

from __future__ import annotations

from typing import Optional


class FactCheckAgentError(Exception):
    """Base class for all agent errors."""


class ValidationError(FactCheckAgentError):
    """Missing or invalid configuration detected while constructing a component."""


class SourceFetchError(FactCheckAgentError):
    """A single source could not be fetched; isolated to that source."""

    def __init__(self, source_id: str, message: str) -> None:
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id


class ParseError(FactCheckAgentError):
    """The reasoning collaborator returned text without a usable JSON object."""


class PublishError(FactCheckAgentError):
    """Publishing to the social platform failed."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class PublishRateLimited(PublishError):
    """Platform answered 429; the current drain is aborted."""


class PublishForbidden(PublishError):
    """Platform answered 401/403; credentials or app permissions need fixing."""
