"""Error taxonomy shared by the storage, service and assistant layers."""

from __future__ import annotations

from typing import Optional


class LongwayError(Exception):
    """Base class for all application errors."""


class ConfigurationError(LongwayError):
    """The process cannot start with the given configuration."""


class ValidationFailed(LongwayError):
    """Input violates a field constraint. Raised before any write happens."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class NotFound(LongwayError):
    """The requested entity does not exist."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id
        self.message = f"{entity} not found"


class StorageFailure(LongwayError):
    """The underlying database engine rejected a statement."""


class AssistantServiceError(LongwayError):
    """The external assistant service rejected a request or was unreachable."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status
