"""Domain error taxonomy: stdlib only."""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    def __init__(self, message: str, code: str = "ERROR", details: dict | None = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    """Input rejected before any remote call was attempted."""

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field


class NotFoundError(ServiceError):
    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found: {identifier}",
            "NOT_FOUND",
            {"resource": resource, "identifier": str(identifier)},
        )


class StoreError(ServiceError):
    """The persistent store rejected a read or write."""

    def __init__(self, message: str, collection: str | None = None, operation: str | None = None):
        super().__init__(
            message,
            "STORE_ERROR",
            {"collection": collection, "operation": operation},
        )
        self.collection = collection
        self.operation = operation


class RemoteWriteError(ServiceError):
    """A mutation failed remotely; its optimistic patch was rolled back."""

    def __init__(self, mutation: str, cause: BaseException):
        super().__init__(
            f"{mutation} failed: {cause}",
            "REMOTE_WRITE_FAILED",
            {"mutation": mutation},
        )
        self.mutation = mutation
        self.cause = cause


class PartialWriteError(RemoteWriteError):
    """A compound write failed and some compensations failed too.

    The store may hold a partially written document; ``failed_steps``
    names the compensations that could not be applied.
    """

    def __init__(self, mutation: str, cause: BaseException, failed_steps: list[str]):
        super().__init__(mutation, cause)
        self.code = "PARTIAL_WRITE"
        self.failed_steps = failed_steps
        self.details["failed_steps"] = list(failed_steps)


class RefreshError(ServiceError):
    """A full reload failed; the previous cache contents were kept."""

    def __init__(self, collection: str, cause: BaseException):
        super().__init__(
            f"Failed to load {collection}: {cause}",
            "REFRESH_FAILED",
            {"collection": collection},
        )
        self.collection = collection
        self.cause = cause
