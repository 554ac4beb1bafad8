"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ValidationError(DomainError):
    """Raised when a caller supplies an invalid value."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class NoNodesAvailableError(DomainError):
    """Raised when no audio node is connected."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "No nodes available", code="NO_NODES_AVAILABLE")


class NodeNotConnectedError(DomainError):
    """Raised when a command needs a live socket but the node is disconnected."""

    def __init__(self, node: str, operation: str, message: str | None = None) -> None:
        msg = message or f"Node '{node}' has no open websocket for '{operation}'"
        super().__init__(msg, code="NODE_NOT_CONNECTED")
        self.node = node
        self.operation = operation


class UnknownEventError(DomainError):
    """Raised when a node reports an event type outside the wire contract."""

    def __init__(self, event_type: str | None, payload: dict | None = None) -> None:
        super().__init__(f"Unknown event '{event_type}'", code="UNKNOWN_EVENT")
        self.event_type = event_type
        self.payload = payload or {}


class TrackLoadError(DomainError):
    """Raised when a track search against a node fails."""

    def __init__(self, identifier: str, cause: str) -> None:
        super().__init__(f"Failed to fetch tracks for '{identifier}': {cause}", code="TRACK_LOAD_FAILED")
        self.identifier = identifier
        self.cause = cause
