"""Board exception types."""


class BoardError(Exception):
    """Base exception for all board errors."""


class ConfigError(BoardError):
    """Failed to load board configuration."""


class NotFoundError(BoardError):
    """Raised by a store when a document id does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"No document {doc_id} in {collection}")


class PersistenceError(BoardError):
    """Raised when a store write or read fails."""

    def __init__(self, operation: str, collection: str, message: str = "store unavailable"):
        self.operation = operation
        self.collection = collection
        super().__init__(f"{operation} on {collection} failed: {message}")


class SprintValidationError(BoardError):
    """Raised when a sprint action is rejected before anything is written."""

    def __init__(self, sprint_id: str, message: str):
        self.sprint_id = sprint_id
        super().__init__(message)


class InvalidTransitionError(BoardError):
    """Raised when an invalid sprint state transition is attempted."""

    def __init__(self, sprint_id: str, from_status, to_status):
        self.sprint_id = sprint_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition for sprint {sprint_id}: "
            f"{from_status.value} → {to_status.value}"
        )
