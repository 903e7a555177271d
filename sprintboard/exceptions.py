"""Planning error types.

Every error carries a human-readable ``reason`` that is safe to show to the
caller. None of them are retried by the services that raise them.
"""


class SprintboardError(Exception):
    """Base class for recoverable, caller-visible planning errors."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ValidationError(SprintboardError):
    """Raised for malformed input such as an empty name or negative points."""


class StateError(SprintboardError):
    """Raised when a sprint transition is invalid for its current status."""

    def __init__(self, sprint_id: int, from_status, to_status):
        self.sprint_id = sprint_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition for sprint {sprint_id}: "
            f"{from_status.value} → {to_status.value}"
        )


class ConflictError(SprintboardError):
    """Raised when a board already has an active sprint."""

    def __init__(self, board_id: int, active_sprint_id=None):
        self.board_id = board_id
        self.active_sprint_id = active_sprint_id
        super().__init__(f"Board {board_id} already has an active sprint")


class NotFoundError(SprintboardError):
    """Raised for an unknown board, column, card or sprint id."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")
