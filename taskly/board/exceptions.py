"""Board exception types."""


class ValidationError(Exception):
    """Raised when a mutation is rejected locally, before any state changes."""


class EntityNotFoundError(ValidationError):
    """Raised when a board, column or card id is not in the store."""

    def __init__(self, kind, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.value.capitalize()} not found: {entity_id}")


class CrossBoardMoveError(ValidationError):
    """Raised when a card is moved to a column on another board."""

    def __init__(self, card_id: str, from_board_id: str, to_board_id: str):
        self.card_id = card_id
        self.from_board_id = from_board_id
        self.to_board_id = to_board_id
        super().__init__(
            f"Card {card_id} cannot move from board {from_board_id} to board {to_board_id}"
        )


class InvalidPermutationError(ValidationError):
    """Raised when a reorder does not list every sibling exactly once."""

    def __init__(self, parent_id: str, missing: list[str], unexpected: list[str]):
        self.parent_id = parent_id
        self.missing = missing
        self.unexpected = unexpected
        details = []
        if missing:
            details.append(f"missing {', '.join(missing)}")
        if unexpected:
            details.append(f"unexpected {', '.join(unexpected)}")
        super().__init__(
            f"Invalid ordering for {parent_id}: {'; '.join(details) or 'duplicate ids'}"
        )


class SyncError(Exception):
    """Raised when the sync gateway rejects or fails a request."""

    def __init__(self, operation: str, kind, entity_id: str | None, reason: str):
        self.operation = operation
        self.kind = kind
        self.entity_id = entity_id
        self.reason = reason
        target = kind.value if entity_id is None else f"{kind.value} {entity_id}"
        super().__init__(f"{operation} {target} failed: {reason}")


class InvalidDragError(Exception):
    """Raised when a drag gesture arrives in the wrong drag state."""

    def __init__(self, from_state, to_state):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid drag transition: {from_state.value} → {to_state.value}"
        )
