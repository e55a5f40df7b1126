class PullError(Exception):
    """Base class for failures raised by the pull engine."""


class CatalogEmptyError(PullError):
    """No non-exclusive spirit exists to draw from. This is a configuration error."""

    def __init__(self, message: str = "The catalog has no spirits eligible for gacha draws") -> None:
        super().__init__(message)


class PersistenceUnavailableError(PullError):
    """Pity or ownership state could not be loaded or saved."""

    def __init__(self, player_id: int, operation: str) -> None:
        self.player_id = player_id
        self.operation = operation
        super().__init__(f"Gacha state for player {player_id} is unavailable ({operation} failed)")


class InvalidBatchSizeError(PullError):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Pull count must be at least 1, got {count}")
