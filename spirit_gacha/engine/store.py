from collections.abc import Iterable
from typing import Protocol

from spirit_gacha.engine.state import PityState


class GachaStore(Protocol):
    """Durable home of pity counters and owned spirits.

    Implementations raise `PersistenceUnavailableError` when the backend fails.
    """

    async def load(self, player_id: int) -> PityState:
        """Return the player's counters, all zero if the player never pulled."""
        ...

    async def save(self, player_id: int, state: PityState) -> None: ...

    async def reset(self, player_id: int) -> PityState: ...

    async def load_owned(self, player_id: int) -> set[str]: ...

    async def add_owned(self, player_id: int, spirit_ids: Iterable[str]) -> None:
        """Record acquisitions. Ids that are already owned are ignored."""
        ...


class InMemoryGachaStore:
    """Process-local store, used by tests and local tooling."""

    def __init__(self) -> None:
        self.pity: dict[int, PityState] = {}
        self.owned: dict[int, set[str]] = {}

    async def load(self, player_id: int) -> PityState:
        state = self.pity.get(player_id)
        return state.model_copy() if state else PityState()

    async def save(self, player_id: int, state: PityState) -> None:
        self.pity[player_id] = state.model_copy()

    async def reset(self, player_id: int) -> PityState:
        state = PityState()
        self.pity[player_id] = state.model_copy()
        return state

    async def load_owned(self, player_id: int) -> set[str]:
        return set(self.owned.get(player_id, ()))

    async def add_owned(self, player_id: int, spirit_ids: Iterable[str]) -> None:
        self.owned.setdefault(player_id, set()).update(spirit_ids)
