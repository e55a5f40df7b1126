import asyncio
import weakref


class PlayerLocks:
    """One `asyncio.Lock` per player.

    Locks are weakly referenced, so a player's lock disappears once nobody is
    holding or waiting on it. They only order pulls within one process, the
    service runs as a single worker.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def get(self, player_id: int) -> asyncio.Lock:
        lock = self._locks.get(player_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[player_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
