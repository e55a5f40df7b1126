from .gacha_pity import GachaPity
from .gacha_pull import GachaPull
from .owned_spirit import OwnedSpirit
from .player import Player

__all__ = ("GachaPity", "GachaPull", "OwnedSpirit", "Player")
