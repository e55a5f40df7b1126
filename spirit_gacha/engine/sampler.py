from typing import NamedTuple

from loguru import logger

from spirit_gacha.core.enums import RarityTier
from spirit_gacha.core.gacha_settings import GachaSettings
from spirit_gacha.engine.rates import Thresholds, resolve_thresholds
from spirit_gacha.engine.state import PityState


class TierRoll(NamedTuple):
    tier: RarityTier
    guaranteed: bool


def sample_tier(roll: float, thresholds: Thresholds, *, force_rare: bool) -> TierRoll:
    """Map one uniform value onto a tier.

    Checks run from the highest tier down and the first match wins. The rare
    guarantee only promotes into rare, it never hides a natural epic or
    legendary hit.
    """
    if not 0.0 <= roll < 1.0:
        msg = f"Random value must be in [0, 1), got {roll!r}"
        raise ValueError(msg)

    if roll < thresholds.legendary:
        return TierRoll(RarityTier.LEGENDARY, guaranteed=False)
    if roll < thresholds.epic:
        return TierRoll(RarityTier.EPIC, guaranteed=roll >= thresholds.natural_epic)
    if roll < thresholds.rare or force_rare:
        return TierRoll(RarityTier.RARE, guaranteed=roll >= thresholds.rare)
    if roll < thresholds.uncommon:
        return TierRoll(RarityTier.UNCOMMON, guaranteed=False)
    return TierRoll(RarityTier.COMMON, guaranteed=False)


class TierSampler:
    def __init__(self, config: GachaSettings) -> None:
        self.config = config

    def draw(self, state: PityState, roll: float) -> TierRoll:
        """Resolve one draw's tier and apply its pity side effects to `state`."""
        if not 0.0 <= roll < 1.0:
            msg = f"Random value must be in [0, 1), got {roll!r}"
            raise ValueError(msg)

        state.count_pull()
        thresholds = resolve_thresholds(state, self.config)
        force_rare = state.pulls_since_rare >= self.config.guaranteed_rare_interval

        result = sample_tier(roll, thresholds, force_rare=force_rare)
        pulls_since_epic = state.pulls_since_epic
        state.register_result(result.tier)

        if result.tier >= RarityTier.EPIC:
            logger.info(
                f"{result.tier.name} hit after {pulls_since_epic} pulls, pity reset"
                + (" (hard pity)" if result.guaranteed else "")
            )
        elif result.guaranteed:
            logger.debug(f"Rare guarantee triggered at total pull {state.total_pulls}")
        return result
