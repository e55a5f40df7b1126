from typing import NamedTuple

from spirit_gacha.core.gacha_settings import GachaSettings
from spirit_gacha.engine.state import PityState


class Thresholds(NamedTuple):
    """Cumulative upper bounds over [0, 1) for each tier, highest tier first.

    Anything at or above `uncommon` is common. `natural_epic` is the epic bound
    before the hard pity override, used to tell forced epics from natural ones.
    """

    legendary: float
    epic: float
    rare: float
    uncommon: float
    natural_epic: float


def resolve_thresholds(state: PityState, config: GachaSettings) -> Thresholds:
    """Compute the tier thresholds for a draw made at `state`.

    `state` must already count the draw being resolved. Rates are never
    renormalized: once soft or hard pity pushes the epic bound past 1, common
    and uncommon simply become unreachable.
    """
    legendary_rate = config.legendary_base
    epic_rate = config.epic_base

    if state.pulls_since_epic >= config.soft_pity_start:
        over = state.pulls_since_epic - config.soft_pity_start
        legendary_rate += over * config.soft_pity_step * 0.5
        epic_rate += over * config.soft_pity_step

    natural_epic = legendary_rate + epic_rate
    if state.pulls_since_epic >= config.hard_pity:
        epic_rate = 1.0

    t_legendary = legendary_rate
    t_epic = t_legendary + epic_rate
    t_rare = t_epic + config.rare_base
    t_uncommon = t_rare + config.uncommon_base
    return Thresholds(
        legendary=t_legendary,
        epic=t_epic,
        rare=t_rare,
        uncommon=t_uncommon,
        natural_epic=natural_epic,
    )
