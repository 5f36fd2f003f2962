"""
Stagger recommendations: which friendly nations should attack which targets
so that the targets' defensive war slots stay occupied on different days
"""

import logging
from dataclasses import dataclass

from alliance_engine.core.domain import Nation, NationWarSummary, StaggerStatus

logger = logging.getLogger(__name__)

# Declaration range: attackers may hit targets within 75%-133% of their strength
WAR_RANGE_MIN_RATIO = 0.75
WAR_RANGE_MAX_RATIO = 1.33
WAR_RANGE_MAX_RANK_GAP = 100

POSITIVE_RATIO = 1.0

# Most strength an attacker can shed per unit of infrastructure or land sold
INFRASTRUCTURE_STRENGTH_PER_UNIT = 3.0
LAND_STRENGTH_PER_UNIT = 1.5


@dataclass(frozen=True)
class StaggerOptions:
    """Stagger recommendation options"""

    include_peace_mode: bool = False
    assign_only_positive: bool = False
    stagger_only: bool = True
    show_for_full_targets: bool = False
    hide_anarchy: bool = False
    hide_non_priority: bool = False
    require_war_range: bool = False
    max_recommendations: int | None = None
    # Attackers may decommission military and sell infrastructure or land
    # to drop into a target's range
    sell_down: bool = False
    military_strength: float = 0.0


@dataclass(frozen=True)
class RankedAttacker:
    """An eligible attacker for one defender"""

    nation: Nation
    strength_ratio: float
    current_attacking_wars: int
    rank: int
    in_war_range: bool


def effective_strength(attacker: Nation, options: StaggerOptions | None = None) -> float:
    """Attacker strength, less the military it would decommission when selling down"""
    if options is not None and options.sell_down and options.military_strength > 0:
        return max(0.0, attacker.strength - options.military_strength)
    return attacker.strength


def strength_ratio(
    attacker: Nation, defender: Nation, options: StaggerOptions | None = None
) -> float:
    """Attacker strength divided by defender strength"""
    if defender.strength <= 0:
        return float("inf")
    return effective_strength(attacker, options) / defender.strength


def max_sell_down(attacker: Nation) -> float:
    """Largest strength reduction reachable by selling infrastructure and land"""
    return (
        attacker.infrastructure * INFRASTRUCTURE_STRENGTH_PER_UNIT
        + attacker.land * LAND_STRENGTH_PER_UNIT
    )


def estimate_rank(strength: float, nations: list[Nation]) -> int:
    """Rank a nation of the given strength would hold among ``nations``"""
    ordered = sorted((nation.strength for nation in nations), reverse=True)
    for position, value in enumerate(ordered, start=1):
        if value <= strength:
            return position
    return len(ordered)


def can_sell_down(
    attacker: Nation,
    defender: Nation,
    options: StaggerOptions | None = None,
    nations: list[Nation] | None = None,
) -> bool:
    """
    True if the attacker can reach the defender's range by selling down.

    Only attackers above the range can sell down into it. Failing that, the
    rank the attacker would hold after the largest possible reduction is
    estimated against ``nations`` and compared with the defender's rank.
    """
    strength = effective_strength(attacker, options)
    reduction = max_sell_down(attacker)
    low = defender.strength * WAR_RANGE_MIN_RATIO
    high = defender.strength * WAR_RANGE_MAX_RATIO

    if low <= strength <= high:
        return True
    if strength > high and strength - high <= reduction:
        return True

    if attacker.rank is None or defender.rank is None or not nations:
        return False
    if abs(attacker.rank - defender.rank) <= WAR_RANGE_MAX_RANK_GAP:
        return True
    rank_after = estimate_rank(strength - reduction, nations)
    return abs(rank_after - defender.rank) <= WAR_RANGE_MAX_RANK_GAP


def in_war_range(
    attacker: Nation,
    defender: Nation,
    options: StaggerOptions | None = None,
    nations: list[Nation] | None = None,
) -> bool:
    """
    True if the attacker may declare on the defender by strength or rank,
    or can sell down into range when the options allow it.
    Unknown ranks do not restrict the range.
    """
    ratio = strength_ratio(attacker, defender, options)
    if WAR_RANGE_MIN_RATIO <= ratio <= WAR_RANGE_MAX_RATIO:
        return True
    if attacker.rank is None or defender.rank is None:
        return True
    if abs(attacker.rank - defender.rank) <= WAR_RANGE_MAX_RANK_GAP:
        return True
    if options is not None and options.sell_down:
        return can_sell_down(attacker, defender, options, nations)
    return False


def is_priority_target(summary: NationWarSummary, nations_by_id: dict[int, Nation]) -> bool:
    """
    Defender urgency: in anarchy, or holding open defensive slots while
    already being hit. Wars declared by known anarchy nations do not count.
    """
    if summary.nation.is_anarchy:
        return True
    if summary.open_defensive_slots == 0:
        return False
    hits = [
        war
        for war in summary.defending_wars
        if not (war.declaring_id in nations_by_id and nations_by_id[war.declaring_id].is_anarchy)
    ]
    return len(hits) > 0


def truncate_ranked(attackers: list[RankedAttacker], limit: int | None) -> list[RankedAttacker]:
    """Stable prefix of a ranked list; None keeps everything"""
    if limit is None:
        return list(attackers)
    return list(attackers[: max(0, limit)])


class StaggerRecommender:
    """Ranks friendly attackers for under-staggered targets"""

    def recommend(
        self,
        defending_pool: list[NationWarSummary],
        attacking_pool: list[Nation] | list[NationWarSummary],
        options: StaggerOptions | None = None,
        known_nations: list[Nation] | None = None,
    ) -> dict[int, list[RankedAttacker]]:
        """
        Build ranked attacker lists per defending nation.

        Args:
            defending_pool: War summaries of the target nations
            attacking_pool: Friendly nations, or their war summaries when
                current attacking war counts should be reported
            options: Recommendation options
            known_nations: Wider snapshot used to look up war declarers
                outside both pools and to estimate ranks after selling down

        Returns:
            Ordered mapping of defender id to attackers, strongest first.
            Every considered defender is present, possibly with no attackers.
        """
        options = options or StaggerOptions()
        attackers, war_counts = self._unpack_attackers(attacking_pool)

        nations_by_id = {nation.id: nation for nation in known_nations or []}
        for nation in (*attackers, *(summary.nation for summary in defending_pool)):
            nations_by_id.setdefault(nation.id, nation)
        snapshot = list(nations_by_id.values())

        result: dict[int, list[RankedAttacker]] = {}
        for summary in defending_pool:
            defender = summary.nation
            if defender.id in result:
                continue
            if options.stagger_only and summary.stagger_status is StaggerStatus.STAGGERED:
                continue
            if summary.is_full and not options.show_for_full_targets:
                continue
            if options.hide_non_priority and not is_priority_target(summary, nations_by_id):
                continue

            eligible = [
                attacker
                for attacker in attackers
                if self._is_eligible(attacker, summary, options, snapshot)
            ]
            eligible.sort(key=lambda nation: nation.strength, reverse=True)

            ranked = [
                RankedAttacker(
                    nation=attacker,
                    strength_ratio=strength_ratio(attacker, defender, options),
                    current_attacking_wars=war_counts.get(attacker.id, 0),
                    rank=position,
                    in_war_range=in_war_range(attacker, defender, options, snapshot),
                )
                for position, attacker in enumerate(eligible, start=1)
            ]
            result[defender.id] = truncate_ranked(ranked, options.max_recommendations)

        logger.info(
            "Stagger recommendations for %d of %d defenders", len(result), len(defending_pool)
        )
        return result

    def _unpack_attackers(
        self, attacking_pool: list[Nation] | list[NationWarSummary]
    ) -> tuple[list[Nation], dict[int, int]]:
        """De-duplicate the pool by nation id, keeping first occurrence"""
        attackers: list[Nation] = []
        war_counts: dict[int, int] = {}
        seen: set[int] = set()
        for entry in attacking_pool:
            if isinstance(entry, NationWarSummary):
                nation = entry.nation
                count = len(entry.attacking_wars)
            else:
                nation = entry
                count = 0
            if nation.id in seen:
                continue
            seen.add(nation.id)
            attackers.append(nation)
            war_counts[nation.id] = count
        return attackers, war_counts

    def _is_eligible(
        self,
        attacker: Nation,
        summary: NationWarSummary,
        options: StaggerOptions,
        nations: list[Nation],
    ) -> bool:
        defender = summary.nation
        if attacker.id == defender.id:
            return False
        if summary.has_war_with(attacker.id):
            return False
        if not attacker.war_mode and not options.include_peace_mode:
            return False
        if options.hide_anarchy and attacker.is_anarchy:
            return False
        if (
            options.assign_only_positive
            and strength_ratio(attacker, defender, options) < POSITIVE_RATIO
        ):
            return False
        if options.require_war_range and not in_war_range(attacker, defender, options, nations):
            return False
        return True
