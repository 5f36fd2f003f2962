"""
Per-nation war evaluation and stagger status
"""

import logging
from datetime import date, datetime

from alliance_engine.core.domain import (
    Nation,
    NationWarSummary,
    StaggerStatus,
    War,
)
from alliance_engine.core.time_windows import game_date, is_war_current, parse_game_timestamp

logger = logging.getLogger(__name__)

MAX_DEFENDING_WARS = 3


def _end_dates(wars: list[War]) -> list[date]:
    dates = []
    for war in wars:
        end = game_date(war.ends_at)
        if end is not None:
            dates.append(end)
    return dates


def stagger_status(defending_wars: list[War], attacking_wars: list[War]) -> StaggerStatus:
    """
    Classify how a nation's defensive wars are spread over end dates.

    A single defensive war is reported as empty. Two or more wars on
    distinct dates are staggered. Two or more wars ending on one shared date
    are same-day, unless one of the nation's own attacking wars ends later;
    that case is reported as empty rather than staggered, because coverage
    is only extended, not actually spread.
    """
    if len(defending_wars) < 2:
        return StaggerStatus.EMPTY

    end_dates = set(_end_dates(defending_wars))
    if len(end_dates) > 1:
        return StaggerStatus.STAGGERED
    if not end_dates:
        return StaggerStatus.EMPTY

    shared = end_dates.pop()
    if any(end > shared for end in _end_dates(attacking_wars)):
        return StaggerStatus.EMPTY
    return StaggerStatus.SAME_DAY


def _newest_first(wars: list[War]) -> list[War]:
    def started(war: War) -> float:
        parsed = parse_game_timestamp(war.started_at) if war.started_at else None
        return parsed.timestamp() if parsed else float("-inf")

    return sorted(wars, key=started, reverse=True)


class WarStatusEvaluator:
    """Summarizes active wars per nation"""

    def __init__(self, max_defending_wars: int = MAX_DEFENDING_WARS):
        self.max_defending_wars = max_defending_wars

    def evaluate(
        self, nation: Nation, wars: list[War], now: datetime | None = None
    ) -> NationWarSummary:
        """Summarize one nation's current attacking and defending wars"""
        attacking = []
        defending = []
        for war in wars:
            if not war.involves(nation.id) or not is_war_current(war, now):
                continue
            if war.declaring_id == nation.id:
                attacking.append(war)
            else:
                defending.append(war)

        return NationWarSummary(
            nation=nation,
            attacking_wars=tuple(_newest_first(attacking)),
            defending_wars=tuple(_newest_first(defending)),
            stagger_status=stagger_status(defending, attacking),
            max_defending_wars=self.max_defending_wars,
        )

    def evaluate_roster(
        self, roster: list[Nation], wars: list[War], now: datetime | None = None
    ) -> dict[int, NationWarSummary]:
        """Evaluate every roster nation; wars naming unknown nations are ignored"""
        by_nation: dict[int, list[War]] = {nation.id: [] for nation in roster}
        for war in wars:
            known = False
            for nation_id in (war.declaring_id, war.receiving_id):
                if nation_id in by_nation:
                    by_nation[nation_id].append(war)
                    known = True
            if not known:
                logger.debug("War %s involves no roster nation, skipped", war.war_id)

        return {
            nation.id: self.evaluate(nation, by_nation[nation.id], now) for nation in roster
        }
