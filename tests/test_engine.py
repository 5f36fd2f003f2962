"""
AllianceEngine tests against an in-memory database
"""

from datetime import datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from alliance_engine.config.settings import AidSettings, StaggerSettings
from alliance_engine.core.aid_matcher import RecommendationKind
from alliance_engine.core.domain import (
    AidOffer,
    AidSlotConfig,
    InvalidRecordError,
    InvalidRequestError,
    Nation,
    OfferStatus,
    SlotLimitExceededError,
    StaggerStatus,
    War,
)
from alliance_engine.core.engine import AllianceEngine
from alliance_engine.models import AidOfferRecord, NationConfigRecord, NationRecord

FRIENDLY = 1
TARGET = 2


def make_nation(nation_id: int, alliance_id: int, strength: float = 100_000, **kwargs) -> Nation:
    return Nation(
        id=nation_id,
        ruler_name=f"Ruler {nation_id}",
        nation_name=f"Nation {nation_id}",
        alliance_id=alliance_id,
        strength=strength,
        **kwargs,
    )


@pytest.fixture
async def engine(db_session: AsyncSession) -> AllianceEngine:
    """Engine with a cross-alliance link from the friendly to the target alliance"""
    return AllianceEngine(
        db_session,
        aid_settings=AidSettings(cross_alliance_links={FRIENDLY: TARGET}),
        stagger_settings=StaggerSettings(max_recommendations=None),
    )


@pytest.fixture
async def aid_roster(engine: AllianceEngine):
    """Peace-mode aid roster: 10 sells tech, 11 and 12 receive cash, 13 buys tech"""
    await engine.upsert_nation(
        make_nation(10, FRIENDLY, infrastructure=4000, technology=100, war_mode=False)
    )
    await engine.upsert_nation(
        make_nation(11, FRIENDLY, infrastructure=1000, technology=100, war_mode=False)
    )
    await engine.upsert_nation(
        make_nation(12, FRIENDLY, infrastructure=1000, technology=100, war_mode=False)
    )
    await engine.upsert_nation(
        make_nation(13, FRIENDLY, infrastructure=9000, technology=900, war_mode=False)
    )
    await engine.upsert_nation(
        make_nation(30, TARGET, infrastructure=1000, technology=100, war_mode=False)
    )
    await engine.upsert_nation(make_nation(99, 77, technology=900, war_mode=False))


@pytest.fixture
async def war_roster(engine: AllianceEngine):
    """Friendly attackers and target defenders with a mix of war states"""
    await engine.upsert_nation(make_nation(10, FRIENDLY, 100_000))
    await engine.upsert_nation(make_nation(11, FRIENDLY, 90_000, war_mode=False))

    await engine.upsert_nation(make_nation(20, TARGET, 80_000))
    await engine.upsert_nation(make_nation(21, TARGET, 120_000))
    await engine.upsert_nation(make_nation(22, TARGET, 50_000))
    await engine.upsert_nation(make_nation(23, TARGET, 70_000))
    await engine.upsert_nation(make_nation(25, TARGET, 60_000, war_mode=False))

    # 20 is already hit by both friendly nations
    await engine.record_war(War(1, 10, 20, "1/10/2025"))
    await engine.record_war(War(2, 11, 20, "1/10/2025"))
    # 22 is at its defensive cap
    for war_id, attacker_id in ((3, 900), (4, 901), (5, 902)):
        await engine.record_war(War(war_id, attacker_id, 22, "1/10/2025"))
    # 23 is properly staggered
    await engine.record_war(War(6, 903, 23, "1/9/2025"))
    await engine.record_war(War(7, 904, 23, "1/10/2025"))


class TestAidOperations:
    """Aid recommendation and categorization"""

    async def test_categorized_nations(self, engine, aid_roster, db_session):
        db_session.add(NationConfigRecord(nation_id=11, send_cash=1, get_tech=3, has_dra=False))
        await db_session.commit()

        nations = await engine.get_categorized_nations(FRIENDLY)

        by_id = {n.id: n for n in nations}
        assert set(by_id) == {10, 11, 12, 13}
        assert by_id[10].slots.send_tech == 6
        assert by_id[10].has_dra
        assert not by_id[10].configured
        assert by_id[11].configured
        assert by_id[11].slots.get_tech == 3
        assert not by_id[11].has_dra
        assert by_id[13].slots.send_cash == 2
        assert by_id[12].war_status == "Peace Mode"

    async def test_internal_recommendations(self, engine, aid_roster, now):
        await engine.record_aid_offer(AidOffer(500, 10, 11, "1/8/2025 8:00:00 AM", technology=50))

        result = await engine.get_aid_recommendations(FRIENDLY, now=now)

        pairs = [(r.sender_id, r.recipient_id, r.aid_type.value) for r in result.recommendations]
        assert (13, 11, "cash") in pairs
        assert (13, 12, "cash") in pairs
        assert (10, 13, "technology") in pairs
        assert all(r.kind is RecommendationKind.INTERNAL for r in result.recommendations)
        assert all(30 not in (r.sender_id, r.recipient_id) for r in result.recommendations)
        assert result.slot_counts.active_send_tech == 1
        assert result.slot_counts.total_get_cash == 12

    async def test_cross_alliance_uses_linked_alliance(self, engine, aid_roster, now):
        result = await engine.get_aid_recommendations(FRIENDLY, cross_alliance_enabled=True, now=now)

        cross = [r for r in result.recommendations if r.is_cross_alliance]
        assert [(r.sender_id, r.recipient_id) for r in cross] == []
        assert result.slot_counts.cross_alliance_get_cash == 6

        # Once internal demand is gone, spare cash flows to the linked alliance
        await engine.update_slot_config(13, send_tech=0, send_cash=4, get_tech=0, get_cash=0)
        result = await engine.get_aid_recommendations(FRIENDLY, cross_alliance_enabled=True, now=now)

        cross = [r for r in result.recommendations if r.is_cross_alliance]
        assert [(r.sender_id, r.recipient_id) for r in cross] == [(13, 30)]
        assert all(99 not in (r.sender_id, r.recipient_id) for r in result.recommendations)

    async def test_expired_offer_reestablished(self, engine, aid_roster, now):
        await engine.record_aid_offer(
            AidOffer(501, 13, 12, "12/1/2024 8:00:00 AM", money=6_000_000)
        )

        result = await engine.get_aid_recommendations(FRIENDLY, now=now)

        first = result.recommendations[0]
        assert (first.sender_id, first.recipient_id, first.kind) == (
            13,
            12,
            RecommendationKind.REESTABLISH,
        )

    async def test_unknown_alliance_is_empty(self, engine, aid_roster, now):
        result = await engine.get_aid_recommendations(12345, now=now)

        assert result.recommendations == []
        assert result.slot_counts.total_get_cash == 0

    async def test_bad_nation_record_skipped(self, engine, aid_roster, db_session, caplog):
        db_session.add(
            NationRecord(id=14, ruler_name="Bad", nation_name="Bad", alliance_id=FRIENDLY, strength=-5)
        )
        await db_session.commit()

        nations = await engine.get_categorized_nations(FRIENDLY)

        assert 14 not in {n.id for n in nations}
        assert "Skipping nation 14" in caplog.text


class TestSlotConfiguration:
    """Coordinator slot edits"""

    async def test_update_and_read_back(self, engine, aid_roster):
        update = await engine.update_slot_config(
            12, send_tech=0, send_cash=1, get_tech=2, get_cash=1, receive_priority=1
        )

        assert update.config.has_dra
        assert update.under_assigned
        assert update.config.unassigned == 2

        nations = {n.id: n for n in await engine.get_categorized_nations(FRIENDLY)}
        assert nations[12].configured
        assert nations[12].slots == update.config

    async def test_full_assignment_is_not_under_assigned(self, engine, aid_roster):
        update = await engine.update_slot_config(
            12, send_tech=0, send_cash=0, get_tech=0, get_cash=5, has_dra=False
        )

        assert not update.under_assigned

    async def test_over_limit_rejected(self, engine, aid_roster, db_session):
        with pytest.raises(SlotLimitExceededError):
            await engine.update_slot_config(
                12, send_tech=3, send_cash=0, get_tech=0, get_cash=3, has_dra=False
            )

        assert await db_session.get(NationConfigRecord, 12) is None

    async def test_invalid_priority_rejected(self, engine, aid_roster):
        with pytest.raises(InvalidRecordError):
            await engine.update_slot_config(
                12, send_tech=0, send_cash=0, get_tech=0, get_cash=1, send_priority=0
            )

    async def test_unknown_nation_rejected(self, engine):
        with pytest.raises(InvalidRequestError):
            await engine.update_slot_config(404, 0, 0, 0, 1)


class TestWarOperations:
    """War summaries and stagger eligibility"""

    async def test_nation_wars_sorted_by_strength(self, engine, war_roster, now):
        summaries = await engine.get_nation_wars(TARGET, include_peace_mode=True, now=now)

        assert [s.nation.id for s in summaries] == [21, 20, 23, 25, 22]
        by_id = {s.nation.id: s for s in summaries}
        assert by_id[22].stagger_status is StaggerStatus.SAME_DAY
        assert by_id[23].stagger_status is StaggerStatus.STAGGERED
        assert by_id[21].stagger_status is StaggerStatus.EMPTY

    async def test_nation_wars_filters(self, engine, war_roster, now):
        war_mode_only = await engine.get_nation_wars(TARGET, now=now)
        needs_stagger = await engine.get_nation_wars(
            TARGET, include_peace_mode=True, needs_stagger=True, now=now
        )

        assert 25 not in {s.nation.id for s in war_mode_only}
        assert 23 not in {s.nation.id for s in needs_stagger}

    async def test_stagger_eligibility(self, engine, war_roster, now):
        eligibility = await engine.get_stagger_eligibility(FRIENDLY, TARGET, now=now)

        assert [e.defending_nation.nation.id for e in eligibility] == [21, 25]
        attackers = eligibility[0].eligible_attackers
        assert [a.nation.id for a in attackers] == [10, 11]
        assert [a.current_attacking_wars for a in attackers] == [1, 1]

    async def test_stagger_eligibility_filters(self, engine, war_roster, now):
        no_peace = await engine.get_stagger_eligibility(
            FRIENDLY, TARGET, hide_peace_mode=True, now=now
        )
        with_full = await engine.get_stagger_eligibility(
            FRIENDLY, TARGET, include_full_targets=True, now=now
        )

        assert [a.nation.id for a in no_peace[0].eligible_attackers] == [10]
        assert 22 in {e.defending_nation.nation.id for e in with_full}

    async def test_stagger_eligibility_truncated(self, db_session, war_roster, now):
        engine = AllianceEngine(db_session, stagger_settings=StaggerSettings(max_recommendations=1))

        eligibility = await engine.get_stagger_eligibility(FRIENDLY, TARGET, now=now)

        assert [len(e.eligible_attackers) for e in eligibility] == [1, 1]

    async def test_same_alliance_rejected(self, engine):
        with pytest.raises(InvalidRequestError):
            await engine.get_stagger_eligibility(FRIENDLY, FRIENDLY)

    async def test_sell_down_eligibility(self, engine, now):
        await engine.upsert_nation(make_nation(40, FRIENDLY, 300_000, infrastructure=20_000, rank=1))
        await engine.upsert_nation(make_nation(41, TARGET, 200_000, rank=500))

        strict = await engine.get_stagger_eligibility(FRIENDLY, TARGET, now=now)
        selling = await engine.get_stagger_eligibility(FRIENDLY, TARGET, sell_down=True, now=now)
        decommissioned = await engine.get_stagger_eligibility(
            FRIENDLY, TARGET, sell_down=True, military_strength=40_000, now=now
        )

        assert strict == []
        assert [a.nation.id for a in selling[0].eligible_attackers] == [40]
        assert decommissioned[0].eligible_attackers[0].strength_ratio == pytest.approx(1.3)

    async def test_negative_military_strength_rejected(self, engine):
        with pytest.raises(InvalidRequestError):
            await engine.get_stagger_eligibility(
                FRIENDLY, TARGET, sell_down=True, military_strength=-1
            )

    async def test_anarchy_declarer_from_third_alliance(self, engine, now):
        await engine.upsert_nation(make_nation(45, FRIENDLY))
        await engine.upsert_nation(make_nation(46, TARGET))
        await engine.upsert_nation(make_nation(47, 3, government_type="Anarchy"))
        await engine.record_war(War(20, 47, 46, "1/10/2025"))

        everything = await engine.get_stagger_eligibility(FRIENDLY, TARGET, now=now)
        priority_only = await engine.get_stagger_eligibility(
            FRIENDLY, TARGET, hide_non_priority=True, now=now
        )

        assert [e.defending_nation.nation.id for e in everything] == [46]
        assert priority_only == []


class TestIngestion:
    """Snapshot upserts"""

    async def test_upsert_nation_refreshes_record(self, engine, db_session):
        await engine.upsert_nation(make_nation(1, FRIENDLY, 1000))
        await engine.upsert_nation(make_nation(1, TARGET, 2000, government_type="Anarchy"))

        record = await db_session.get(NationRecord, 1)
        assert record.alliance_id == TARGET
        assert record.to_domain().strength == 2000
        assert record.to_domain().is_anarchy

    async def test_upsert_nation_keeps_land(self, engine, db_session):
        await engine.upsert_nation(make_nation(1, FRIENDLY, 1000, land=2500.5))

        record = await db_session.get(NationRecord, 1)
        assert record.to_domain().land == 2500.5

    async def test_record_aid_offer_updates_status(self, engine, db_session):
        offer = AidOffer(7, 1, 2, "1/8/2025", money=100)
        await engine.record_aid_offer(offer)
        await engine.record_aid_offer(
            AidOffer(7, 1, 2, "1/8/2025", money=100, status=OfferStatus.CANCELLED)
        )

        record = await db_session.get(AidOfferRecord, 7)
        assert record.to_domain().status is OfferStatus.CANCELLED
        assert record.offered_at == "1/8/2025"
