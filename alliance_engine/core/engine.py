"""
AllianceEngine: request/response operations over the stored snapshot
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from alliance_engine.config.settings import AidSettings, StaggerSettings, settings
from alliance_engine.core.aid_matcher import (
    AidSlotMatcher,
    MatchOptions,
    Recommendation,
    SlotCounts,
    summarize_slots,
)
from alliance_engine.core.classifier import DERIVED_HAS_DRA, NationClassifier
from alliance_engine.core.domain import (
    AidOffer,
    AidSlotConfig,
    InvalidRecordError,
    InvalidRequestError,
    MAX_PRIORITY,
    Nation,
    NationWarSummary,
    SlotUsage,
    StaggerStatus,
    War,
)
from alliance_engine.core.stagger import RankedAttacker, StaggerOptions, StaggerRecommender
from alliance_engine.core.war_status import WarStatusEvaluator
from alliance_engine.models import AidOfferRecord, NationConfigRecord, NationRecord, WarRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AidRecommendations:
    """Aid recommendations for one alliance"""

    alliance_id: int
    cross_alliance_enabled: bool
    recommendations: list[Recommendation] = field(default_factory=list)
    slot_counts: SlotCounts = field(default_factory=SlotCounts)


@dataclass(frozen=True)
class CategorizedNation:
    """Nation with its resolved aid slots"""

    nation: Nation
    slots: AidSlotConfig
    configured: bool

    @property
    def id(self) -> int:
        return self.nation.id

    @property
    def ruler_name(self) -> str:
        return self.nation.ruler_name

    @property
    def nation_name(self) -> str:
        return self.nation.nation_name

    @property
    def has_dra(self) -> bool:
        return self.slots.has_dra

    @property
    def discord_handle(self) -> str | None:
        return self.nation.discord_handle

    @property
    def war_status(self) -> str:
        return self.nation.posture


@dataclass(frozen=True)
class StaggerEligibility:
    """Eligible attackers for one defending nation"""

    defending_nation: NationWarSummary
    eligible_attackers: list[RankedAttacker]


@dataclass(frozen=True)
class SlotConfigUpdate:
    """Result of a coordinator slot edit"""

    nation_id: int
    config: AidSlotConfig

    @property
    def under_assigned(self) -> bool:
        return self.config.usage is SlotUsage.UNDER


class AllianceEngine:
    """Aid and war coordination for alliances"""

    def __init__(
        self,
        db_session: AsyncSession,
        aid_settings: AidSettings | None = None,
        stagger_settings: StaggerSettings | None = None,
    ):
        self.db = db_session
        self.aid_settings = aid_settings or settings.aid
        self.stagger_settings = stagger_settings or settings.stagger
        self.classifier = NationClassifier()
        self.matcher = AidSlotMatcher()
        self.evaluator = WarStatusEvaluator()
        self.recommender = StaggerRecommender()

    # Snapshot loading
    async def _load_nations(self, alliance_ids: list[int] | None = None) -> list[Nation]:
        """Load nation snapshots; None loads every alliance"""
        query = select(NationRecord).order_by(NationRecord.id)
        if alliance_ids is not None:
            query = query.where(NationRecord.alliance_id.in_(alliance_ids))
        result = await self.db.execute(query)
        nations = []
        for record in result.scalars().all():
            try:
                nations.append(record.to_domain())
            except InvalidRecordError as e:
                logger.warning("Skipping nation %s: %s", record.id, e)
        return nations

    async def _load_configs(self, nation_ids: list[int]) -> dict[int, AidSlotConfig]:
        result = await self.db.execute(
            select(NationConfigRecord).where(NationConfigRecord.nation_id.in_(nation_ids))
        )
        configs = {}
        for record in result.scalars().all():
            try:
                configs[record.nation_id] = record.to_domain()
            except InvalidRecordError as e:
                logger.warning("Ignoring slot configuration of nation %s: %s", record.nation_id, e)
        return configs

    async def _load_offers(self, nation_ids: list[int]) -> list[AidOffer]:
        result = await self.db.execute(
            select(AidOfferRecord)
            .where(
                or_(
                    AidOfferRecord.sender_id.in_(nation_ids),
                    AidOfferRecord.recipient_id.in_(nation_ids),
                )
            )
            .order_by(AidOfferRecord.id)
        )
        offers = []
        for record in result.scalars().all():
            try:
                offers.append(record.to_domain())
            except InvalidRecordError as e:
                logger.warning("Skipping aid offer %s: %s", record.id, e)
        return offers

    async def _load_wars(self, nation_ids: list[int]) -> list[War]:
        result = await self.db.execute(
            select(WarRecord)
            .where(
                or_(
                    WarRecord.declaring_id.in_(nation_ids),
                    WarRecord.receiving_id.in_(nation_ids),
                )
            )
            .order_by(WarRecord.id)
        )
        return [record.to_domain() for record in result.scalars().all()]

    # Aid
    async def get_aid_recommendations(
        self,
        alliance_id: int,
        cross_alliance_enabled: bool = False,
        now: datetime | None = None,
    ) -> AidRecommendations:
        """
        Recommend aid pairings for an alliance.

        Args:
            alliance_id: Home alliance
            cross_alliance_enabled: Add the linked alliance as a fallback pool
            now: Reference time for offer windows

        Returns:
            AidRecommendations with recommendations and slot counts
        """
        alliance_ids = [alliance_id]
        linked = self.aid_settings.cross_alliance_links.get(alliance_id)
        if cross_alliance_enabled and linked is not None and linked != alliance_id:
            alliance_ids.append(linked)

        roster = await self._load_nations(alliance_ids)
        nation_ids = [nation.id for nation in roster]
        configs = self.classifier.classify_roster(roster, await self._load_configs(nation_ids))
        offers = await self._load_offers(nation_ids)

        options = MatchOptions(
            alliance_id=alliance_id,
            cross_alliance=cross_alliance_enabled,
            now=now,
        )
        recommendations = self.matcher.match(roster, configs, offers, options)
        slot_counts = summarize_slots(roster, configs, offers, options)

        return AidRecommendations(
            alliance_id=alliance_id,
            cross_alliance_enabled=cross_alliance_enabled,
            recommendations=recommendations,
            slot_counts=slot_counts,
        )

    async def get_categorized_nations(self, alliance_id: int) -> list[CategorizedNation]:
        """Alliance nations with explicit or stat-derived slot allocation"""
        roster = await self._load_nations([alliance_id])
        explicit = await self._load_configs([nation.id for nation in roster])
        return [
            CategorizedNation(
                nation=nation,
                slots=self.classifier.classify(nation, explicit.get(nation.id)),
                configured=nation.id in explicit,
            )
            for nation in roster
        ]

    async def update_slot_config(
        self,
        nation_id: int,
        send_tech: int,
        send_cash: int,
        get_tech: int,
        get_cash: int,
        send_priority: int = MAX_PRIORITY,
        receive_priority: int = MAX_PRIORITY,
        has_dra: bool | None = None,
    ) -> SlotConfigUpdate:
        """
        Save a coordinator's slot allocation for a nation.

        Raises:
            InvalidRequestError: Nation is not in the snapshot
            InvalidRecordError: Negative capacity or priority out of range
            SlotLimitExceededError: More slots than the nation can use
        """
        nation = await self.db.get(NationRecord, nation_id)
        if nation is None:
            raise InvalidRequestError(f"Nation {nation_id} not found")

        record = await self.db.get(NationConfigRecord, nation_id)
        if has_dra is None:
            has_dra = bool(record.has_dra) if record else DERIVED_HAS_DRA

        config = AidSlotConfig(
            send_tech=send_tech,
            send_cash=send_cash,
            get_tech=get_tech,
            get_cash=get_cash,
            send_priority=send_priority,
            receive_priority=receive_priority,
            has_dra=has_dra,
        )
        config.ensure_within_limit()

        if record is None:
            record = NationConfigRecord(nation_id=nation_id)
            self.db.add(record)
        record.send_tech = config.send_tech
        record.send_cash = config.send_cash
        record.get_tech = config.get_tech
        record.get_cash = config.get_cash
        record.send_priority = config.send_priority
        record.receive_priority = config.receive_priority
        record.has_dra = config.has_dra
        await self.db.commit()

        update = SlotConfigUpdate(nation_id=nation_id, config=config)
        if update.under_assigned:
            logger.info(
                "Nation %s has %d unassigned aid slots", nation_id, config.unassigned
            )
        return update

    # Wars
    async def get_nation_wars(
        self,
        alliance_id: int,
        include_peace_mode: bool = False,
        needs_stagger: bool = False,
        now: datetime | None = None,
    ) -> list[NationWarSummary]:
        """
        War summaries of an alliance's nations, strongest first.

        Args:
            alliance_id: Alliance to summarize
            include_peace_mode: Also list nations in peace mode
            needs_stagger: Only nations whose defensive wars are not staggered
            now: Reference time for war expiry
        """
        roster = await self._load_nations([alliance_id])
        if not include_peace_mode:
            roster = [nation for nation in roster if nation.war_mode]

        wars = await self._load_wars([nation.id for nation in roster])
        summaries = list(self.evaluator.evaluate_roster(roster, wars, now).values())
        if needs_stagger:
            summaries = [s for s in summaries if s.stagger_status is not StaggerStatus.STAGGERED]

        summaries.sort(key=lambda s: s.nation.strength, reverse=True)
        return summaries

    async def get_stagger_eligibility(
        self,
        friendly_alliance_id: int,
        target_alliance_id: int,
        hide_anarchy: bool = False,
        hide_peace_mode: bool = False,
        include_full_targets: bool = False,
        hide_non_priority: bool = False,
        assign_only_positive: bool = False,
        sell_down: bool = False,
        military_strength: float = 0.0,
        now: datetime | None = None,
    ) -> list[StaggerEligibility]:
        """
        Eligible friendly attackers per target nation, strongest target first.

        Targets without any eligible attacker are omitted. With ``sell_down``
        attackers above a target's range stay eligible when selling
        infrastructure and land, after decommissioning ``military_strength``,
        would bring them into range.

        Raises:
            InvalidRequestError: Both alliance ids are the same, or the
                military strength is negative
        """
        if friendly_alliance_id == target_alliance_id:
            logger.warning(
                "Rejected stagger request for identical alliances %s", friendly_alliance_id
            )
            raise InvalidRequestError("Friendly and target alliances must differ")
        if military_strength < 0:
            raise InvalidRequestError("Military strength cannot be negative")

        snapshot = await self._load_nations()
        friendly = [nation for nation in snapshot if nation.alliance_id == friendly_alliance_id]
        targets = [nation for nation in snapshot if nation.alliance_id == target_alliance_id]
        wars = await self._load_wars([nation.id for nation in (*friendly, *targets)])

        defending_pool = list(self.evaluator.evaluate_roster(targets, wars, now).values())
        attacking_pool = list(self.evaluator.evaluate_roster(friendly, wars, now).values())

        options = StaggerOptions(
            include_peace_mode=not hide_peace_mode,
            assign_only_positive=assign_only_positive,
            show_for_full_targets=include_full_targets,
            hide_anarchy=hide_anarchy,
            hide_non_priority=hide_non_priority,
            require_war_range=True,
            max_recommendations=self.stagger_settings.max_recommendations,
            sell_down=sell_down,
            military_strength=military_strength,
        )
        ranked = self.recommender.recommend(
            defending_pool, attacking_pool, options, known_nations=snapshot
        )

        summaries = {summary.nation.id: summary for summary in defending_pool}
        eligibility = [
            StaggerEligibility(defending_nation=summaries[defender_id], eligible_attackers=attackers)
            for defender_id, attackers in ranked.items()
            if attackers
        ]
        eligibility.sort(key=lambda e: e.defending_nation.nation.strength, reverse=True)
        return eligibility

    # Snapshot ingestion
    async def upsert_nation(self, nation: Nation) -> NationRecord:
        """Insert or refresh a nation snapshot"""
        record = await self.db.get(NationRecord, nation.id)
        if record is None:
            record = NationRecord(id=nation.id)
            self.db.add(record)

        record.ruler_name = nation.ruler_name
        record.nation_name = nation.nation_name
        record.alliance_id = nation.alliance_id
        record.alliance_name = nation.alliance_name
        record.strength = nation.strength
        record.technology = nation.technology
        record.infrastructure = nation.infrastructure
        record.land = nation.land
        record.nuclear_weapons = nation.nuclear_weapons
        record.warchest = nation.warchest
        record.warchest_age_days = nation.warchest_age_days
        record.rank = nation.rank
        record.activity = nation.activity.value
        record.war_mode = nation.war_mode
        record.government_type = nation.government_type
        record.discord_handle = nation.discord_handle

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def record_aid_offer(self, offer: AidOffer) -> AidOfferRecord:
        """Insert or refresh an aid offer"""
        record = await self.db.get(AidOfferRecord, offer.offer_id)
        if record is None:
            record = AidOfferRecord(id=offer.offer_id)
            self.db.add(record)

        record.sender_id = offer.sender_id
        record.recipient_id = offer.recipient_id
        record.sender_alliance_id = offer.sender_alliance_id
        record.recipient_alliance_id = offer.recipient_alliance_id
        record.money = offer.money
        record.technology = offer.technology
        record.soldiers = offer.soldiers
        record.reason = offer.reason
        record.offered_at = offer.created_at
        record.status = offer.status.value

        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def record_war(self, war: War) -> WarRecord:
        """Insert or refresh a war"""
        record = await self.db.get(WarRecord, war.war_id)
        if record is None:
            record = WarRecord(id=war.war_id)
            self.db.add(record)

        record.declaring_id = war.declaring_id
        record.receiving_id = war.receiving_id
        record.declaring_alliance_id = war.declaring_alliance_id
        record.receiving_alliance_id = war.receiving_alliance_id
        record.status = war.status.value
        record.started_at = war.started_at
        record.ends_at = war.ends_at
        record.attack_percent = war.attack_percent
        record.defend_percent = war.defend_percent

        await self.db.commit()
        await self.db.refresh(record)
        return record
