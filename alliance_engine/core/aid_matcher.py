"""
Aid slot matching: recommends which nation should send aid to which
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum

from alliance_engine.core.classifier import NationClassifier
from alliance_engine.core.domain import (
    MAX_PRIORITY,
    URGENT_PRIORITY,
    AidOffer,
    AidSlotConfig,
    AidType,
    Nation,
)
from alliance_engine.core.time_windows import is_offer_current, is_offer_lapsed

logger = logging.getLogger(__name__)

AID_TYPE_ORDER = (AidType.CASH, AidType.TECHNOLOGY)

# Cross-alliance pairings rank below every same-alliance tier (4..7)
CROSS_ALLIANCE_PRIORITY_OFFSET = MAX_PRIORITY + 1


class RecommendationKind(str, Enum):
    """Which pass produced a recommendation, in output order"""

    REESTABLISH = "reestablish"
    INTERNAL = "internal"
    CROSS_ALLIANCE = "cross_alliance"


@dataclass(frozen=True)
class MatchOptions:
    """Matching options"""

    # Home alliance; None matches every alliance in the roster independently
    alliance_id: int | None = None
    cross_alliance: bool = False
    # Let war-mode nations take part in aid logistics
    include_peace_mode: bool = False
    reestablish_expired: bool = True
    now: datetime | None = None


@dataclass(frozen=True)
class Recommendation:
    """
    Advisory sender -> recipient aid pairing.

    ``tier`` is the pair's urgency on the 0..3 scale. ``priority`` folds the
    alliance scope into it: same-alliance pairings keep their tier, and
    cross-alliance pairings are shifted to 4..7. Lower is more urgent.
    """

    sender_id: int
    recipient_id: int
    aid_type: AidType
    priority: int
    kind: RecommendationKind
    reason: str
    tier: int = MAX_PRIORITY

    @property
    def is_cross_alliance(self) -> bool:
        return self.kind is RecommendationKind.CROSS_ALLIANCE


@dataclass(frozen=True)
class SlotCounts:
    """Aggregate slot capacity and usage for a roster"""

    total_get_cash: int = 0
    total_get_tech: int = 0
    total_send_cash: int = 0
    total_send_tech: int = 0
    parked_send_cash: int = 0
    parked_send_tech: int = 0
    total_unassigned: int = 0
    internal_get_cash: int = 0
    internal_get_tech: int = 0
    cross_alliance_get_cash: int = 0
    cross_alliance_get_tech: int = 0
    active_send_cash: int = 0
    active_send_tech: int = 0
    active_get_cash: int = 0
    active_get_tech: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def send_tier(nation: Nation, config: AidSlotConfig) -> int:
    """Sender urgency on the 0..3 scale (0 reserved for anarchy)"""
    return URGENT_PRIORITY if nation.is_anarchy else config.send_priority


def receive_tier(nation: Nation, config: AidSlotConfig) -> int:
    """Recipient urgency on the 0..3 scale (0 reserved for anarchy)"""
    return URGENT_PRIORITY if nation.is_anarchy else config.receive_priority


class _SlotLedger:
    """Remaining capacity per nation, direction and aid type for one run"""

    def __init__(self, configs: dict[int, AidSlotConfig], current_offers: list[AidOffer]):
        outgoing = Counter()
        incoming = Counter()
        for offer in current_offers:
            aid_type = offer.aid_type
            if aid_type is None:
                continue
            outgoing[(offer.sender_id, aid_type)] += 1
            incoming[(offer.recipient_id, aid_type)] += 1

        self._send: dict[tuple[int, AidType], int] = {}
        self._receive: dict[tuple[int, AidType], int] = {}
        for nation_id, config in configs.items():
            for aid_type in AID_TYPE_ORDER:
                key = (nation_id, aid_type)
                self._send[key] = max(0, config.send_capacity(aid_type) - outgoing[key])
                self._receive[key] = max(0, config.receive_capacity(aid_type) - incoming[key])

        self.pairs: set[tuple[int, int]] = {offer.pair for offer in current_offers}

    def send_remaining(self, nation_id: int, aid_type: AidType) -> int:
        return self._send.get((nation_id, aid_type), 0)

    def receive_remaining(self, nation_id: int, aid_type: AidType) -> int:
        return self._receive.get((nation_id, aid_type), 0)

    def consume(self, sender_id: int, recipient_id: int, aid_type: AidType) -> None:
        self._send[(sender_id, aid_type)] -= 1
        self._receive[(recipient_id, aid_type)] -= 1
        self.pairs.add((min(sender_id, recipient_id), max(sender_id, recipient_id)))


def remaining_capacity(
    configs: dict[int, AidSlotConfig],
    offers: list[AidOffer],
    now: datetime | None = None,
) -> dict[int, dict[str, int]]:
    """
    Remaining capacity per nation and category after current offers.

    Returns:
        {nation_id: {"sendCash": n, "sendTech": n, "getCash": n, "getTech": n}}
    """
    current = [offer for offer in offers if is_offer_current(offer, now)]
    ledger = _SlotLedger(configs, current)
    return {
        nation_id: {
            "sendCash": ledger.send_remaining(nation_id, AidType.CASH),
            "sendTech": ledger.send_remaining(nation_id, AidType.TECHNOLOGY),
            "getCash": ledger.receive_remaining(nation_id, AidType.CASH),
            "getTech": ledger.receive_remaining(nation_id, AidType.TECHNOLOGY),
        }
        for nation_id in configs
    }


class AidSlotMatcher:
    """Turns slot configuration and current offers into aid recommendations"""

    def match(
        self,
        roster: list[Nation],
        configs: dict[int, AidSlotConfig],
        offers: list[AidOffer],
        options: MatchOptions | None = None,
    ) -> list[Recommendation]:
        """
        Recommend sender -> recipient pairings.

        Args:
            roster: Nations available for matching
            configs: Stored slot configuration per nation id; roster nations
                without an entry fall back to their stat-derived default
            offers: Known aid offers; only current ones occupy slots
            options: Matching options

        Returns:
            Recommendations in pass order: re-established offers, then for
            cash and technology the same-alliance pairings followed by the
            cross-alliance fallback
        """
        options = options or MatchOptions()
        if not roster or not configs:
            return []

        configs = NationClassifier().classify_roster(roster, configs)
        nations: dict[int, Nation] = {}
        for nation in roster:
            nations.setdefault(nation.id, nation)

        current = [offer for offer in offers if is_offer_current(offer, options.now)]
        ledger = _SlotLedger({nid: configs[nid] for nid in nations}, current)
        eligible = [nation for nation in nations.values() if self._is_eligible(nation, options)]

        recommendations: list[Recommendation] = []
        lapsed_pairs: set[tuple[int, int]] = set()

        if options.reestablish_expired:
            lapsed = [offer for offer in offers if is_offer_lapsed(offer, options.now)]
            lapsed_pairs = {offer.pair for offer in lapsed}
            recommendations.extend(
                self._reestablish(lapsed, nations, configs, ledger, options)
            )

        for aid_type in AID_TYPE_ORDER:
            senders = sorted(
                (n for n in eligible if ledger.send_remaining(n.id, aid_type) > 0),
                key=lambda n: send_tier(n, configs[n.id]),
            )
            recipients = sorted(
                (n for n in eligible if ledger.receive_remaining(n.id, aid_type) > 0),
                key=lambda n: receive_tier(n, configs[n.id]),
            )
            kinds = [RecommendationKind.INTERNAL]
            if options.cross_alliance:
                kinds.append(RecommendationKind.CROSS_ALLIANCE)
            for kind in kinds:
                recommendations.extend(
                    self._pair(
                        senders, recipients, aid_type, kind, configs, ledger, lapsed_pairs, options
                    )
                )

        logger.info(
            "Matched %d aid recommendations for %d nations (alliance=%s, cross=%s)",
            len(recommendations),
            len(nations),
            options.alliance_id,
            options.cross_alliance,
        )
        return recommendations

    def _is_eligible(self, nation: Nation, options: MatchOptions) -> bool:
        if nation.war_mode and not options.include_peace_mode:
            return False
        if (
            options.alliance_id is not None
            and not options.cross_alliance
            and nation.alliance_id != options.alliance_id
        ):
            return False
        return True

    def _kind_for(self, sender: Nation, recipient: Nation, options: MatchOptions) -> RecommendationKind | None:
        """Classify a pairing as internal or cross-alliance, None if out of scope"""
        if options.alliance_id is not None:
            sender_home = sender.alliance_id == options.alliance_id
            recipient_home = recipient.alliance_id == options.alliance_id
            if sender_home and recipient_home:
                return RecommendationKind.INTERNAL
            if sender_home or recipient_home:
                return RecommendationKind.CROSS_ALLIANCE if options.cross_alliance else None
            return None
        if sender.alliance_id is not None and sender.alliance_id == recipient.alliance_id:
            return RecommendationKind.INTERNAL
        return RecommendationKind.CROSS_ALLIANCE if options.cross_alliance else None

    def _pair(
        self,
        senders: list[Nation],
        recipients: list[Nation],
        aid_type: AidType,
        kind: RecommendationKind,
        configs: dict[int, AidSlotConfig],
        ledger: _SlotLedger,
        lapsed_pairs: set[tuple[int, int]],
        options: MatchOptions,
    ) -> list[Recommendation]:
        paired = []
        for recipient in recipients:
            for sender in senders:
                if ledger.receive_remaining(recipient.id, aid_type) <= 0:
                    break
                if sender.id == recipient.id:
                    continue
                if ledger.send_remaining(sender.id, aid_type) <= 0:
                    continue
                if self._kind_for(sender, recipient, options) is not kind:
                    continue
                pair = (min(sender.id, recipient.id), max(sender.id, recipient.id))
                if pair in ledger.pairs or pair in lapsed_pairs:
                    continue

                paired.append(self._recommend(sender, recipient, aid_type, kind, configs))
                ledger.consume(sender.id, recipient.id, aid_type)
        return paired

    def _reestablish(
        self,
        lapsed: list[AidOffer],
        nations: dict[int, Nation],
        configs: dict[int, AidSlotConfig],
        ledger: _SlotLedger,
        options: MatchOptions,
    ) -> list[Recommendation]:
        candidates = []
        for offer in lapsed:
            sender = nations.get(offer.sender_id)
            recipient = nations.get(offer.recipient_id)
            if sender is None or recipient is None:
                logger.debug("Skipping lapsed offer %s: nation not in roster", offer.offer_id)
                continue
            if offer.aid_type is None:
                continue
            candidates.append((offer, sender, recipient))

        candidates.sort(
            key=lambda item: (
                send_tier(item[1], configs[item[1].id]),
                receive_tier(item[2], configs[item[2].id]),
            )
        )

        reestablished = []
        for offer, sender, recipient in candidates:
            aid_type = offer.aid_type
            if not (self._is_eligible(sender, options) and self._is_eligible(recipient, options)):
                continue
            scope = self._kind_for(sender, recipient, options)
            if scope is None:
                continue
            if offer.pair in ledger.pairs:
                continue
            if ledger.send_remaining(sender.id, aid_type) <= 0:
                continue
            if ledger.receive_remaining(recipient.id, aid_type) <= 0:
                continue

            reestablished.append(
                self._recommend(
                    sender,
                    recipient,
                    aid_type,
                    RecommendationKind.REESTABLISH,
                    configs,
                    cross_alliance=scope is RecommendationKind.CROSS_ALLIANCE,
                )
            )
            ledger.consume(sender.id, recipient.id, aid_type)
        return reestablished

    def _recommend(
        self,
        sender: Nation,
        recipient: Nation,
        aid_type: AidType,
        kind: RecommendationKind,
        configs: dict[int, AidSlotConfig],
        cross_alliance: bool | None = None,
    ) -> Recommendation:
        if cross_alliance is None:
            cross_alliance = kind is RecommendationKind.CROSS_ALLIANCE
        tier = min(
            send_tier(sender, configs[sender.id]),
            receive_tier(recipient, configs[recipient.id]),
        )
        priority = tier + CROSS_ALLIANCE_PRIORITY_OFFSET if cross_alliance else tier
        label = {
            RecommendationKind.REESTABLISH: "Re-establish expired",
            RecommendationKind.INTERNAL: "New internal",
            RecommendationKind.CROSS_ALLIANCE: "Cross-alliance",
        }[kind]
        return Recommendation(
            sender_id=sender.id,
            recipient_id=recipient.id,
            aid_type=aid_type,
            priority=priority,
            kind=kind,
            reason=f"{label} {aid_type.value} aid: {sender.nation_name} → {recipient.nation_name}",
            tier=tier,
        )


def summarize_slots(
    roster: list[Nation],
    configs: dict[int, AidSlotConfig],
    offers: list[AidOffer],
    options: MatchOptions | None = None,
) -> SlotCounts:
    """Aggregate slot capacity for a roster the way the aid page reports it"""
    options = options or MatchOptions()
    counts = Counter()
    seen: set[int] = set()
    resolved = NationClassifier().classify_roster(roster, configs)

    for nation in roster:
        if nation.id in seen:
            continue
        seen.add(nation.id)
        config = resolved[nation.id]

        counts["total_get_cash"] += config.get_cash
        counts["total_get_tech"] += config.get_tech
        counts["total_unassigned"] += config.unassigned
        if nation.war_mode and not options.include_peace_mode:
            counts["parked_send_cash"] += config.send_cash
            counts["parked_send_tech"] += config.send_tech
        else:
            counts["total_send_cash"] += config.send_cash
            counts["total_send_tech"] += config.send_tech

        is_home = options.alliance_id is None or nation.alliance_id == options.alliance_id
        if is_home:
            counts["internal_get_cash"] += config.get_cash
            counts["internal_get_tech"] += config.get_tech
        elif options.cross_alliance:
            counts["cross_alliance_get_cash"] += config.get_cash
            counts["cross_alliance_get_tech"] += config.get_tech

    for offer in offers:
        if not is_offer_current(offer, options.now) or offer.aid_type is None:
            continue
        suffix = "cash" if offer.aid_type is AidType.CASH else "tech"
        if offer.sender_id in seen:
            counts[f"active_send_{suffix}"] += 1
        if offer.recipient_id in seen:
            counts[f"active_get_{suffix}"] += 1

    return SlotCounts(**counts)
