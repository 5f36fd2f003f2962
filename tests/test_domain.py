"""
Domain type tests
"""

import pytest

from alliance_engine.core.domain import (
    Activity,
    AidOffer,
    AidSlotConfig,
    AidType,
    InvalidRecordError,
    Nation,
    NationWarSummary,
    OfferStatus,
    SlotLimitExceededError,
    SlotUsage,
    War,
    WarStatus,
    parse_grouped_number,
)


class TestParsing:
    """Ingestion boundary parsing"""

    def test_grouped_number(self):
        assert parse_grouped_number("1,234.56") == 1234.56
        assert parse_grouped_number("12,000") == 12000.0
        assert parse_grouped_number(7) == 7.0

    def test_grouped_number_garbage_is_zero(self):
        assert parse_grouped_number("") == 0.0
        assert parse_grouped_number(None) == 0.0
        assert parse_grouped_number("n/a") == 0.0

    def test_activity_parse(self):
        assert Activity.parse("active this week") is Activity.THIS_WEEK
        assert Activity.parse("Active In The Last 3 Days") is Activity.LAST_3_DAYS
        assert Activity.parse("someday") is Activity.OVER_THREE_WEEKS

    def test_offer_status_parse(self):
        assert OfferStatus.parse("Approved") is OfferStatus.ACCEPTED
        assert OfferStatus.parse("expired") is OfferStatus.EXPIRED
        assert OfferStatus.parse("unknown") is OfferStatus.PENDING

    def test_war_status_parse(self):
        assert WarStatus.parse("Peace") is WarStatus.ENDED
        assert WarStatus.parse("Expired") is WarStatus.EXPIRED
        assert WarStatus.parse("") is WarStatus.ACTIVE


class TestNation:
    """Nation snapshot validation"""

    def test_negative_strength_rejected(self):
        with pytest.raises(InvalidRecordError):
            Nation(id=1, ruler_name="R", nation_name="N", alliance_id=1, strength=-1)

    def test_negative_warchest_rejected(self):
        with pytest.raises(InvalidRecordError):
            Nation(id=1, ruler_name="R", nation_name="N", alliance_id=1, warchest=-5)

    def test_anarchy_and_posture(self):
        nation = Nation(
            id=1, ruler_name="R", nation_name="N", alliance_id=1,
            government_type=" Anarchy ", war_mode=False,
        )
        assert nation.is_anarchy
        assert nation.posture == "Peace Mode"


class TestAidSlotConfig:
    """Slot configuration invariants"""

    def test_slot_limit_depends_on_dra(self):
        assert AidSlotConfig(has_dra=True).slot_limit == 6
        assert AidSlotConfig(has_dra=False).slot_limit == 5

    @pytest.mark.parametrize("priority", [0, 4])
    def test_priority_out_of_range(self, priority):
        with pytest.raises(InvalidRecordError):
            AidSlotConfig(send_priority=priority)

    def test_negative_capacity_rejected(self):
        with pytest.raises(InvalidRecordError):
            AidSlotConfig(get_cash=-1)

    def test_usage(self):
        assert AidSlotConfig(get_cash=3, has_dra=False).usage is SlotUsage.UNDER
        assert AidSlotConfig(get_cash=5, has_dra=False).usage is SlotUsage.FULL
        assert AidSlotConfig(get_cash=6, has_dra=False).usage is SlotUsage.OVER
        assert AidSlotConfig(get_cash=4, has_dra=True).unassigned == 2

    def test_over_limit_loads_but_fails_validation(self):
        config = AidSlotConfig(send_tech=4, get_cash=3, has_dra=False)

        with pytest.raises(SlotLimitExceededError) as exc_info:
            config.ensure_within_limit()

        assert exc_info.value.assigned == 7
        assert exc_info.value.limit == 5

    def test_capacity_by_type(self):
        config = AidSlotConfig(send_cash=2, get_tech=4)
        assert config.send_capacity(AidType.CASH) == 2
        assert config.send_capacity(AidType.TECHNOLOGY) == 0
        assert config.receive_capacity(AidType.TECHNOLOGY) == 4

    def test_to_dict_keys(self):
        assert AidSlotConfig(send_tech=6).to_dict() == {
            "sendTech": 6,
            "sendCash": 0,
            "getTech": 0,
            "getCash": 0,
            "send_priority": 3,
            "receive_priority": 3,
        }


class TestAidOffer:
    """Aid offer typing"""

    def test_technology_takes_precedence(self):
        offer = AidOffer(1, 10, 20, "1/1/2025", money=3_000_000, technology=100)
        assert offer.aid_type is AidType.TECHNOLOGY

    def test_cash_offer(self):
        offer = AidOffer(1, 10, 20, "1/1/2025", money=9_000_000)
        assert offer.aid_type is AidType.CASH

    def test_soldier_only_offer_has_no_type(self):
        offer = AidOffer(1, 10, 20, "1/1/2025", soldiers=5000)
        assert offer.aid_type is None

    def test_pair_is_unordered(self):
        assert AidOffer(1, 20, 10, "1/1/2025", money=1).pair == (10, 20)

    def test_negative_money_rejected(self):
        with pytest.raises(InvalidRecordError):
            AidOffer(1, 10, 20, "1/1/2025", money=-1)


class TestNationWarSummary:
    """War summary helpers"""

    def test_open_slots_and_war_lookup(self):
        nation = Nation(id=1, ruler_name="R", nation_name="N", alliance_id=1)
        wars = tuple(War(i, 100 + i, 1, "1/10/2025") for i in range(3))
        summary = NationWarSummary(nation=nation, defending_wars=wars)

        assert summary.open_defensive_slots == 0
        assert summary.is_full
        assert summary.has_war_with(101)
        assert not summary.has_war_with(999)
