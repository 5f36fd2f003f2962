"""
Time window tests
"""

from datetime import date, datetime, timezone

from alliance_engine.core.domain import AidOffer, OfferStatus, War, WarStatus
from alliance_engine.core.time_windows import (
    TZ_CENTRAL,
    WindowStatus,
    aid_window,
    game_date,
    is_offer_current,
    is_offer_lapsed,
    is_war_current,
    parse_game_timestamp,
    war_window,
)

NOW = datetime(2025, 1, 8, 12, 0, tzinfo=TZ_CENTRAL)


class TestParseGameTimestamp:
    """Game timestamp parsing"""

    def test_twelve_hour_format(self):
        parsed = parse_game_timestamp("1/8/2025 11:30:00 PM")

        assert parsed == datetime(2025, 1, 8, 23, 30, tzinfo=TZ_CENTRAL)

    def test_date_only(self):
        assert game_date("1/10/2025") == date(2025, 1, 10)

    def test_iso_format(self):
        parsed = parse_game_timestamp("2025-01-08T10:00:00")

        assert parsed.tzinfo is TZ_CENTRAL
        assert parsed.hour == 10

    def test_aware_datetime_converted_to_central(self):
        utc = datetime(2025, 1, 9, 3, 0, tzinfo=timezone.utc)

        assert game_date(utc) == date(2025, 1, 8)

    def test_unparsable_returns_none(self, caplog):
        assert parse_game_timestamp("next tuesday") is None
        assert parse_game_timestamp("") is None
        assert "Unparsable game timestamp" in caplog.text


class TestAidWindow:
    """Ten-day aid offer window"""

    def test_offer_created_today_has_full_window(self):
        window = aid_window("1/8/2025 9:00:00 AM", NOW)

        assert window.days_remaining == 10
        assert not window.is_expired
        assert window.status is WindowStatus.ACTIVE

    def test_offer_created_late_today_still_has_full_window(self):
        window = aid_window("1/8/2025 11:59:59 PM", NOW)

        assert window.days_remaining == 10

    def test_offer_created_ten_days_ago_is_expired(self):
        window = aid_window("12/29/2024 11:00:00 PM", NOW)

        assert window.days_remaining == 0
        assert window.is_expired

    def test_last_day_is_expiring(self):
        window = aid_window("12/30/2024 1:00:00 AM", NOW)

        assert window.days_remaining == 1
        assert window.status is WindowStatus.EXPIRING

    def test_unparsable_date_is_not_current(self):
        window = aid_window("garbage", NOW)

        assert window.is_expired
        assert window.expires_at is None
        assert not is_offer_current(AidOffer(1, 1, 2, "garbage", money=1), NOW)

    def test_offer_status_overrides_window(self):
        cancelled = AidOffer(1, 1, 2, "1/8/2025", money=1, status=OfferStatus.CANCELLED)
        expired = AidOffer(2, 1, 2, "1/8/2025", money=1, status=OfferStatus.EXPIRED)

        assert not is_offer_current(cancelled, NOW)
        assert not is_offer_lapsed(cancelled, NOW)
        assert is_offer_lapsed(expired, NOW)

    def test_offer_lapsed_by_window(self):
        offer = AidOffer(1, 1, 2, "12/20/2024", money=1)

        assert is_offer_lapsed(offer, NOW)
        assert not is_offer_lapsed(AidOffer(2, 1, 2, "bad date", money=1), NOW)


class TestWarWindow:
    """War expiry the day after its end date"""

    def test_war_ending_today_is_current(self):
        assert war_window("1/8/2025", NOW).days_remaining == 1
        assert is_war_current(War(1, 1, 2, "1/8/2025"), NOW)

    def test_war_ended_yesterday_is_expired(self):
        assert not is_war_current(War(1, 1, 2, "1/7/2025 11:59:59 PM"), NOW)

    def test_ended_status_is_not_current(self):
        assert not is_war_current(War(1, 1, 2, "1/10/2025", status=WarStatus.ENDED), NOW)

    def test_unparsable_end_date_is_not_current(self):
        assert not is_war_current(War(1, 1, 2, "soon"), NOW)
